"""SoundNet track-analysis (RapidAPI) HTTP client implementation."""

from typing import Any, cast

from djcrate.config.settings import SoundNetSettings
from djcrate.domain.exceptions import SourceParseError, SourceUnavailableError
from djcrate.infrastructure.integrations.base_client import BaseApiClient
from djcrate.infrastructure.rate_limiter import RateLimiter


class SoundNetClient(BaseApiClient):
    """HTTP client for SoundNet track analysis search."""

    SOURCE_NAME = "soundnet"
    API_BASE_URL = "https://track-analysis.p.rapidapi.com"

    def __init__(
        self, settings: SoundNetSettings, rate_limiter: RateLimiter | None = None
    ) -> None:
        """
        Initialize SoundNet client.

        Args:
            settings: RapidAPI key and host
            rate_limiter: Optional limiter override (defaults to the soundnet preset)

        Raises:
            SourceUnavailableError: If no RapidAPI key is configured
        """
        if not settings.is_configured():
            raise SourceUnavailableError(self.SOURCE_NAME)
        super().__init__(rate_limiter)
        self.settings = settings

    def _client_headers(self) -> dict[str, str]:
        return {
            "Accept": "application/json",
            "X-RapidAPI-Key": self.settings.api_key,
            "X-RapidAPI-Host": self.settings.api_host,
        }

    async def search(self, artist: str, title: str) -> dict[str, Any] | None:
        """
        Search track analysis by free-text "<artist> <title>".

        The API answers with either a list of analyses or a single object.

        Returns:
            First analysis object, or None if nothing matched

        Raises:
            SourceRequestFailedError: On HTTP/network failure
            SourceParseError: On unexpected payload shape
        """
        response = await self._request("GET", "/search", params={"query": f"{artist} {title}"})
        data = self._json(response)

        result = data[0] if isinstance(data, list) and data else data
        if not result:
            return None
        if not isinstance(result, dict):
            raise SourceParseError(
                "SoundNet search returned a non-object result", source=self.SOURCE_NAME
            )
        return cast(dict[str, Any], result)


__all__ = ["SoundNetClient"]
