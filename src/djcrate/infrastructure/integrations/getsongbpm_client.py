"""GetSongBPM HTTP client implementation."""

from typing import Any, cast

from djcrate.config.settings import GetSongBpmSettings
from djcrate.domain.exceptions import SourceParseError, SourceUnavailableError
from djcrate.infrastructure.integrations.base_client import BaseApiClient
from djcrate.infrastructure.rate_limiter import RateLimiter


class GetSongBpmClient(BaseApiClient):
    """HTTP client for the GetSongBPM song search."""

    SOURCE_NAME = "getsongbpm"
    API_BASE_URL = "https://api.getsongbpm.com"

    def __init__(
        self, settings: GetSongBpmSettings, rate_limiter: RateLimiter | None = None
    ) -> None:
        """
        Initialize GetSongBPM client.

        Args:
            settings: GetSongBPM configuration settings
            rate_limiter: Optional limiter override (defaults to the getsongbpm preset)

        Raises:
            SourceUnavailableError: If no API key is configured
        """
        if not settings.is_configured():
            raise SourceUnavailableError(self.SOURCE_NAME)
        super().__init__(rate_limiter)
        self.settings = settings

    # Hey future me, GetSongBPM's "no result" answer is NOT an empty list - it's
    # {"search": {"error": "no result"}}. So anything that isn't a non-empty list is a miss.
    # Only a payload that isn't even a JSON object counts as a parse error.
    async def search_song(self, title: str, artist: str) -> dict[str, Any] | None:
        """
        Search a song by title and artist.

        Args:
            title: Normalized track title
            artist: Normalized primary artist

        Returns:
            First matching song object, or None if nothing matched

        Raises:
            SourceRequestFailedError: On HTTP/network failure
            SourceParseError: On unexpected payload shape
        """
        response = await self._request(
            "GET",
            "/search/",
            params={
                "api_key": self.settings.api_key,
                "type": "song",
                "lookup": f"song:{title} artist:{artist}",
            },
        )
        data = self._json(response)

        if not isinstance(data, dict):
            raise SourceParseError(
                "GetSongBPM search returned a non-object payload", source=self.SOURCE_NAME
            )

        songs = data.get("search")
        if not isinstance(songs, list) or not songs:
            return None

        first = songs[0]
        if not isinstance(first, dict):
            raise SourceParseError(
                "GetSongBPM search result is not an object", source=self.SOURCE_NAME
            )
        return cast(dict[str, Any], first)


__all__ = ["GetSongBpmClient"]
