"""Last.fm HTTP client implementation."""

from typing import Any

from djcrate.config.settings import LastfmSettings
from djcrate.domain.dtos import RawTag
from djcrate.domain.exceptions import SourceParseError, SourceUnavailableError
from djcrate.infrastructure.integrations.base_client import BaseApiClient
from djcrate.infrastructure.rate_limiter import RateLimiter


def _tag_count(value: Any) -> float:
    """Last.fm sends counts as ints or numeric strings; anything else counts as 0."""
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


class LastfmClient(BaseApiClient):
    """HTTP client for Last.fm API operations."""

    SOURCE_NAME = "lastfm"
    API_BASE_URL = "https://ws.audioscrobbler.com/2.0/"

    def __init__(self, settings: LastfmSettings, rate_limiter: RateLimiter | None = None) -> None:
        """
        Initialize Last.fm client.

        Args:
            settings: Last.fm configuration settings
            rate_limiter: Optional limiter override (defaults to the lastfm preset)

        Raises:
            SourceUnavailableError: If no API key is configured
        """
        if not settings.is_configured():
            raise SourceUnavailableError(self.SOURCE_NAME)
        super().__init__(rate_limiter)
        self.settings = settings

    async def _make_request(self, method: str, params: dict[str, Any]) -> dict[str, Any] | None:
        """
        Make a request to Last.fm API.

        Args:
            method: API method name
            params: Request parameters

        Returns:
            Response data or None if Last.fm reports an API error (unknown artist etc.)
        """
        response = await self._request(
            "GET",
            "",
            params={
                "method": method,
                "api_key": self.settings.api_key,
                "format": "json",
                **params,
            },
        )
        if response.status_code == 404:
            return None

        data = self._json(response)
        if not isinstance(data, dict):
            raise SourceParseError(
                f"Last.fm {method} returned a non-object payload", source=self.SOURCE_NAME
            )

        # Last.fm reports "artist not found" as HTTP 200 with an error code in the body
        if "error" in data:
            return None
        return data

    async def get_artist_top_tags(self, artist: str) -> list[RawTag]:
        """
        Get an artist's top community tags with their counts.

        Args:
            artist: Artist name

        Returns:
            Tags in Last.fm's order (most used first); empty if the artist is unknown
        """
        data = await self._make_request("artist.gettoptags", {"artist": artist})
        if data is None:
            return []

        toptags = data.get("toptags") or {}
        tags = toptags.get("tag") if isinstance(toptags, dict) else None
        if tags is None:
            return []
        # A single tag comes back as an object instead of a one-element list
        if isinstance(tags, dict):
            tags = [tags]
        if not isinstance(tags, list):
            raise SourceParseError("Last.fm toptags is not a list", source=self.SOURCE_NAME)

        return [
            RawTag(name=str(tag["name"]), count=_tag_count(tag.get("count")))
            for tag in tags
            if isinstance(tag, dict) and tag.get("name")
        ]


__all__ = ["LastfmClient"]
