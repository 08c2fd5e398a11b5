"""MusicBrainz HTTP client implementation with rate limiting."""

import asyncio
import re
from typing import Any

import httpx

from djcrate.config.settings import MusicBrainzSettings
from djcrate.domain.dtos import ArtistCandidate, RawTag
from djcrate.domain.exceptions import SourceParseError
from djcrate.infrastructure.integrations.base_client import BaseApiClient
from djcrate.infrastructure.rate_limiter import RateLimiter

# Lucene special characters that must be backslash-escaped inside a query term.
_LUCENE_SPECIAL = re.compile(r'([+\-&|!(){}\[\]^"~*?:\\/])')

# Curated MusicBrainz "genres" outrank community "tags" by this much.
GENRE_BOOST = 100


def escape_lucene(value: str) -> str:
    """Escape Lucene query syntax so 'AC/DC' or 'Sunn O)))' search literally."""
    return _LUCENE_SPECIAL.sub(r"\\\1", value)


def _tag_count(value: Any) -> float:
    try:
        return float(value or 0)
    except (TypeError, ValueError):
        return 0.0


def _raw_tags(entries: Any, boost: float = 0) -> list[RawTag]:
    if not isinstance(entries, list):
        return []
    return [
        RawTag(name=str(entry["name"]), count=_tag_count(entry.get("count")) + boost)
        for entry in entries
        if isinstance(entry, dict) and entry.get("name")
    ]


class MusicBrainzClient(BaseApiClient):
    """HTTP client for MusicBrainz artist search and artist detail."""

    SOURCE_NAME = "musicbrainz"
    API_BASE_URL = "https://musicbrainz.org/ws/2"
    RATE_LIMIT_DELAY = 1.1  # MusicBrainz allows 1 req/sec; 1.1 leaves some slack

    # Hey future me, MusicBrainz is STRICT about rate limiting - 1 req/sec, NO EXCEPTIONS!
    # That's why we track _last_request_time and hold a lock on top of the token bucket. If you
    # violate this they IP-ban you for hours. No API key needed, it's always "configured".
    def __init__(
        self,
        settings: MusicBrainzSettings,
        rate_limiter: RateLimiter | None = None,
        request_delay: float = RATE_LIMIT_DELAY,
    ) -> None:
        """
        Initialize MusicBrainz client.

        Args:
            settings: MusicBrainz configuration settings (User-Agent parts)
            rate_limiter: Optional limiter override (defaults to the musicbrainz preset)
            request_delay: Minimum seconds between two requests
        """
        super().__init__(rate_limiter)
        self.settings = settings
        self.request_delay = request_delay
        self._last_request_time: float = 0.0
        self._rate_limit_lock = asyncio.Lock()

    # Listen future me, MusicBrainz REQUIRES a User-Agent with app name, version AND contact
    # info, or it answers 403. Format: "AppName/Version ( contact )".
    def _client_headers(self) -> dict[str, str]:
        user_agent = (
            f"{self.settings.app_name}/{self.settings.app_version} ( {self.settings.contact} )"
        )
        return {"User-Agent": user_agent, "Accept": "application/json"}

    # We update _last_request_time AFTER the request completes, not before. That accounts for
    # slow responses; moving it up speeds us past the limit whenever MusicBrainz is slow.
    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        async with self._rate_limit_lock:
            loop = asyncio.get_running_loop()
            time_since_last = loop.time() - self._last_request_time
            if time_since_last < self.request_delay:
                await asyncio.sleep(self.request_delay - time_since_last)

            try:
                return await super()._request(method, url, **kwargs)
            finally:
                self._last_request_time = loop.time()

    async def search_artists(self, name: str, limit: int = 5) -> list[ArtistCandidate]:
        """
        Search artists by exact-phrase name query.

        Args:
            name: Artist name (escaped for Lucene here)
            limit: Max candidates

        Returns:
            Candidates in MusicBrainz score order, with any tags the search result carries

        Raises:
            SourceRequestFailedError: On HTTP/network failure
            SourceParseError: On unexpected payload shape
        """
        response = await self._request(
            "GET",
            "/artist",
            params={
                "query": f'artist:"{escape_lucene(name)}"',
                "fmt": "json",
                "limit": limit,
            },
        )
        data = self._json(response)
        if not isinstance(data, dict):
            raise SourceParseError(
                "MusicBrainz artist search returned a non-object payload",
                source=self.SOURCE_NAME,
            )

        artists = data.get("artists") or []
        if not isinstance(artists, list):
            raise SourceParseError(
                "MusicBrainz artist search has no artists list", source=self.SOURCE_NAME
            )

        return [
            ArtistCandidate(
                name=str(artist.get("name", "")),
                id=artist.get("id"),
                score=artist.get("score"),
                tags=_raw_tags(artist.get("tags")),
            )
            for artist in artists
            if isinstance(artist, dict)
        ]

    async def get_artist_tags(self, artist_id: str) -> list[RawTag] | None:
        """
        Fetch an artist's curated genres and community tags.

        Curated genres get GENRE_BOOST added to their vote count so they sort first.

        Returns:
            Genres followed by tags (unsorted), or None if the artist id is unknown (404)

        Raises:
            SourceRequestFailedError: On HTTP/network failure
            SourceParseError: On unexpected payload shape
        """
        response = await self._request(
            "GET",
            f"/artist/{artist_id}",
            params={"inc": "tags genres", "fmt": "json"},
        )
        if response.status_code == 404:
            return None

        data = self._json(response)
        if not isinstance(data, dict):
            raise SourceParseError(
                "MusicBrainz artist detail returned a non-object payload",
                source=self.SOURCE_NAME,
            )

        return _raw_tags(data.get("genres"), boost=GENRE_BOOST) + _raw_tags(data.get("tags"))


__all__ = ["GENRE_BOOST", "MusicBrainzClient", "escape_lucene"]
