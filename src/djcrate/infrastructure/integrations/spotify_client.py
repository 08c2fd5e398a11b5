"""Spotify Web API client using the client-credentials flow (app-only, no user OAuth)."""

import logging
import time
from typing import Any

from djcrate.config.settings import SpotifySettings
from djcrate.domain.dtos import ArtistCandidate
from djcrate.domain.exceptions import (
    SourceParseError,
    SourceRequestFailedError,
    SourceUnavailableError,
)
from djcrate.infrastructure.integrations.base_client import BaseApiClient
from djcrate.infrastructure.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)


class SpotifyClient(BaseApiClient):
    """HTTP client for Spotify artist search with client-credentials auth."""

    SOURCE_NAME = "spotify"
    TOKEN_URL = "https://accounts.spotify.com/api/token"  # nosec B105 - public URL
    API_BASE_URL = "https://api.spotify.com/v1"

    # Tokens are refreshed this many seconds before Spotify says they expire.
    TOKEN_EXPIRY_MARGIN = 60

    def __init__(self, settings: SpotifySettings, rate_limiter: RateLimiter | None = None) -> None:
        """
        Initialize Spotify client.

        Args:
            settings: Spotify client id and secret
            rate_limiter: Optional limiter override (defaults to the spotify preset)

        Raises:
            SourceUnavailableError: If client id or secret is missing
        """
        if not settings.is_configured():
            raise SourceUnavailableError(self.SOURCE_NAME)
        super().__init__(rate_limiter)
        self.settings = settings
        self._access_token: str | None = None
        self._token_expires_at: float = 0.0

    # Hey future me - client-credentials tokens live ~1h. We cache the token and refresh it
    # 60s early so a request never goes out with a token that expires mid-flight. The token
    # call goes through the same rate limiter as everything else.
    async def get_access_token(self) -> str:
        """Get a cached app token, fetching a new one when missing or about to expire.

        Raises:
            SourceRequestFailedError: Token endpoint rejected the credentials
            SourceParseError: Token response without access_token
        """
        if self._access_token and time.monotonic() < self._token_expires_at:
            return self._access_token

        response = await self._request(
            "POST",
            self.TOKEN_URL,
            data={"grant_type": "client_credentials"},
            auth=(self.settings.client_id, self.settings.client_secret),
        )
        data = self._json(response)

        token = data.get("access_token") if isinstance(data, dict) else None
        if not token:
            raise SourceParseError(
                "Spotify token response has no access_token", source=self.SOURCE_NAME
            )

        expires_in = float(data.get("expires_in", 3600))
        self._access_token = str(token)
        self._token_expires_at = time.monotonic() + expires_in - self.TOKEN_EXPIRY_MARGIN
        logger.debug(f"Spotify app token refreshed, valid for {expires_in:.0f}s")
        return self._access_token

    def invalidate_token(self) -> None:
        """Forget the cached token (next call fetches a fresh one)."""
        self._access_token = None
        self._token_expires_at = 0.0

    async def search_artists(self, name: str, limit: int = 5) -> list[ArtistCandidate]:
        """
        Search artists by name.

        Args:
            name: Artist name
            limit: Max candidates (Spotify caps at 50)

        Returns:
            Candidates in Spotify's relevance order, each with its genre list

        Raises:
            SourceRequestFailedError: On HTTP/network failure (401 also drops the cached token)
            SourceParseError: On unexpected payload shape
        """
        token = await self.get_access_token()
        response = await self._request(
            "GET",
            "/search",
            params={"q": f"artist:{name}", "type": "artist", "limit": min(limit, 50)},
            headers={"Authorization": f"Bearer {token}"},
        )

        if response.status_code == 401:
            self.invalidate_token()
            raise SourceRequestFailedError(
                "Spotify rejected the app token (401)", source=self.SOURCE_NAME
            )

        data = self._json(response)
        artists = data.get("artists") if isinstance(data, dict) else None
        items = artists.get("items") if isinstance(artists, dict) else None
        if not isinstance(items, list):
            raise SourceParseError(
                "Spotify artist search has no artists.items list", source=self.SOURCE_NAME
            )

        return [self._to_candidate(item) for item in items if isinstance(item, dict)]

    @staticmethod
    def _to_candidate(item: dict[str, Any]) -> ArtistCandidate:
        genres = item.get("genres") or []
        return ArtistCandidate(
            name=str(item.get("name", "")),
            id=item.get("id"),
            score=item.get("popularity"),
            genres=[str(genre) for genre in genres],
        )


__all__ = ["SpotifyClient"]
