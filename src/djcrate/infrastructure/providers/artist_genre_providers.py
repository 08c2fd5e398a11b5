"""Artist-keyed genre sources: Last.fm, Spotify (fast) and MusicBrainz (slow)."""

import logging
from collections.abc import Sequence

from djcrate.domain.dtos import ArtistCandidate
from djcrate.domain.exceptions import ExternalServiceError
from djcrate.domain.ports import IArtistGenreSource
from djcrate.domain.value_objects.genre_taxonomy import (
    normalize_genre_tags,
    normalize_simple_genres,
)
from djcrate.infrastructure.integrations.lastfm_client import LastfmClient
from djcrate.infrastructure.integrations.musicbrainz_client import MusicBrainzClient
from djcrate.infrastructure.integrations.spotify_client import SpotifyClient
from djcrate.infrastructure.observability.log_messages import LogMessages

logger = logging.getLogger(__name__)

# Last.fm tags used by this few people are mostly personal labels, not genres.
LASTFM_MIN_TAG_COUNT = 5

# A search hit with at least this many tags skips the artist detail request.
MUSICBRAINZ_MIN_SEARCH_TAGS = 2


def _is_prefix_match(candidate: str, target: str) -> bool:
    """'The Chemical Brothers' vs 'Chemical Brothers' style near-matches, either direction."""
    return candidate.startswith(target) or target.startswith(candidate)


def pick_spotify_artist(
    candidates: Sequence[ArtistCandidate], target: str
) -> ArtistCandidate | None:
    """Best Spotify candidate that HAS genres: exact name, then prefix, then any."""
    lower = target.lower()
    with_genres = [candidate for candidate in candidates if candidate.genres]

    for candidate in with_genres:
        if candidate.name.lower() == lower:
            return candidate
    for candidate in with_genres:
        if _is_prefix_match(candidate.name.lower(), lower):
            return candidate
    return with_genres[0] if with_genres else None


def pick_musicbrainz_artist(
    candidates: Sequence[ArtistCandidate], target: str
) -> ArtistCandidate | None:
    """Best MusicBrainz candidate: exact name, then prefix, then the top-scored hit."""
    if not candidates:
        return None
    lower = target.lower()

    for candidate in candidates:
        if candidate.name.lower() == lower:
            return candidate
    for candidate in candidates:
        if _is_prefix_match(candidate.name.lower(), lower):
            return candidate

    return max(candidates, key=lambda c: c.score or 0)


class LastfmGenreProvider(IArtistGenreSource):
    """Last.fm artist top tags (per-artist, fast)."""

    name = "lastfm"

    def __init__(
        self, client: LastfmClient, concurrency: int = 8, request_delay: float = 0.05
    ) -> None:
        self.client = client
        self.concurrency = concurrency
        self.request_delay = request_delay

    async def lookup_artist(self, artist_name: str) -> list[str]:
        tags = await self.client.get_artist_top_tags(artist_name)
        names = [tag.name for tag in tags if tag.count > LASTFM_MIN_TAG_COUNT]
        return normalize_simple_genres(names)


class SpotifyGenreProvider(IArtistGenreSource):
    """Spotify artist search genres via client credentials (per-artist, fast)."""

    name = "spotify"

    def __init__(
        self, client: SpotifyClient, concurrency: int = 10, request_delay: float = 0.05
    ) -> None:
        self.client = client
        self.concurrency = concurrency
        self.request_delay = request_delay

    async def lookup_artist(self, artist_name: str) -> list[str]:
        candidates = await self.client.search_artists(artist_name, limit=5)
        best = pick_spotify_artist(candidates, artist_name)
        if best is None:
            return []
        return normalize_simple_genres(best.genres)


# Hey future me - MusicBrainz is the SLOW layer (1 req/s, single worker) and the last resort.
# The search result often already carries community tags; two or more is enough to skip the
# second request, which halves the time spent per artist. Otherwise one detail fetch gets
# curated genres (+100 weight, see GENRE_BOOST) plus community tags.
class MusicBrainzGenreProvider(IArtistGenreSource):
    """MusicBrainz artist tags and curated genres (per-artist, slow)."""

    name = "musicbrainz"

    def __init__(
        self, client: MusicBrainzClient, concurrency: int = 1, request_delay: float = 0.0
    ) -> None:
        # The client already paces itself at 1.1 s between requests.
        self.client = client
        self.concurrency = concurrency
        self.request_delay = request_delay

    async def lookup_artist(self, artist_name: str) -> list[str]:
        candidates = await self.client.search_artists(artist_name, limit=5)
        best = pick_musicbrainz_artist(candidates, artist_name)
        if best is None:
            return []

        if len(best.tags) >= MUSICBRAINZ_MIN_SEARCH_TAGS or not best.id:
            return normalize_genre_tags(best.tags)

        try:
            detail_tags = await self.client.get_artist_tags(best.id)
        except ExternalServiceError as e:
            logger.warning(
                LogMessages.source_failed(
                    self.name,
                    artist_name,
                    str(e),
                    hint="Artist detail failed; falling back to search tags",
                )
            )
            detail_tags = None

        if detail_tags is None:
            return normalize_genre_tags(best.tags)
        return normalize_genre_tags(detail_tags)


__all__ = [
    "LastfmGenreProvider",
    "MusicBrainzGenreProvider",
    "SpotifyGenreProvider",
    "pick_musicbrainz_artist",
    "pick_spotify_artist",
]
