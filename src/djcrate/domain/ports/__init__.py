"""Port interfaces (Clean Architecture) for the enrichment pipeline.

Hey future me - services only ever talk to these ABCs. The concrete GetSongBPM / SoundNet /
Last.fm / Spotify / MusicBrainz adapters live in infrastructure/providers, the stores in
infrastructure/persistence, the transports in application/enrichment. Tests plug fakes in here.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence

from djcrate.domain.dtos import CacheRecord, GenreResult, LookupRequest, LookupResult


class IBpmSource(ABC):
    """One BPM provider inside the fallback chain."""

    name: str = "unknown"

    @abstractmethod
    async def lookup_batch(
        self,
        requests: Sequence[LookupRequest],
        should_stop: Callable[[], bool] | None = None,
    ) -> list[LookupResult]:
        """Look up BPM/key for every request.

        Must return exactly one result per request (keyed by track_id). Failures are
        returned as empty results tagged with this source's name, never raised. When should_stop
        turns True, requests not yet started are returned empty.
        """
        pass


# Yo, genre sources come in two shapes. Track sources need a title because the provider only
# exposes artist genres as a side channel of a song search (GetSongBPM). Artist sources take
# just the artist name (Last.fm, Spotify, MusicBrainz). concurrency and request_delay tell the
# resolver how hard it may push each source - the slow MusicBrainz layer runs at 1 worker.
class ITrackGenreSource(ABC):
    """Genre source keyed by a track (artist genres reached through a song lookup)."""

    name: str = "unknown"
    concurrency: int = 5
    request_delay: float = 0.1

    @abstractmethod
    async def lookup_track(self, request: LookupRequest) -> list[str]:
        """Canonical genres for the artist of this track (empty if none).

        Raises:
            ExternalServiceError: On request/parse failure
        """
        pass


class IArtistGenreSource(ABC):
    """Genre source keyed by artist name."""

    name: str = "unknown"
    concurrency: int = 5
    request_delay: float = 0.1

    @abstractmethod
    async def lookup_artist(self, artist_name: str) -> list[str]:
        """Canonical genres for this artist (empty if none).

        Raises:
            ExternalServiceError: On request/parse failure
        """
        pass


class ITrackCacheStore(ABC):
    """External persistent cache of lookup outcomes, keyed by CacheKey."""

    @abstractmethod
    async def get_batch(self, keys: Sequence[str]) -> dict[str, CacheRecord]:
        """Fetch cached records; missing keys are simply absent from the result."""
        pass

    @abstractmethod
    async def upsert_batch(self, records: Sequence[CacheRecord]) -> None:
        """Insert or field-merge records (see CacheRecord.merged_over)."""
        pass


class IEnrichmentTransport(ABC):
    """How the client-side controller reaches the lookup service.

    A failed batch raises; the controller counts it as completed without data.
    """

    @abstractmethod
    async def lookup_bpm(
        self,
        requests: Sequence[LookupRequest],
        should_stop: Callable[[], bool] | None = None,
    ) -> list[LookupResult]:
        pass

    @abstractmethod
    async def lookup_genres(
        self,
        requests: Sequence[LookupRequest],
        should_stop: Callable[[], bool] | None = None,
    ) -> list[GenreResult]:
        pass


__all__ = [
    "IArtistGenreSource",
    "IBpmSource",
    "IEnrichmentTransport",
    "ITrackCacheStore",
    "ITrackGenreSource",
]
