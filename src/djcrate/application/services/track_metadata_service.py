"""Track metadata service: cache store first, providers second, write everything back."""

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from djcrate.application.services.bpm_provider_chain import BpmProviderChain
from djcrate.application.services.genre_resolver import GenreResolver
from djcrate.domain.dtos import (
    NO_SOURCE,
    CacheRecord,
    GenreResult,
    LookupRequest,
    LookupResult,
)
from djcrate.domain.exceptions import CacheUnavailableError, ValidationError
from djcrate.domain.ports import ITrackCacheStore
from djcrate.domain.value_objects.track_normalization import (
    cache_key,
    normalize_artist,
    normalize_title,
)
from djcrate.infrastructure.observability.log_messages import LogMessages

logger = logging.getLogger(__name__)

# Max requests handed to the chain / resolver in one go.
MAX_LOOKUP_BATCH = 50

# Max keys per cache store read in the cache-only genre prefetch.
CACHED_GENRES_CHUNK = 100


def _chunks[T](items: Sequence[T], size: int) -> list[Sequence[T]]:
    return [items[i : i + size] for i in range(0, len(items), size)]


def _validate(requests: Sequence[LookupRequest]) -> None:
    if not requests:
        raise ValidationError("tracks array is required")


@dataclass
class CachedGenres:
    """Outcome of the cache-only genre prefetch."""

    results: list[GenreResult] = field(default_factory=list)
    uncached_track_ids: list[str] = field(default_factory=list)


# Hey future me - the three lookup entry points, HTTP-free:
#   lookup_bpm    -> store read, chain for the rest, write hits back
#   lookup_genres -> store read, resolver for the rest, write EVERY looked-up track back
#                    (empty genres too, so "nothing found" is never re-asked)
#   cached_genres -> store read only, tells the client which tracks still need a lookup
# The store is optional and fallible. A store error is logged and that call continues as if
# there were no store; it never fails the lookup.
class TrackMetadataService:
    """Lookup entry point used by the enrichment transports."""

    def __init__(
        self,
        chain: BpmProviderChain,
        resolver: GenreResolver,
        store: ITrackCacheStore | None = None,
        max_batch: int = MAX_LOOKUP_BATCH,
    ) -> None:
        self.chain = chain
        self.resolver = resolver
        self.store = store
        self.max_batch = max_batch

    # --- store helpers -----------------------------------------------------------------------

    async def _read_store(self, keys: Sequence[str]) -> dict[str, CacheRecord]:
        if self.store is None or not keys:
            return {}
        try:
            return await self.store.get_batch(keys)
        except CacheUnavailableError as e:
            logger.warning(LogMessages.cache_unavailable("read", str(e)))
            return {}

    async def _write_store(self, records: Sequence[CacheRecord]) -> None:
        if self.store is None or not records:
            return
        try:
            await self.store.upsert_batch(records)
        except CacheUnavailableError as e:
            logger.warning(LogMessages.cache_unavailable("write", str(e)))

    # --- BPM ---------------------------------------------------------------------------------

    async def lookup_bpm(
        self,
        requests: Sequence[LookupRequest],
        should_stop: Callable[[], bool] | None = None,
    ) -> list[LookupResult]:
        """BPM/key for every request, in request order.

        Raises:
            ValidationError: If requests is empty
        """
        _validate(requests)
        results: list[LookupResult] = []
        for chunk in _chunks(requests, self.max_batch):
            results.extend(await self._lookup_bpm_chunk(chunk, should_stop))
        return results

    async def _lookup_bpm_chunk(
        self,
        requests: Sequence[LookupRequest],
        should_stop: Callable[[], bool] | None,
    ) -> list[LookupResult]:
        keys = {r.track_id: cache_key(r.artist_name, r.track_name) for r in requests}
        stored = await self._read_store(list(dict.fromkeys(keys.values())))

        results: dict[str, LookupResult] = {}
        remaining: list[LookupRequest] = []
        for request in requests:
            record = stored.get(keys[request.track_id])
            if record is not None and record.bpm is not None:
                results[request.track_id] = LookupResult(
                    track_id=request.track_id,
                    source=record.bpm_source or NO_SOURCE,
                    bpm=record.bpm,
                    musical_key=record.musical_key,
                    camelot_key=record.camelot_key,
                )
            else:
                remaining.append(request)

        if remaining:
            looked_up = await self.chain.lookup(remaining, should_stop)
            to_store: list[CacheRecord] = []
            for request, result in zip(remaining, looked_up, strict=True):
                results[request.track_id] = result
                if result.is_hit:
                    to_store.append(
                        CacheRecord(
                            lookup_key=keys[request.track_id],
                            track_name=normalize_title(request.track_name),
                            artist_name=normalize_artist(request.artist_name),
                            bpm=result.bpm,
                            musical_key=result.musical_key,
                            camelot_key=result.camelot_key,
                            bpm_source=result.source,
                        )
                    )
            await self._write_store(to_store)

        return [results[request.track_id] for request in requests]

    # --- Genres ------------------------------------------------------------------------------

    async def lookup_genres(
        self,
        requests: Sequence[LookupRequest],
        should_stop: Callable[[], bool] | None = None,
    ) -> list[GenreResult]:
        """Canonical genres for every request, in request order.

        Raises:
            ValidationError: If requests is empty
        """
        _validate(requests)
        results: list[GenreResult] = []
        for chunk in _chunks(requests, self.max_batch):
            results.extend(await self._lookup_genres_chunk(chunk, should_stop))
        return results

    async def _lookup_genres_chunk(
        self,
        requests: Sequence[LookupRequest],
        should_stop: Callable[[], bool] | None,
    ) -> list[GenreResult]:
        keys = {r.track_id: cache_key(r.artist_name, r.track_name) for r in requests}
        stored = await self._read_store(list(dict.fromkeys(keys.values())))

        results: dict[str, GenreResult] = {}
        remaining: list[LookupRequest] = []
        for request in requests:
            record = stored.get(keys[request.track_id])
            if record is not None and record.genres:
                results[request.track_id] = GenreResult(
                    request.track_id, list(record.genres), record.genre_source or NO_SOURCE
                )
            elif record is not None and record.genre_source:
                # Looked up before, nothing found: don't retry.
                results[request.track_id] = GenreResult(request.track_id, [], record.genre_source)
            else:
                remaining.append(request)

        if remaining:
            resolved = await self.resolver.resolve(remaining, should_stop)
            to_store: list[CacheRecord] = []
            for request, result in zip(remaining, resolved, strict=True):
                results[request.track_id] = result
                # "none" means the run stopped before this track was asked; leave it unmarked.
                if result.source == NO_SOURCE:
                    continue
                to_store.append(
                    CacheRecord(
                        lookup_key=keys[request.track_id],
                        track_name=normalize_title(request.track_name),
                        artist_name=normalize_artist(request.artist_name),
                        genres=list(result.genres),
                        genre_source=result.source,
                    )
                )
            await self._write_store(to_store)

        return [results[request.track_id] for request in requests]

    async def cached_genres(self, requests: Sequence[LookupRequest]) -> CachedGenres:
        """Cache-only genre prefetch: cached genres plus the ids that still need a lookup.

        Never calls a provider. Tracks cached with an empty genre list count as uncached.

        Raises:
            ValidationError: If requests is empty
        """
        _validate(requests)
        outcome = CachedGenres()
        if self.store is None:
            outcome.uncached_track_ids = [request.track_id for request in requests]
            return outcome

        for chunk in _chunks(requests, CACHED_GENRES_CHUNK):
            keys = [cache_key(r.artist_name, r.track_name) for r in chunk]
            try:
                stored = await self.store.get_batch(keys)
            except CacheUnavailableError as e:
                logger.warning(LogMessages.cache_unavailable("read", str(e)))
                outcome.uncached_track_ids.extend(request.track_id for request in chunk)
                continue

            for request, key in zip(chunk, keys, strict=True):
                record = stored.get(key)
                if record is not None and record.genres:
                    outcome.results.append(
                        GenreResult(
                            request.track_id,
                            list(record.genres),
                            record.genre_source or NO_SOURCE,
                        )
                    )
                else:
                    outcome.uncached_track_ids.append(request.track_id)

        return outcome


__all__ = ["CachedGenres", "MAX_LOOKUP_BATCH", "TrackMetadataService"]
