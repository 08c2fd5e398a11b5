"""Process-wide lookup caches shared by the BPM chain and the genre resolver."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from djcrate.application.cache.base_cache import LruCache
from djcrate.domain.dtos import LookupResult

logger = logging.getLogger(__name__)


# Hey future me - two caches live here:
# 1. BPM cache: CacheKey ("artist:title") -> LookupResult. Only HITS go in here, misses are
#    retried on the next run (a provider may have added the song since).
# 2. Artist-genre cache: one LRU per genre source, normalized artist key -> genre list. The
#    empty list is a TERMINAL value ("asked, nothing found") so MusicBrainz at 1 req/s is never
#    asked twice for the same obscure artist.
# Both are injected (not module globals) so tests get a fresh instance and the lifecycle module
# decides the bounds from settings.
class LookupCacheService:
    """Bounded BPM cache plus per-source artist genre caches."""

    def __init__(self, bpm_cache_size: int = 10_000, artist_cache_size: int = 5_000) -> None:
        self._bpm: LruCache[str, LookupResult] = LruCache(max_entries=bpm_cache_size)
        self._artist_cache_size = artist_cache_size
        self._artist_genres: dict[str, LruCache[str, list[str]]] = {}
        self._in_flight: dict[tuple[str, str], asyncio.Future[list[str]]] = {}

    # --- BPM ---------------------------------------------------------------------------------

    async def get_bpm(self, cache_key: str) -> LookupResult | None:
        """Cached BPM hit for a work, or None."""
        return await self._bpm.get(cache_key)

    async def set_bpm(self, cache_key: str, result: LookupResult) -> None:
        """Remember a BPM hit. Misses are ignored."""
        if not result.is_hit:
            return
        await self._bpm.set(cache_key, result)

    # --- Artist genres -----------------------------------------------------------------------

    def _artist_cache(self, source: str) -> LruCache[str, list[str]]:
        cache = self._artist_genres.get(source)
        if cache is None:
            cache = LruCache(max_entries=self._artist_cache_size)
            self._artist_genres[source] = cache
        return cache

    async def get_artist_genres(self, source: str, artist_key: str) -> list[str] | None:
        """Cached genres of an artist for one source; [] means checked, None means unknown."""
        genres = await self._artist_cache(source).get(artist_key)
        return list(genres) if genres is not None else None

    async def set_artist_genres(self, source: str, artist_key: str, genres: list[str]) -> None:
        await self._artist_cache(source).set(artist_key, list(genres))

    async def get_or_fetch_artist_genres(
        self,
        source: str,
        artist_key: str,
        fetch: Callable[[], Awaitable[list[str]]],
    ) -> list[str]:
        """Cached genres, or run fetch once and share the answer with concurrent callers.

        Two genre workers can hold batches with the same artist at the same time. The second
        one awaits the first one's request instead of firing its own.

        Only a raising fetch leaves the slot uncached. The genre resolver hands in fetches that
        already turn source failures into [], so for it a failed lookup is cached as "no
        genres" for the life of the process, the same as a real empty answer.
        """
        cached = await self.get_artist_genres(source, artist_key)
        if cached is not None:
            return cached

        slot = (source, artist_key)
        pending = self._in_flight.get(slot)
        if pending is not None:
            return list(await asyncio.shield(pending))

        future: asyncio.Future[list[str]] = asyncio.get_running_loop().create_future()
        self._in_flight[slot] = future
        try:
            genres = await fetch()
        except asyncio.CancelledError:
            future.cancel()
            raise
        except Exception as e:
            future.set_exception(e)
            # Waiters get the exception; mark it retrieved so an unwaited future doesn't warn.
            future.exception()
            raise
        else:
            await self.set_artist_genres(source, artist_key, genres)
            future.set_result(list(genres))
            return list(genres)
        finally:
            self._in_flight.pop(slot, None)

    def get_stats(self) -> dict[str, Any]:
        """Cache statistics for logging."""
        return {
            "bpm": self._bpm.get_stats(),
            "artist_genres": {
                source: cache.get_stats() for source, cache in self._artist_genres.items()
            },
        }


__all__ = ["LookupCacheService"]
