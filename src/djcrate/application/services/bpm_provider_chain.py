"""Ordered BPM provider fallback chain with a process-wide cache."""

import logging
from collections.abc import Callable, Sequence

from djcrate.application.cache.lookup_cache import LookupCacheService
from djcrate.domain.dtos import LookupRequest, LookupResult
from djcrate.domain.exceptions import ConfigurationError, ExternalServiceError
from djcrate.domain.ports import IBpmSource
from djcrate.domain.value_objects.track_normalization import cache_key
from djcrate.infrastructure.observability.log_messages import LogMessages

logger = logging.getLogger(__name__)


# Hey future me - this is the BPM engine. Per batch:
# 1. BPM cache by CacheKey - a hit keeps its ORIGINAL source but gets the caller's track_id
# 2. requests sharing a CacheKey are looked up ONCE (one representative per work)
# 3. sources are asked in order, each only for what's still missing; first hit wins
# 4. whatever nobody knows gets the "none" sentinel
# Sources never raise (PooledBpmSource turns failures into misses), but a broken custom source
# must not take the whole batch down, so the loop still guards against ExternalServiceError.
class BpmProviderChain:
    """First-hit-wins chain over the configured BPM sources."""

    def __init__(self, sources: Sequence[IBpmSource], cache: LookupCacheService) -> None:
        """
        Args:
            sources: BPM sources in priority order (only configured ones)
            cache: Process-wide lookup cache

        Raises:
            ConfigurationError: If no source is configured
        """
        if not sources:
            raise ConfigurationError(
                "No BPM provider configured. Set GETSONGBPM_API_KEY or RAPIDAPI_KEY."
            )
        self.sources = list(sources)
        self.cache = cache

    @property
    def source_names(self) -> list[str]:
        return [source.name for source in self.sources]

    async def lookup(
        self,
        requests: Sequence[LookupRequest],
        should_stop: Callable[[], bool] | None = None,
    ) -> list[LookupResult]:
        """One result per request, in request order."""
        results: dict[str, LookupResult] = {}

        # Group by work so duplicates (same song from two playlists) cost one lookup.
        works: dict[str, list[LookupRequest]] = {}
        for request in requests:
            works.setdefault(cache_key(request.artist_name, request.track_name), []).append(
                request
            )

        pending: dict[str, LookupRequest] = {}
        for key, group in works.items():
            cached = await self.cache.get_bpm(key)
            if cached is not None:
                for request in group:
                    results[request.track_id] = cached.with_track_id(request.track_id)
            else:
                pending[key] = group[0]
        cached_count = len(results)

        for source in self.sources:
            if not pending or (should_stop is not None and should_stop()):
                break

            try:
                source_results = await source.lookup_batch(list(pending.values()), should_stop)
            except ExternalServiceError as e:
                logger.warning(LogMessages.source_failed(source.name, "batch", str(e)))
                continue

            by_track_id = {result.track_id: result for result in source_results}
            for key, representative in list(pending.items()):
                result = by_track_id.get(representative.track_id)
                if result is None or not result.is_hit:
                    continue
                await self.cache.set_bpm(key, result)
                for request in works[key]:
                    results[request.track_id] = result.with_track_id(request.track_id)
                del pending[key]

        hits = sum(1 for result in results.values() if result.is_hit)
        logger.info(LogMessages.lookup_completed("BPM", len(requests), hits, cached_count))

        return [
            results.get(request.track_id) or LookupResult.empty(request.track_id)
            for request in requests
        ]


__all__ = ["BpmProviderChain"]
