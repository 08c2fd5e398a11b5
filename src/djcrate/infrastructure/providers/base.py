"""Shared pieces of the provider adapters: pooled BPM lookup, value parsing, Camelot backfill."""

import logging
import math
from abc import abstractmethod
from collections.abc import Callable, Sequence
from typing import Any

from djcrate.domain.dtos import LookupRequest, LookupResult
from djcrate.domain.exceptions import ExternalServiceError, RateLimitExceededError
from djcrate.domain.ports import IBpmSource
from djcrate.domain.value_objects.camelot import open_key_to_camelot, to_camelot_key
from djcrate.infrastructure.observability.log_messages import LogMessages
from djcrate.infrastructure.providers.worker_pool import run_worker_pool

logger = logging.getLogger(__name__)


def positive_float(value: Any) -> float | None:
    """Parse a tempo-like value; zero, negative, non-finite or garbage become None."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) and number > 0 else None


def clean_str(value: Any) -> str | None:
    """Non-empty stripped string, else None."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


# Hey future me - Camelot backfill. Providers send Camelot codes in various shapes (real
# Camelot, Open Key "8d", or nothing at all). We take the provider's code when it converts,
# else derive it from the musical key name. A result only ends up without a Camelot code when
# neither is usable.
def resolve_camelot(camelot: str | None, musical_key: str | None) -> str | None:
    """Camelot code from a provider code (Camelot or Open Key), else from the key name."""
    return (
        to_camelot_key(camelot)
        or open_key_to_camelot(camelot)
        or to_camelot_key(musical_key)
    )


def describe(request: LookupRequest) -> str:
    """'Artist - Title' for log lines."""
    return f"{request.artist_name} - {request.track_name}"


class PooledBpmSource(IBpmSource):
    """IBpmSource that looks tracks up one by one through a bounded worker pool.

    Subclasses implement _lookup_single, which may raise ExternalServiceError. Every failure
    becomes an empty result tagged with the source name.
    """

    name = "unknown"
    concurrency = 1
    request_delay = 0.0

    @abstractmethod
    async def _lookup_single(self, request: LookupRequest) -> LookupResult:
        pass

    async def _safe_lookup(self, request: LookupRequest) -> LookupResult:
        try:
            return await self._lookup_single(request)
        except RateLimitExceededError as e:
            logger.warning(LogMessages.source_rate_limited(self.name, e.retry_after))
        except ExternalServiceError as e:
            logger.warning(LogMessages.source_failed(self.name, describe(request), str(e)))
        return LookupResult.empty(request.track_id, self.name)

    async def lookup_batch(
        self,
        requests: Sequence[LookupRequest],
        should_stop: Callable[[], bool] | None = None,
    ) -> list[LookupResult]:
        results: dict[str, LookupResult] = {}

        async def handle(request: LookupRequest) -> None:
            results[request.track_id] = await self._safe_lookup(request)

        await run_worker_pool(
            requests,
            handle,
            concurrency=self.concurrency,
            delay=self.request_delay,
            should_stop=should_stop,
            name=self.name,
        )
        return [
            results.get(request.track_id) or LookupResult.empty(request.track_id, self.name)
            for request in requests
        ]


__all__ = [
    "PooledBpmSource",
    "clean_str",
    "describe",
    "positive_float",
    "resolve_camelot",
]
