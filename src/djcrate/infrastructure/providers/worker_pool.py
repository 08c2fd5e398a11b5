"""Bounded worker pool used by every provider adapter."""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable

logger = logging.getLogger(__name__)


# Hey future me - this is the one place provider concurrency lives. N workers pull from ONE
# shared queue, each sleeping `delay` seconds between its own requests (only while there is
# still work queued, no pointless trailing sleep). Results are NOT returned in order: the
# handler writes into a keyed dict owned by the caller, so ordering never matters.
#
# should_stop is checked before every dequeue. A stopped worker simply leaves its loop, the
# items still queued are never handled, which is exactly "abandon without marking progress".
async def run_worker_pool[T](
    items: Iterable[T],
    handler: Callable[[T], Awaitable[None]],
    concurrency: int,
    delay: float = 0.0,
    should_stop: Callable[[], bool] | None = None,
    name: str = "pool",
) -> None:
    """Run handler over items with at most `concurrency` in flight.

    handler must not raise; exceptions escaping it are logged and the worker moves on.
    """
    queue: asyncio.Queue[T] = asyncio.Queue()
    for item in items:
        queue.put_nowait(item)

    if queue.empty():
        return

    async def worker() -> None:
        while True:
            if should_stop is not None and should_stop():
                return
            try:
                item = queue.get_nowait()
            except asyncio.QueueEmpty:
                return

            try:
                await handler(item)
            except Exception:
                logger.exception(f"{name}: handler raised, item skipped")

            if delay > 0 and not queue.empty():
                await asyncio.sleep(delay)

    worker_count = max(1, min(concurrency, queue.qsize()))
    await asyncio.gather(*(worker() for _ in range(worker_count)))


__all__ = ["run_worker_pool"]
