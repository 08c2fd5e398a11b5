"""Cooperative cancellation token for one enrichment run."""

import asyncio


# Hey future me - a token is never reset. Superseding a run means cancelling its token and
# handing the NEW run a fresh one, so a slow response of the old run can always tell it is stale.
class CancellationToken:
    """One-shot cancel flag that lookup loops poll before each unit of work."""

    def __init__(self) -> None:
        self._event = asyncio.Event()

    def cancel(self) -> None:
        self._event.set()

    def is_cancelled(self) -> bool:
        return self._event.is_set()

    async def wait(self) -> None:
        """Block until the token is cancelled."""
        await self._event.wait()


__all__ = ["CancellationToken"]
