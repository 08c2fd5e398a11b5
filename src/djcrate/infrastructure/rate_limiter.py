"""
Rate limiter for external metadata API calls.

Hey future me - every integration client owns one of these and runs EVERY request through
it. Token bucket with adaptive backoff:
- Bucket holds max_tokens, refilled at refill_rate tokens/sec
- Each request consumes one token, an empty bucket means waiting
- On 429: honour Retry-After if the API sent one, else back off exponentially
  (initial, x2, x4 ...), capped at max_backoff_seconds
- After a successful request the backoff resets

The per-source presets are conservative on purpose. MusicBrainz in particular bans clients
that go over 1 req/s, so it gets a bucket of ONE token (no burst at all).

USAGE:
    limiter = RateLimiter.for_source("getsongbpm")

    async with limiter:
        response = await client.get(url)

    # On 429:
    await limiter.handle_rate_limit_response(retry_after)
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


@dataclass
class RateLimiterConfig:
    """Configuration for rate limiter.

    max_backoff_seconds must stay high enough to honour real Retry-After values, otherwise we
    ignore the header and walk straight into the next 429.
    """

    max_tokens: int = 10  # Bucket size
    refill_rate: float = 2.0  # Tokens per second
    max_backoff_seconds: float = 600.0
    initial_backoff_seconds: float = 1.0  # First 429 wait
    backoff_multiplier: float = 2.0  # Exponential backoff factor
    max_retries: int = 3  # 429 retries before a request is given up


# Per-source presets. Keys match the source names used in results and logs.
PRESETS: dict[str, RateLimiterConfig] = {
    "getsongbpm": RateLimiterConfig(
        max_tokens=5,
        refill_rate=10.0,
        max_backoff_seconds=60.0,
        initial_backoff_seconds=1.0,
    ),
    "soundnet": RateLimiterConfig(
        max_tokens=3,
        refill_rate=5.0,
        max_backoff_seconds=60.0,
        initial_backoff_seconds=1.0,
    ),
    "lastfm": RateLimiterConfig(
        max_tokens=8,
        refill_rate=5.0,
        max_backoff_seconds=60.0,
        initial_backoff_seconds=1.0,
    ),
    "spotify": RateLimiterConfig(
        max_tokens=10,
        refill_rate=2.0,
        max_backoff_seconds=600.0,  # Spotify can send very long Retry-After values
        initial_backoff_seconds=1.0,
    ),
    "musicbrainz": RateLimiterConfig(
        max_tokens=1,  # No burst!
        refill_rate=1.0,  # Exactly 1 req/sec
        max_backoff_seconds=120.0,
        initial_backoff_seconds=2.0,
    ),
}


@dataclass
class RateLimiter:
    """Token Bucket Rate Limiter with adaptive backoff.

    Use it as an async context manager for automatic token handling.

    Attributes:
        config: Rate limiter configuration
        name: Source name, used in log lines
    """

    config: RateLimiterConfig = field(default_factory=RateLimiterConfig)
    name: str = "default"

    # Internal state (not in __init__ signature)
    _tokens: float = field(default=0.0, init=False)
    _last_refill: float = field(default_factory=time.monotonic, init=False)
    _current_backoff: float = field(default=0.0, init=False)
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False)

    def __post_init__(self) -> None:
        """Initialize tokens to max capacity."""
        self._tokens = float(self.config.max_tokens)
        self._current_backoff = self.config.initial_backoff_seconds

    @classmethod
    def for_source(cls, name: str) -> "RateLimiter":
        """Create a rate limiter with the preset for a source (defaults if unknown)."""
        preset = PRESETS.get(name)
        config = (
            RateLimiterConfig(**vars(preset)) if preset is not None else RateLimiterConfig()
        )
        return cls(config=config, name=name)

    @property
    def max_retries(self) -> int:
        return self.config.max_retries

    def _refill_tokens(self) -> None:
        """Refill tokens based on elapsed time."""
        now = time.monotonic()
        elapsed = now - self._last_refill

        new_tokens = elapsed * self.config.refill_rate
        self._tokens = min(self.config.max_tokens, self._tokens + new_tokens)
        self._last_refill = now

    async def acquire(self) -> None:
        """Acquire one token, waiting if necessary."""
        async with self._lock:
            self._refill_tokens()

            while self._tokens < 1.0:
                wait_time = (1.0 - self._tokens) / self.config.refill_rate
                logger.debug(
                    f"RateLimiter[{self.name}]: No tokens available, waiting {wait_time:.2f}s"
                )

                # Release lock while waiting
                self._lock.release()
                try:
                    await asyncio.sleep(wait_time)
                finally:
                    await self._lock.acquire()

                self._refill_tokens()

            self._tokens -= 1.0

    async def handle_rate_limit_response(self, retry_after: float | None = None) -> float:
        """Handle a 429 rate limit response with adaptive backoff.

        Args:
            retry_after: Retry-After header from API response (seconds)

        Returns:
            The actual wait time used
        """
        async with self._lock:
            if retry_after is not None:
                wait_time = float(retry_after)
            else:
                wait_time = self._current_backoff

            wait_time = min(wait_time, self.config.max_backoff_seconds)

            logger.warning(
                f"RateLimiter[{self.name}]: 429 Rate Limited! "
                f"Waiting {wait_time:.1f}s before retry "
                f"(backoff level: {self._current_backoff:.1f}s)"
            )

            self._current_backoff = min(
                self._current_backoff * self.config.backoff_multiplier,
                self.config.max_backoff_seconds,
            )

            # Clear tokens (force wait)
            self._tokens = 0.0

        # Wait outside lock
        await asyncio.sleep(wait_time)
        return wait_time

    def reset_backoff(self) -> None:
        """Reset backoff after a successful request."""
        self._current_backoff = self.config.initial_backoff_seconds

    async def __aenter__(self) -> "RateLimiter":
        """Enter async context - acquire token."""
        await self.acquire()
        return self

    async def __aexit__(
        self, exc_type: type | None, exc_val: Exception | None, exc_tb: object
    ) -> None:
        """Exit async context."""
        if exc_type is None:
            self.reset_backoff()

    @property
    def available_tokens(self) -> float:
        """Get current available tokens (for debugging)."""
        self._refill_tokens()
        return self._tokens

    @property
    def current_backoff(self) -> float:
        return self._current_backoff


__all__ = ["PRESETS", "RateLimiter", "RateLimiterConfig"]
