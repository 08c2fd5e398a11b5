"""Base cache interface and bounded in-memory LRU implementation."""

import asyncio
import time
from abc import ABC, abstractmethod
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any


@dataclass
class CacheEntry[V]:
    """Cache entry with value and metadata."""

    value: V
    created_at: float
    ttl_seconds: int | None

    def is_expired(self) -> bool:
        """Check if cache entry is expired (entries without ttl never expire)."""
        if self.ttl_seconds is None:
            return False
        return time.time() > (self.created_at + self.ttl_seconds)


class BaseCache[K, V](ABC):
    """Base cache interface for all cache implementations."""

    @abstractmethod
    async def get(self, key: K) -> V | None:
        """Get value from cache.

        Args:
            key: Cache key

        Returns:
            Cached value if found and not expired, None otherwise
        """
        pass

    @abstractmethod
    async def set(self, key: K, value: V, ttl_seconds: int | None = None) -> None:
        """Set value in cache.

        Args:
            key: Cache key
            value: Value to cache
            ttl_seconds: Time to live in seconds (None = until evicted)
        """
        pass

    @abstractmethod
    async def delete(self, key: K) -> bool:
        """Delete value from cache.

        Returns:
            True if deleted, False if not found
        """
        pass

    @abstractmethod
    async def clear(self) -> None:
        """Clear all entries from cache."""
        pass

    @abstractmethod
    async def exists(self, key: K) -> bool:
        """Check if key exists in cache and is not expired."""
        pass


# Hey future me, this cache lives for the WHOLE process (long-running servers included), so it
# MUST be bounded - an unbounded dict keyed by every song anyone ever looked up is a slow memory
# leak. OrderedDict gives us LRU for free: move_to_end() on every hit, popitem(last=False) evicts
# the coldest entry. The asyncio.Lock makes read-then-write safe even if several worker tasks hit
# the cache between awaits.
class LruCache[K, V](BaseCache[K, V]):
    """Bounded in-memory LRU cache with optional per-entry TTL."""

    def __init__(self, max_entries: int = 10_000) -> None:
        """Initialize LRU cache.

        Args:
            max_entries: Maximum entries kept before least-recently-used eviction
        """
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.max_entries = max_entries
        self._cache: OrderedDict[K, CacheEntry[V]] = OrderedDict()
        self._lock = asyncio.Lock()
        self._evictions = 0

    async def get(self, key: K) -> V | None:
        """Get value from cache (refreshes recency, drops expired entries)."""
        async with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                return None

            if entry.is_expired():
                del self._cache[key]
                return None

            self._cache.move_to_end(key)
            return entry.value

    async def set(self, key: K, value: V, ttl_seconds: int | None = None) -> None:
        """Set value in cache, evicting the least recently used entry when full."""
        async with self._lock:
            self._cache[key] = CacheEntry(
                value=value,
                created_at=time.time(),
                ttl_seconds=ttl_seconds,
            )
            self._cache.move_to_end(key)
            while len(self._cache) > self.max_entries:
                self._cache.popitem(last=False)
                self._evictions += 1

    async def delete(self, key: K) -> bool:
        """Delete value from cache."""
        async with self._lock:
            if key in self._cache:
                del self._cache[key]
                return True
            return False

    async def clear(self) -> None:
        """Clear all entries from cache."""
        async with self._lock:
            self._cache.clear()

    async def exists(self, key: K) -> bool:
        """Check if key exists in cache."""
        async with self._lock:
            entry = self._cache.get(key)
            return entry is not None and not entry.is_expired()

    def __len__(self) -> int:
        return len(self._cache)

    def get_stats(self) -> dict[str, Any]:
        """Get cache statistics (unlocked snapshot, for monitoring only)."""
        return {
            "total_entries": len(self._cache),
            "max_entries": self.max_entries,
            "evictions": self._evictions,
        }
