"""In-process caches for lookup results."""

from djcrate.application.cache.base_cache import BaseCache, CacheEntry, LruCache
from djcrate.application.cache.lookup_cache import LookupCacheService

__all__ = ["BaseCache", "CacheEntry", "LookupCacheService", "LruCache"]
