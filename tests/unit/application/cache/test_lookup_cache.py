"""Unit tests for the LRU cache and the lookup cache service."""

import asyncio

import pytest

from djcrate.application.cache.base_cache import LruCache
from djcrate.application.cache.lookup_cache import LookupCacheService
from djcrate.domain.dtos import LookupResult


class TestLruCache:
    """Tests for LruCache."""

    async def test_set_and_get(self) -> None:
        cache: LruCache[str, int] = LruCache(max_entries=2)
        await cache.set("a", 1)
        assert await cache.get("a") == 1
        assert await cache.get("missing") is None

    async def test_evicts_least_recently_used(self) -> None:
        cache: LruCache[str, int] = LruCache(max_entries=2)
        await cache.set("a", 1)
        await cache.set("b", 2)
        await cache.get("a")  # "b" is now the coldest entry
        await cache.set("c", 3)

        assert await cache.exists("a")
        assert not await cache.exists("b")
        assert await cache.exists("c")
        assert len(cache) == 2
        assert cache.get_stats()["evictions"] == 1

    async def test_expired_entry_dropped(self, mocker) -> None:
        cache: LruCache[str, int] = LruCache()
        mocker.patch("djcrate.application.cache.base_cache.time.time", return_value=1000.0)
        await cache.set("a", 1, ttl_seconds=10)
        mocker.patch("djcrate.application.cache.base_cache.time.time", return_value=1011.0)

        assert await cache.get("a") is None
        assert len(cache) == 0

    async def test_delete_and_clear(self) -> None:
        cache: LruCache[str, int] = LruCache()
        await cache.set("a", 1)
        await cache.set("b", 2)
        assert await cache.delete("a") is True
        assert await cache.delete("a") is False
        await cache.clear()
        assert len(cache) == 0

    def test_rejects_zero_size(self) -> None:
        with pytest.raises(ValueError):
            LruCache(max_entries=0)


class TestLookupCacheServiceBpm:
    """Tests for the BPM side of LookupCacheService."""

    async def test_stores_hits_only(self, lookup_cache: LookupCacheService) -> None:
        await lookup_cache.set_bpm("daft punk:one more time", LookupResult.empty("t1", "soundnet"))
        assert await lookup_cache.get_bpm("daft punk:one more time") is None

        hit = LookupResult("t1", "getsongbpm", bpm=123.0)
        await lookup_cache.set_bpm("daft punk:one more time", hit)
        assert await lookup_cache.get_bpm("daft punk:one more time") == hit

    async def test_bpm_cache_is_bounded(self) -> None:
        cache = LookupCacheService(bpm_cache_size=1)
        await cache.set_bpm("a:1", LookupResult("t1", "x", bpm=100.0))
        await cache.set_bpm("b:2", LookupResult("t2", "x", bpm=110.0))
        assert await cache.get_bpm("a:1") is None
        assert cache.get_stats()["bpm"]["total_entries"] == 1


class TestLookupCacheServiceArtistGenres:
    """Tests for per-source artist genre caching."""

    async def test_empty_list_is_terminal(self, lookup_cache: LookupCacheService) -> None:
        assert await lookup_cache.get_artist_genres("musicbrainz", "nobody") is None
        await lookup_cache.set_artist_genres("musicbrainz", "nobody", [])
        assert await lookup_cache.get_artist_genres("musicbrainz", "nobody") == []

    async def test_sources_are_separate(self, lookup_cache: LookupCacheService) -> None:
        await lookup_cache.set_artist_genres("lastfm", "bicep", ["electronic"])
        assert await lookup_cache.get_artist_genres("musicbrainz", "bicep") is None

    async def test_returns_copies(self, lookup_cache: LookupCacheService) -> None:
        await lookup_cache.set_artist_genres("lastfm", "bicep", ["electronic"])
        genres = await lookup_cache.get_artist_genres("lastfm", "bicep")
        assert genres is not None
        genres.append("mutated")
        assert await lookup_cache.get_artist_genres("lastfm", "bicep") == ["electronic"]

    async def test_get_or_fetch_caches_answer(self, lookup_cache: LookupCacheService) -> None:
        calls = 0

        async def fetch() -> list[str]:
            nonlocal calls
            calls += 1
            return ["techno"]

        assert await lookup_cache.get_or_fetch_artist_genres("lastfm", "x", fetch) == ["techno"]
        assert await lookup_cache.get_or_fetch_artist_genres("lastfm", "x", fetch) == ["techno"]
        assert calls == 1

    async def test_concurrent_fetches_share_one_request(
        self, lookup_cache: LookupCacheService
    ) -> None:
        calls = 0
        release = asyncio.Event()

        async def fetch() -> list[str]:
            nonlocal calls
            calls += 1
            await release.wait()
            return ["house"]

        first = asyncio.create_task(lookup_cache.get_or_fetch_artist_genres("s", "a", fetch))
        second = asyncio.create_task(lookup_cache.get_or_fetch_artist_genres("s", "a", fetch))
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        release.set()

        assert await first == ["house"]
        assert await second == ["house"]
        assert calls == 1

    async def test_failed_fetch_not_cached(self, lookup_cache: LookupCacheService) -> None:
        async def broken() -> list[str]:
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            await lookup_cache.get_or_fetch_artist_genres("s", "a", broken)
        assert await lookup_cache.get_artist_genres("s", "a") is None
