"""Unit tests for the BPM provider fallback chain."""

from collections.abc import Callable, Sequence

import pytest

from djcrate.application.cache.lookup_cache import LookupCacheService
from djcrate.application.services.bpm_provider_chain import BpmProviderChain
from djcrate.domain.dtos import NO_SOURCE, LookupRequest, LookupResult
from djcrate.domain.exceptions import ConfigurationError, SourceRequestFailedError
from djcrate.domain.ports import IBpmSource


class FakeBpmSource(IBpmSource):
    """Answers from a {track_name: bpm} table and records what it was asked."""

    def __init__(self, name: str, bpms: dict[str, float] | None = None) -> None:
        self.name = name
        self.bpms = bpms or {}
        self.calls: list[list[str]] = []

    async def lookup_batch(
        self,
        requests: Sequence[LookupRequest],
        should_stop: Callable[[], bool] | None = None,
    ) -> list[LookupResult]:
        self.calls.append([r.track_id for r in requests])
        return [
            LookupResult(r.track_id, self.name, bpm=self.bpms.get(r.track_name))
            for r in requests
        ]


class BrokenBpmSource(IBpmSource):
    name = "broken"

    async def lookup_batch(
        self,
        requests: Sequence[LookupRequest],
        should_stop: Callable[[], bool] | None = None,
    ) -> list[LookupResult]:
        raise SourceRequestFailedError("whole batch failed", source=self.name)


class TestBpmProviderChain:
    """Tests for BpmProviderChain.lookup()."""

    def test_requires_a_source(self, lookup_cache: LookupCacheService) -> None:
        with pytest.raises(ConfigurationError):
            BpmProviderChain([], lookup_cache)

    async def test_falls_through_to_second_source(
        self, lookup_cache: LookupCacheService
    ) -> None:
        first = FakeBpmSource("a")
        second = FakeBpmSource("b", {"One More Time": 128.0})
        chain = BpmProviderChain([first, second], lookup_cache)

        [result] = await chain.lookup([LookupRequest("t1", "One More Time", "Daft Punk")])

        assert result.bpm == 128.0
        assert result.source == "b"
        assert first.calls == [["t1"]]
        assert second.calls == [["t1"]]

    async def test_first_hit_wins(self, lookup_cache: LookupCacheService) -> None:
        first = FakeBpmSource("a", {"One More Time": 122.0})
        second = FakeBpmSource("b", {"One More Time": 128.0})
        chain = BpmProviderChain([first, second], lookup_cache)

        [result] = await chain.lookup([LookupRequest("t1", "One More Time", "Daft Punk")])

        assert (result.source, result.bpm) == ("a", 122.0)
        assert second.calls == []

    async def test_only_misses_reach_next_source(
        self, lookup_cache: LookupCacheService, requests_daft_punk: list[LookupRequest]
    ) -> None:
        first = FakeBpmSource("a", {"One More Time": 122.0, "Around the World": 121.0})
        second = FakeBpmSource("b")
        chain = BpmProviderChain([first, second], lookup_cache)

        await chain.lookup(requests_daft_punk)

        assert second.calls == [["t2", "t4"]]

    async def test_nobody_knows(self, lookup_cache: LookupCacheService) -> None:
        chain = BpmProviderChain([FakeBpmSource("a"), FakeBpmSource("b")], lookup_cache)

        [result] = await chain.lookup([LookupRequest("t1", "Unknown", "Nobody")])

        assert result == LookupResult.empty("t1")
        assert result.source == NO_SOURCE

    async def test_cache_hit_keeps_original_source(
        self, lookup_cache: LookupCacheService
    ) -> None:
        source = FakeBpmSource("a", {"One More Time": 122.0, "One More Time (Live)": 122.0})
        chain = BpmProviderChain([source], lookup_cache)
        await chain.lookup([LookupRequest("t1", "One More Time", "Daft Punk")])

        [result] = await chain.lookup([LookupRequest("t9", "One More Time (Live)", "Daft Punk")])

        assert result.track_id == "t9"
        assert result.source == "a"
        assert result.bpm == 122.0
        assert source.calls == [["t1"]]

    async def test_duplicate_works_looked_up_once(self, lookup_cache: LookupCacheService) -> None:
        source = FakeBpmSource("a", {"Get Lucky": 116.0})
        chain = BpmProviderChain([source], lookup_cache)

        results = await chain.lookup(
            [
                LookupRequest("t1", "Get Lucky", "Daft Punk"),
                LookupRequest("t2", "Get Lucky (feat. Pharrell Williams)", "Daft Punk, Pharrell"),
            ]
        )

        assert source.calls == [["t1"]]
        assert [(r.track_id, r.bpm) for r in results] == [("t1", 116.0), ("t2", 116.0)]

    async def test_broken_source_skipped(self, lookup_cache: LookupCacheService) -> None:
        backup = FakeBpmSource("b", {"One More Time": 123.0})
        chain = BpmProviderChain([BrokenBpmSource(), backup], lookup_cache)

        [result] = await chain.lookup([LookupRequest("t1", "One More Time", "Daft Punk")])

        assert result.source == "b"

    async def test_stopped_run_asks_nobody(self, lookup_cache: LookupCacheService) -> None:
        source = FakeBpmSource("a", {"One More Time": 122.0})
        chain = BpmProviderChain([source], lookup_cache)

        [result] = await chain.lookup(
            [LookupRequest("t1", "One More Time", "Daft Punk")], should_stop=lambda: True
        )

        assert result.source == NO_SOURCE
        assert source.calls == []

    def test_source_names(self, lookup_cache: LookupCacheService) -> None:
        chain = BpmProviderChain([FakeBpmSource("a"), FakeBpmSource("b")], lookup_cache)
        assert chain.source_names == ["a", "b"]
