"""Unit tests for the enrichment transports."""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from djcrate.application.enrichment.transports import HttpEnrichmentTransport, InProcessTransport
from djcrate.application.services.track_metadata_service import CachedGenres
from djcrate.domain.dtos import NO_SOURCE, GenreResult, LookupRequest, LookupResult
from djcrate.domain.exceptions import SourceParseError, SourceRequestFailedError
from djcrate.infrastructure.rate_limiter import RateLimiter

BASE_URL = "http://lookup.test"


@pytest.fixture
def http_transport(fast_rate_limiter: RateLimiter) -> HttpEnrichmentTransport:
    return HttpEnrichmentTransport(BASE_URL + "/", fast_rate_limiter, max_batch=2)


class TestInProcessTransport:
    """Tests for the same-process transport."""

    async def test_delegates_to_service(self) -> None:
        service = MagicMock()
        service.lookup_bpm = AsyncMock(return_value=[LookupResult.empty("t1")])
        service.lookup_genres = AsyncMock(return_value=[GenreResult("t1", [], "musicbrainz")])
        service.cached_genres = AsyncMock(return_value=CachedGenres([], ["t1"]))
        transport = InProcessTransport(service)
        requests = [LookupRequest("t1", "x", "y")]

        def stop() -> bool:
            return False

        assert await transport.lookup_bpm(requests, stop) == [LookupResult.empty("t1")]
        service.lookup_bpm.assert_awaited_once_with(requests, stop)
        await transport.lookup_genres(requests, stop)
        service.lookup_genres.assert_awaited_once_with(requests, stop)
        assert (await transport.cached_genres(requests)).uncached_track_ids == ["t1"]


class TestHttpEnrichmentTransport:
    """Tests for the HTTP transport and its wire format."""

    async def test_bpm_payload_and_parsing(
        self, http_transport: HttpEnrichmentTransport, httpx_mock
    ) -> None:
        httpx_mock.add_response(
            method="POST",
            url=f"{BASE_URL}/api/bpm",
            json={
                "results": [
                    {
                        "trackId": "t1",
                        "bpm": 123,
                        "musicalKey": "A minor",
                        "camelotKey": "8A",
                        "source": "getsongbpm",
                    },
                    {"trackId": "t2", "bpm": None, "source": "none"},
                    {"bpm": 99},
                ]
            },
        )

        results = await http_transport.lookup_bpm(
            [LookupRequest("t1", "One More Time", "Daft Punk"), LookupRequest("t2", "x", "y")]
        )

        assert results == [
            LookupResult("t1", "getsongbpm", bpm=123.0, musical_key="A minor", camelot_key="8A"),
            LookupResult("t2", NO_SOURCE),
        ]
        body = json.loads(httpx_mock.get_requests()[0].content)
        assert body["tracks"][0] == {
            "trackId": "t1",
            "trackName": "One More Time",
            "artistName": "Daft Punk",
        }
        await http_transport.close()

    async def test_bpm_chunked(self, http_transport: HttpEnrichmentTransport, httpx_mock) -> None:
        httpx_mock.add_response(method="POST", json={"results": []})
        httpx_mock.add_response(method="POST", json={"results": []})

        requests = [LookupRequest(f"t{i}", "x", "y") for i in range(3)]
        await http_transport.lookup_bpm(requests)

        sizes = [len(json.loads(r.content)["tracks"]) for r in httpx_mock.get_requests()]
        assert sizes == [2, 1]
        await http_transport.close()

    async def test_stop_before_next_chunk(
        self, http_transport: HttpEnrichmentTransport, httpx_mock
    ) -> None:
        requests = [LookupRequest(f"t{i}", "x", "y") for i in range(3)]
        assert await http_transport.lookup_bpm(requests, should_stop=lambda: True) == []
        assert httpx_mock.get_requests() == []

    async def test_genres(self, http_transport: HttpEnrichmentTransport, httpx_mock) -> None:
        httpx_mock.add_response(
            method="POST",
            url=f"{BASE_URL}/api/genres",
            json={
                "results": [
                    {"trackId": "t1", "genres": ["house", 7, "disco"], "source": "lastfm"},
                    {"trackId": "t2", "genres": "house"},
                ]
            },
        )

        results = await http_transport.lookup_genres(
            [LookupRequest("t1", "x", "y"), LookupRequest("t2", "x", "y")]
        )

        assert results == [
            GenreResult("t1", ["house", "disco"], "lastfm"),
            GenreResult("t2", [], NO_SOURCE),
        ]
        await http_transport.close()

    async def test_cached_genres(
        self, http_transport: HttpEnrichmentTransport, httpx_mock
    ) -> None:
        httpx_mock.add_response(
            method="POST",
            url=f"{BASE_URL}/api/genres/cached",
            json={
                "results": [{"trackId": "t1", "genres": ["house"], "source": "getsongbpm"}],
                "uncachedTrackIds": ["t2", 3],
            },
        )

        outcome = await http_transport.cached_genres(
            [LookupRequest("t1", "x", "y"), LookupRequest("t2", "x", "y")]
        )

        assert outcome.results == [GenreResult("t1", ["house"], "getsongbpm")]
        assert outcome.uncached_track_ids == ["t2"]
        await http_transport.close()

    async def test_missing_results_array(
        self, http_transport: HttpEnrichmentTransport, httpx_mock
    ) -> None:
        httpx_mock.add_response(method="POST", json={"error": "tracks array is required"})
        with pytest.raises(SourceParseError):
            await http_transport.lookup_genres([LookupRequest("t1", "x", "y")])
        await http_transport.close()

    async def test_server_error(self, http_transport: HttpEnrichmentTransport, httpx_mock) -> None:
        httpx_mock.add_response(method="POST", status_code=500)
        with pytest.raises(SourceRequestFailedError):
            await http_transport.lookup_bpm([LookupRequest("t1", "x", "y")])
        await http_transport.close()
