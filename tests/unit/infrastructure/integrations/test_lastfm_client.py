"""Tests for the Last.fm client."""

import pytest

from djcrate.config.settings import LastfmSettings
from djcrate.domain.dtos import RawTag
from djcrate.domain.exceptions import SourceParseError, SourceUnavailableError
from djcrate.infrastructure.integrations.lastfm_client import LastfmClient
from djcrate.infrastructure.rate_limiter import RateLimiter


@pytest.fixture
def lastfm_client(lastfm_settings: LastfmSettings, fast_rate_limiter: RateLimiter) -> LastfmClient:
    return LastfmClient(lastfm_settings, fast_rate_limiter)


class TestLastfmClientTopTags:
    """Tests for LastfmClient.get_artist_top_tags()."""

    def test_requires_api_key(self) -> None:
        with pytest.raises(SourceUnavailableError):
            LastfmClient(LastfmSettings(api_key=""))

    async def test_parses_tags(self, lastfm_client: LastfmClient, httpx_mock) -> None:
        httpx_mock.add_response(
            json={
                "toptags": {
                    "tag": [
                        {"name": "electronic", "count": 100},
                        {"name": "house", "count": "64"},
                        {"name": "seen live", "count": "n/a"},
                        {"count": 3},
                    ]
                }
            }
        )

        tags = await lastfm_client.get_artist_top_tags("Daft Punk")

        assert tags == [
            RawTag("electronic", 100.0),
            RawTag("house", 64.0),
            RawTag("seen live", 0.0),
        ]
        request = httpx_mock.get_requests()[0]
        assert request.url.params["method"] == "artist.gettoptags"
        assert request.url.params["artist"] == "Daft Punk"
        assert request.url.params["api_key"] == "lastfm-test-key"
        assert request.url.params["format"] == "json"
        await lastfm_client.close()

    async def test_single_tag_object(self, lastfm_client: LastfmClient, httpx_mock) -> None:
        httpx_mock.add_response(json={"toptags": {"tag": {"name": "techno", "count": 12}}})
        assert await lastfm_client.get_artist_top_tags("x") == [RawTag("techno", 12.0)]
        await lastfm_client.close()

    async def test_unknown_artist_error_body(
        self, lastfm_client: LastfmClient, httpx_mock
    ) -> None:
        httpx_mock.add_response(
            json={"error": 6, "message": "The artist you supplied could not be found"}
        )
        assert await lastfm_client.get_artist_top_tags("nobody") == []
        await lastfm_client.close()

    async def test_not_found_status(self, lastfm_client: LastfmClient, httpx_mock) -> None:
        httpx_mock.add_response(status_code=404)
        assert await lastfm_client.get_artist_top_tags("nobody") == []
        await lastfm_client.close()

    async def test_missing_toptags(self, lastfm_client: LastfmClient, httpx_mock) -> None:
        httpx_mock.add_response(json={"toptags": {}})
        assert await lastfm_client.get_artist_top_tags("x") == []
        await lastfm_client.close()

    async def test_tag_not_a_list(self, lastfm_client: LastfmClient, httpx_mock) -> None:
        httpx_mock.add_response(json={"toptags": {"tag": "electronic"}})
        with pytest.raises(SourceParseError):
            await lastfm_client.get_artist_top_tags("x")
        await lastfm_client.close()
