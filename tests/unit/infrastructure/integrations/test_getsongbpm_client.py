"""Tests for the GetSongBPM client."""

import pytest

from djcrate.config.settings import GetSongBpmSettings
from djcrate.domain.exceptions import SourceParseError, SourceUnavailableError
from djcrate.infrastructure.integrations.getsongbpm_client import GetSongBpmClient
from djcrate.infrastructure.rate_limiter import RateLimiter


@pytest.fixture
def getsongbpm_client(
    getsongbpm_settings: GetSongBpmSettings, fast_rate_limiter: RateLimiter
) -> GetSongBpmClient:
    return GetSongBpmClient(getsongbpm_settings, fast_rate_limiter)


class TestGetSongBpmClient:
    """Tests for GetSongBpmClient.search_song()."""

    def test_requires_api_key(self) -> None:
        with pytest.raises(SourceUnavailableError):
            GetSongBpmClient(GetSongBpmSettings(api_key=""))

    async def test_search_sends_lookup_query(
        self, getsongbpm_client: GetSongBpmClient, httpx_mock
    ) -> None:
        httpx_mock.add_response(
            json={"search": [{"id": "s1", "tempo": "123", "key_of": "G♯m"}]}
        )

        song = await getsongbpm_client.search_song("one more time", "daft punk")

        assert song == {"id": "s1", "tempo": "123", "key_of": "G♯m"}
        request = httpx_mock.get_requests()[0]
        assert request.url.path == "/search/"
        assert request.url.params["api_key"] == "gsb-test-key"
        assert request.url.params["type"] == "song"
        assert request.url.params["lookup"] == "song:one more time artist:daft punk"
        await getsongbpm_client.close()

    async def test_no_result_is_none(
        self, getsongbpm_client: GetSongBpmClient, httpx_mock
    ) -> None:
        httpx_mock.add_response(json={"search": {"error": "no result"}})
        assert await getsongbpm_client.search_song("x", "y") is None
        await getsongbpm_client.close()

    async def test_empty_list_is_none(
        self, getsongbpm_client: GetSongBpmClient, httpx_mock
    ) -> None:
        httpx_mock.add_response(json={"search": []})
        assert await getsongbpm_client.search_song("x", "y") is None
        await getsongbpm_client.close()

    async def test_non_object_payload(
        self, getsongbpm_client: GetSongBpmClient, httpx_mock
    ) -> None:
        httpx_mock.add_response(json=["unexpected"])
        with pytest.raises(SourceParseError):
            await getsongbpm_client.search_song("x", "y")
        await getsongbpm_client.close()
