"""Tests for the SoundNet track-analysis client."""

import pytest

from djcrate.config.settings import SoundNetSettings
from djcrate.domain.exceptions import SourceParseError, SourceUnavailableError
from djcrate.infrastructure.integrations.soundnet_client import SoundNetClient
from djcrate.infrastructure.rate_limiter import RateLimiter


@pytest.fixture
def soundnet_client(
    soundnet_settings: SoundNetSettings, fast_rate_limiter: RateLimiter
) -> SoundNetClient:
    return SoundNetClient(soundnet_settings, fast_rate_limiter)


class TestSoundNetClient:
    """Tests for SoundNetClient.search()."""

    def test_requires_api_key(self) -> None:
        with pytest.raises(SourceUnavailableError):
            SoundNetClient(SoundNetSettings(api_key=""))

    async def test_sends_rapidapi_headers(
        self, soundnet_client: SoundNetClient, httpx_mock
    ) -> None:
        httpx_mock.add_response(json=[{"tempo": 128, "key": 9, "mode": 0}])

        result = await soundnet_client.search("daft punk", "one more time")

        assert result == {"tempo": 128, "key": 9, "mode": 0}
        request = httpx_mock.get_requests()[0]
        assert request.headers["X-RapidAPI-Key"] == "rapid-test-key"
        assert request.headers["X-RapidAPI-Host"] == "track-analysis.p.rapidapi.com"
        assert request.url.params["query"] == "daft punk one more time"
        await soundnet_client.close()

    async def test_single_object_answer(
        self, soundnet_client: SoundNetClient, httpx_mock
    ) -> None:
        httpx_mock.add_response(json={"tempo": 100})
        assert await soundnet_client.search("a", "b") == {"tempo": 100}
        await soundnet_client.close()

    @pytest.mark.parametrize("payload", [[], {}])
    async def test_empty_answer_is_none(
        self, soundnet_client: SoundNetClient, httpx_mock, payload: object
    ) -> None:
        httpx_mock.add_response(json=payload)
        assert await soundnet_client.search("a", "b") is None
        await soundnet_client.close()

    async def test_non_object_result(self, soundnet_client: SoundNetClient, httpx_mock) -> None:
        httpx_mock.add_response(json=["not an object"])
        with pytest.raises(SourceParseError):
            await soundnet_client.search("a", "b")
        await soundnet_client.close()
