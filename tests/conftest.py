"""Shared pytest fixtures."""

import pytest

from djcrate.application.cache.lookup_cache import LookupCacheService
from djcrate.config.settings import (
    GetSongBpmSettings,
    LastfmSettings,
    MusicBrainzSettings,
    SoundNetSettings,
    SpotifySettings,
)
from djcrate.domain.dtos import LookupRequest
from djcrate.infrastructure.rate_limiter import RateLimiter, RateLimiterConfig


@pytest.fixture
def fast_rate_limiter() -> RateLimiter:
    """Rate limiter that never makes a test wait (429 backoff is capped at 0s)."""
    return RateLimiter(
        config=RateLimiterConfig(
            max_tokens=1000,
            refill_rate=10_000.0,
            max_backoff_seconds=0.0,
            initial_backoff_seconds=0.0,
        ),
        name="test",
    )


@pytest.fixture
def lookup_cache() -> LookupCacheService:
    """Fresh process-wide cache per test."""
    return LookupCacheService(bpm_cache_size=100, artist_cache_size=100)


@pytest.fixture
def requests_daft_punk() -> list[LookupRequest]:
    """Three tracks of one artist plus one of another."""
    return [
        LookupRequest("t1", "One More Time", "Daft Punk"),
        LookupRequest("t2", "Get Lucky (feat. Pharrell Williams)", "Daft Punk, Pharrell Williams"),
        LookupRequest("t3", "Around the World", "Daft Punk"),
        LookupRequest("t4", "Windowlicker", "Aphex Twin"),
    ]


@pytest.fixture
def getsongbpm_settings() -> GetSongBpmSettings:
    return GetSongBpmSettings(api_key="gsb-test-key")


@pytest.fixture
def soundnet_settings() -> SoundNetSettings:
    return SoundNetSettings(api_key="rapid-test-key")


@pytest.fixture
def lastfm_settings() -> LastfmSettings:
    return LastfmSettings(api_key="lastfm-test-key")


@pytest.fixture
def spotify_settings() -> SpotifySettings:
    return SpotifySettings(client_id="client-id", client_secret="client-secret")


@pytest.fixture
def musicbrainz_settings() -> MusicBrainzSettings:
    return MusicBrainzSettings(app_name="TestApp", app_version="1.0.0", contact="test@example.com")
