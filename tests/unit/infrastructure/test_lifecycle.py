"""Tests for wiring the metadata service from settings."""

from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from djcrate.config.settings import (
    EnrichmentSettings,
    GetSongBpmSettings,
    LastfmSettings,
    LogSettings,
    MusicBrainzSettings,
    Settings,
    SoundNetSettings,
    SpotifySettings,
    TrackCacheSettings,
)
from djcrate.domain.exceptions import ConfigurationError
from djcrate.infrastructure.lifecycle import (
    MetadataServiceContainer,
    build_metadata_service,
    metadata_service_lifespan,
)


def _settings(
    getsongbpm: str = "",
    rapidapi: str = "",
    lastfm: str = "",
    cache_url: str = "",
    layering: str = "default",
) -> Settings:
    """Settings with every group spelled out, so the environment can't leak in."""
    return Settings(
        getsongbpm=GetSongBpmSettings(api_key=getsongbpm),
        soundnet=SoundNetSettings(api_key=rapidapi),
        lastfm=LastfmSettings(api_key=lastfm),
        spotify=SpotifySettings(client_id="", client_secret=""),
        musicbrainz=MusicBrainzSettings(),
        track_cache=TrackCacheSettings(url=cache_url),
        enrichment=EnrichmentSettings(genre_layering=layering),
        log=LogSettings(),
    )


class TestBuildMetadataService:
    """Tests for build_metadata_service()."""

    async def test_requires_a_bpm_source(self) -> None:
        with pytest.raises(ConfigurationError):
            await build_metadata_service(_settings(), setup_logging=False)

    async def test_getsongbpm_default_layering(self) -> None:
        container = await build_metadata_service(
            _settings(getsongbpm="key"), setup_logging=False
        )

        assert container.service.chain.source_names == ["getsongbpm"]
        assert container.service.resolver.layer_names == ["getsongbpm", "musicbrainz"]
        assert container.store is None
        assert container.database is None
        await container.close()

    async def test_layering_shrinks_to_musicbrainz(self) -> None:
        container = await build_metadata_service(
            _settings(rapidapi="key"), setup_logging=False
        )

        assert container.service.chain.source_names == ["soundnet"]
        assert container.service.resolver.layer_names == ["musicbrainz"]
        await container.close()

    async def test_lastfm_layering(self) -> None:
        container = await build_metadata_service(
            _settings(getsongbpm="key", rapidapi="key", lastfm="key", layering="lastfm"),
            setup_logging=False,
        )

        assert container.service.chain.source_names == ["getsongbpm", "soundnet"]
        assert container.service.resolver.layer_names == ["lastfm", "musicbrainz"]
        assert len(container.clients) == 4
        await container.close()

    async def test_unknown_layering(self) -> None:
        with pytest.raises(ConfigurationError):
            await build_metadata_service(
                _settings(getsongbpm="key", layering="soulseek"), setup_logging=False
            )

    async def test_sqlite_store_created(self, tmp_path: Path) -> None:
        db_path = tmp_path / "nested" / "dir" / "cache.db"
        container = await build_metadata_service(
            _settings(getsongbpm="key", cache_url=f"sqlite+aiosqlite:///{db_path}"),
            setup_logging=False,
        )

        assert container.store is not None
        assert container.database is not None
        assert db_path.parent.is_dir()
        await container.close()

    async def test_invalid_cache_url(self) -> None:
        with pytest.raises(ConfigurationError):
            await build_metadata_service(
                _settings(getsongbpm="key", cache_url="not a database url"),
                setup_logging=False,
            )


class TestLifespan:
    """Tests for metadata_service_lifespan()."""

    async def test_closes_on_exit(self, mocker) -> None:
        close = mocker.patch.object(MetadataServiceContainer, "close", new_callable=AsyncMock)

        async with metadata_service_lifespan(_settings(getsongbpm="key")) as container:
            assert container.service is not None
            close.assert_not_awaited()

        close.assert_awaited_once()
