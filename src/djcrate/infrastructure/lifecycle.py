"""Wiring for the lookup side: clients, sources, caches, store and services from settings.

Startup order:
1. logging (so every later step can log)
2. integration clients, only for sources with credentials (MusicBrainz needs none)
3. BPM chain and genre layering on top of those clients
4. optional persistent track cache (TRACK_CACHE_URL); a broken store degrades to "no store"
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from pathlib import Path

from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError, SQLAlchemyError

from djcrate.application.cache.lookup_cache import LookupCacheService
from djcrate.application.services.bpm_provider_chain import BpmProviderChain
from djcrate.application.services.genre_resolver import (
    GenreResolver,
    GenreSource,
    select_layers,
)
from djcrate.application.services.track_metadata_service import TrackMetadataService
from djcrate.config.settings import Settings, TrackCacheSettings, get_settings
from djcrate.domain.exceptions import ConfigurationError
from djcrate.domain.ports import IBpmSource, ITrackCacheStore
from djcrate.infrastructure.integrations import (
    BaseApiClient,
    GetSongBpmClient,
    LastfmClient,
    MusicBrainzClient,
    SoundNetClient,
    SpotifyClient,
)
from djcrate.infrastructure.observability import LogMessages, configure_logging
from djcrate.infrastructure.persistence import Database, SqlTrackCacheStore
from djcrate.infrastructure.providers import (
    GetSongBpmProvider,
    LastfmGenreProvider,
    MusicBrainzGenreProvider,
    SoundNetProvider,
    SpotifyGenreProvider,
)

logger = logging.getLogger(__name__)


@dataclass
class MetadataServiceContainer:
    """Everything build_metadata_service created; close() releases it all."""

    service: TrackMetadataService
    cache: LookupCacheService
    clients: list[BaseApiClient] = field(default_factory=list)
    database: Database | None = None

    @property
    def store(self) -> ITrackCacheStore | None:
        return self.service.store

    async def close(self) -> None:
        for client in self.clients:
            await client.close()
        if self.database is not None:
            await self.database.close()
        logger.info("Metadata service shut down")


# Hey future me, SQLite won't create missing parent directories and the resulting
# "unable to open database file" is useless. Make the directory up front. In-memory SQLite and
# every other dialect are left alone.
def _ensure_sqlite_dir(settings: TrackCacheSettings) -> None:
    try:
        url = make_url(settings.url)
    except ArgumentError as exc:
        raise ConfigurationError(f"TRACK_CACHE_URL is not a valid database URL: {exc}") from exc
    if not url.get_backend_name().startswith("sqlite"):
        return
    if not url.database or url.database == ":memory:":
        return
    parent = Path(url.database).parent
    try:
        parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise ConfigurationError(
            f"Unable to create SQLite directory '{parent}': {exc}. "
            "Fix TRACK_CACHE_URL or the directory permissions."
        ) from exc


async def _open_store(
    settings: TrackCacheSettings,
) -> tuple[Database | None, ITrackCacheStore | None]:
    if not settings.is_configured():
        logger.info("TRACK_CACHE_URL not set - lookups run without a persistent cache")
        return None, None

    _ensure_sqlite_dir(settings)
    database = Database(settings)
    try:
        await database.create_tables()
    except SQLAlchemyError as e:
        logger.warning(LogMessages.cache_unavailable("create tables", str(e)))
        await database.close()
        return None, None
    return database, SqlTrackCacheStore(database)


def _build_bpm_sources(
    settings: Settings, clients: list[BaseApiClient]
) -> tuple[list[IBpmSource], GetSongBpmProvider | None]:
    sources: list[IBpmSource] = []
    getsongbpm: GetSongBpmProvider | None = None

    if settings.getsongbpm.is_configured():
        client = GetSongBpmClient(settings.getsongbpm)
        clients.append(client)
        getsongbpm = GetSongBpmProvider(client)
        sources.append(getsongbpm)
    else:
        logger.info(LogMessages.source_skipped("getsongbpm", "GETSONGBPM_API_KEY not set"))

    if settings.soundnet.is_configured():
        soundnet_client = SoundNetClient(settings.soundnet)
        clients.append(soundnet_client)
        sources.append(SoundNetProvider(soundnet_client))
    else:
        logger.info(LogMessages.source_skipped("soundnet", "RAPIDAPI_KEY not set"))

    return sources, getsongbpm


def _build_genre_sources(
    settings: Settings,
    clients: list[BaseApiClient],
    getsongbpm: GetSongBpmProvider | None,
) -> dict[str, GenreSource]:
    sources: dict[str, GenreSource] = {}
    # GetSongBPM is both a BPM source and the per-track genre side channel; one client serves both.
    if getsongbpm is not None:
        sources["getsongbpm"] = getsongbpm

    if settings.lastfm.is_configured():
        lastfm_client = LastfmClient(settings.lastfm)
        clients.append(lastfm_client)
        sources["lastfm"] = LastfmGenreProvider(lastfm_client)

    if settings.spotify.is_configured():
        spotify_client = SpotifyClient(settings.spotify)
        clients.append(spotify_client)
        sources["spotify"] = SpotifyGenreProvider(spotify_client)

    musicbrainz_client = MusicBrainzClient(settings.musicbrainz)
    clients.append(musicbrainz_client)
    sources["musicbrainz"] = MusicBrainzGenreProvider(musicbrainz_client)
    return sources


async def build_metadata_service(
    settings: Settings | None = None,
    setup_logging: bool = True,
) -> MetadataServiceContainer:
    """Build the TrackMetadataService and everything behind it.

    Raises:
        ConfigurationError: No BPM source configured, unknown genre layering,
            or an unusable TRACK_CACHE_URL
    """
    settings = settings or get_settings()
    if setup_logging:
        configure_logging(settings.log.level, settings.log.json_format)

    enrichment = settings.enrichment
    cache = LookupCacheService(
        bpm_cache_size=enrichment.bpm_cache_size,
        artist_cache_size=enrichment.artist_cache_size,
    )

    clients: list[BaseApiClient] = []
    try:
        bpm_sources, getsongbpm = _build_bpm_sources(settings, clients)
        chain = BpmProviderChain(bpm_sources, cache)
        genre_sources = _build_genre_sources(settings, clients, getsongbpm)
        resolver = GenreResolver(select_layers(enrichment.genre_layering, genre_sources), cache)
        database, store = await _open_store(settings.track_cache)
    except ConfigurationError:
        for client in clients:
            await client.close()
        raise

    service = TrackMetadataService(
        chain, resolver, store=store, max_batch=enrichment.max_lookup_batch
    )
    logger.info(
        f"Metadata service ready: BPM sources {chain.source_names}, "
        f"genre layers {resolver.layer_names} ({enrichment.genre_layering}), "
        f"track cache {'on' if store is not None else 'off'}"
    )
    return MetadataServiceContainer(
        service=service, cache=cache, clients=clients, database=database
    )


@asynccontextmanager
async def metadata_service_lifespan(
    settings: Settings | None = None,
) -> AsyncGenerator[MetadataServiceContainer, None]:
    """Build the service on enter, release clients and the database on exit."""
    container = await build_metadata_service(settings)
    try:
        yield container
    finally:
        await container.close()


__all__ = [
    "MetadataServiceContainer",
    "build_metadata_service",
    "metadata_service_lifespan",
]
