"""Database session management for the track cache store."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from djcrate.config.settings import TrackCacheSettings
from djcrate.domain.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class Database:
    """Database connection and session manager."""

    def __init__(self, settings: TrackCacheSettings) -> None:
        """Initialize database with settings.

        Raises:
            ConfigurationError: If no database url is configured
        """
        if not settings.is_configured():
            raise ConfigurationError("TRACK_CACHE_URL is not set")
        self.settings = settings

        engine_kwargs: dict[str, Any] = {"echo": settings.echo}
        if "sqlite" in settings.url:
            engine_kwargs["connect_args"] = {
                "check_same_thread": False,
                "timeout": 30,  # Wait up to 30s for lock
            }
        else:
            engine_kwargs["pool_pre_ping"] = True

        self._engine = create_async_engine(settings.url, **engine_kwargs)
        self._session_factory = async_sessionmaker(
            self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @asynccontextmanager
    async def session_scope(self) -> AsyncGenerator[AsyncSession, None]:
        """Provide a transactional scope for database operations."""
        async with self._session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                # Rollback on any exception, then re-raise for the store to translate.
                await session.rollback()
                raise

    async def close(self) -> None:
        """Close database connection."""
        await self._engine.dispose()

    async def create_tables(self) -> None:
        """Create the cache table if it does not exist yet."""
        from djcrate.infrastructure.persistence.models import Base

        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def drop_tables(self) -> None:
        """Drop all tables (for testing only)."""
        from djcrate.infrastructure.persistence.models import Base

        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)


__all__ = ["Database"]
