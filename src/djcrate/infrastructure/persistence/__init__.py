"""Persistent track cache (SQLAlchemy) and its in-memory twin."""

from djcrate.infrastructure.persistence.database import Database
from djcrate.infrastructure.persistence.models import Base, TrackCacheModel
from djcrate.infrastructure.persistence.track_cache_store import (
    InMemoryTrackCacheStore,
    SqlTrackCacheStore,
)

__all__ = [
    "Base",
    "Database",
    "InMemoryTrackCacheStore",
    "SqlTrackCacheStore",
    "TrackCacheModel",
]
