"""Track cache store implementations (ITrackCacheStore port)."""

import asyncio
import logging
from collections.abc import Sequence

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from djcrate.domain.dtos import CacheRecord
from djcrate.domain.exceptions import CacheUnavailableError
from djcrate.domain.ports import ITrackCacheStore
from djcrate.infrastructure.persistence.database import Database
from djcrate.infrastructure.persistence.models import TrackCacheModel

logger = logging.getLogger(__name__)

# Keep IN (...) clauses well under SQLite's bound-parameter limit.
STORE_CHUNK_SIZE = 100


def _chunks[T](items: Sequence[T], size: int) -> list[Sequence[T]]:
    return [items[i : i + size] for i in range(0, len(items), size)]


def _collapse(records: Sequence[CacheRecord]) -> dict[str, CacheRecord]:
    """Fold duplicate keys within one write (later records merge over earlier ones)."""
    collapsed: dict[str, CacheRecord] = {}
    for record in records:
        existing = collapsed.get(record.lookup_key)
        collapsed[record.lookup_key] = record.merged_over(existing) if existing else record
    return collapsed


class SqlTrackCacheStore(ITrackCacheStore):
    """SQLAlchemy-backed track cache.

    Any database error surfaces as CacheUnavailableError so the metadata service can bypass
    the store for that call.
    """

    def __init__(self, database: Database, chunk_size: int = STORE_CHUNK_SIZE) -> None:
        self.database = database
        self.chunk_size = chunk_size

    async def get_batch(self, keys: Sequence[str]) -> dict[str, CacheRecord]:
        unique_keys = list(dict.fromkeys(keys))
        found: dict[str, CacheRecord] = {}
        try:
            async with self.database.session_scope() as session:
                for chunk in _chunks(unique_keys, self.chunk_size):
                    stmt = select(TrackCacheModel).where(TrackCacheModel.lookup_key.in_(chunk))
                    result = await session.execute(stmt)
                    for model in result.scalars():
                        found[model.lookup_key] = model.to_record()
        except SQLAlchemyError as e:
            raise CacheUnavailableError(f"Track cache read failed: {e}") from e
        return found

    # Hey future me - the merge rule (only non-None fields overwrite) lives in
    # CacheRecord.merged_over, NOT here. We load existing rows, merge in Python, write back.
    # That's two round trips per chunk but keeps SQLite and Postgres behaviour identical.
    async def upsert_batch(self, records: Sequence[CacheRecord]) -> None:
        collapsed = _collapse(records)
        if not collapsed:
            return

        try:
            async with self.database.session_scope() as session:
                for chunk in _chunks(list(collapsed), self.chunk_size):
                    stmt = select(TrackCacheModel).where(TrackCacheModel.lookup_key.in_(chunk))
                    result = await session.execute(stmt)
                    existing = {model.lookup_key: model for model in result.scalars()}

                    for key in chunk:
                        record = collapsed[key]
                        model = existing.get(key)
                        if model is None:
                            session.add(TrackCacheModel.from_record(record))
                        else:
                            model.apply(record.merged_over(model.to_record()))
        except SQLAlchemyError as e:
            raise CacheUnavailableError(f"Track cache write failed: {e}") from e

        logger.debug(f"Track cache upserted {len(collapsed)} record(s)")


class InMemoryTrackCacheStore(ITrackCacheStore):
    """Dict-backed track cache for tests and single-process use."""

    def __init__(self) -> None:
        self._records: dict[str, CacheRecord] = {}
        self._lock = asyncio.Lock()

    async def get_batch(self, keys: Sequence[str]) -> dict[str, CacheRecord]:
        async with self._lock:
            return {key: self._records[key] for key in keys if key in self._records}

    async def upsert_batch(self, records: Sequence[CacheRecord]) -> None:
        async with self._lock:
            for key, record in _collapse(records).items():
                existing = self._records.get(key)
                self._records[key] = record.merged_over(existing) if existing else record

    def __len__(self) -> int:
        return len(self._records)


__all__ = ["STORE_CHUNK_SIZE", "InMemoryTrackCacheStore", "SqlTrackCacheStore"]
