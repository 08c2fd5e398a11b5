"""SQLAlchemy ORM models for the track cache."""

from datetime import UTC, datetime

from sqlalchemy import JSON, DateTime, Float, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from djcrate.domain.dtos import CacheRecord, utc_now


# SQLite doesn't preserve timezone info, so datetimes come back naive. Attach UTC before
# handing them to the domain layer.
def ensure_utc_aware(dt: datetime) -> datetime:
    """Ensure datetime is UTC-aware, assuming naive datetimes are UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


# Hey future me - one row per musical WORK, not per streaming track id. lookup_key is the
# CacheKey ("artist:title", ASCII-folded), so the same song imported from a CSV and from a
# playlist shares a row. genres is JSON with three meanings:
#   NULL          -> never looked up
#   []            -> looked up, nothing found (don't retry!)
#   ["house", ..] -> found
# genre_source being set is what tells "looked up" apart from "never looked up".
class TrackCacheModel(Base):
    """Persisted lookup outcome for one (artist, title) work."""

    __tablename__ = "track_cache"

    lookup_key: Mapped[str] = mapped_column(String(512), primary_key=True)
    track_name: Mapped[str] = mapped_column(String(512), nullable=False, default="")
    artist_name: Mapped[str] = mapped_column(String(512), nullable=False, default="")
    bpm: Mapped[float | None] = mapped_column(Float, nullable=True)
    musical_key: Mapped[str | None] = mapped_column(String(32), nullable=True)
    camelot_key: Mapped[str | None] = mapped_column(String(4), nullable=True)
    genres: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)
    bpm_source: Mapped[str | None] = mapped_column(String(32), nullable=True)
    genre_source: Mapped[str | None] = mapped_column(String(32), nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )

    def to_record(self) -> CacheRecord:
        return CacheRecord(
            lookup_key=self.lookup_key,
            track_name=self.track_name,
            artist_name=self.artist_name,
            bpm=self.bpm,
            musical_key=self.musical_key,
            camelot_key=self.camelot_key,
            genres=list(self.genres) if self.genres is not None else None,
            bpm_source=self.bpm_source,
            genre_source=self.genre_source,
            updated_at=ensure_utc_aware(self.updated_at),
        )

    def apply(self, record: CacheRecord) -> None:
        """Overwrite every column from an already-merged record."""
        self.track_name = record.track_name
        self.artist_name = record.artist_name
        self.bpm = record.bpm
        self.musical_key = record.musical_key
        self.camelot_key = record.camelot_key
        self.genres = list(record.genres) if record.genres is not None else None
        self.bpm_source = record.bpm_source
        self.genre_source = record.genre_source
        self.updated_at = record.updated_at

    @classmethod
    def from_record(cls, record: CacheRecord) -> "TrackCacheModel":
        model = cls(lookup_key=record.lookup_key)
        model.apply(record)
        return model


__all__ = ["Base", "TrackCacheModel", "ensure_utc_aware"]
