"""
Data Transfer Objects for the enrichment pipeline.

Hey future me - these DTOs are the LINGUA FRANCA between provider adapters, the chain,
the resolver and the controller. Every provider converts its JSON into LookupResult before
anything else sees it, so no service ever needs to know what a GetSongBPM or SoundNet
payload looks like.

Flow: Provider API Response -> LookupResult / genre list -> Chain/Resolver -> Service -> Store
"""

from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from enum import Enum

from djcrate.domain.exceptions import ValidationError

# Sentinel source tag for "every source was asked, nobody knew".
NO_SOURCE = "none"


@dataclass(frozen=True)
class LookupRequest:
    """One (artist, title) pair to enrich.

    track_id is opaque and unique within one enrichment run. For imported tracks it may be
    re-derived by hashing artist+title, so never treat it as stable across runs.
    """

    track_id: str
    track_name: str
    artist_name: str

    def __post_init__(self) -> None:
        if not self.track_id:
            raise ValidationError("LookupRequest.track_id cannot be empty")


@dataclass(frozen=True)
class LookupResult:
    """Normalized answer from a BPM source (or the sentinel when nobody answered).

    source is ALWAYS set, even when every data field is None.
    """

    track_id: str
    source: str
    bpm: float | None = None
    musical_key: str | None = None
    camelot_key: str | None = None
    genres: list[str] | None = None

    @property
    def is_hit(self) -> bool:
        """A hit is any result carrying a BPM."""
        return self.bpm is not None

    def with_track_id(self, track_id: str) -> "LookupResult":
        """Copy of this result rebound to another request's track id."""
        return replace(self, track_id=track_id)

    @classmethod
    def empty(cls, track_id: str, source: str = NO_SOURCE) -> "LookupResult":
        """Result with no data for the given source tag."""
        return cls(track_id=track_id, source=source)


@dataclass(frozen=True)
class GenreResult:
    """Genres resolved for one track (artist-level data fanned out to the track)."""

    track_id: str
    genres: list[str] = field(default_factory=list)
    source: str = NO_SOURCE


@dataclass(frozen=True)
class RawTag:
    """A provider tag with an optional weight (vote count, popularity, boost)."""

    name: str
    count: float = 0


@dataclass(frozen=True)
class ArtistCandidate:
    """One artist returned by a provider's artist search."""

    name: str
    id: str | None = None
    score: float | None = None
    tags: list[RawTag] = field(default_factory=list)
    genres: list[str] = field(default_factory=list)


class GenreScope(str, Enum):
    """How a genre source is dispatched inside the layered resolver."""

    PER_TRACK_FAST = "per-track-fast"
    PER_ARTIST_FAST = "per-artist-fast"
    PER_ARTIST_SLOW = "per-artist-slow"

    @property
    def is_slow(self) -> bool:
        return self is GenreScope.PER_ARTIST_SLOW


def utc_now() -> datetime:
    """Get current UTC time."""
    return datetime.now(UTC)


# Hey future me - CacheRecord mirrors one row of the external cache store. The merge rule lives
# HERE (not in the store) so the in-memory and SQL stores can't drift apart: a new write only
# replaces a field when the new value is not None. A genres-only write can therefore never wipe
# a cached BPM. Note genres=[] is NOT None - "checked, nothing found" is real data and wins.
@dataclass
class CacheRecord:
    """Persisted lookup outcome for one musical work."""

    lookup_key: str
    track_name: str
    artist_name: str
    bpm: float | None = None
    musical_key: str | None = None
    camelot_key: str | None = None
    genres: list[str] | None = None
    bpm_source: str | None = None
    genre_source: str | None = None
    updated_at: datetime = field(default_factory=utc_now)

    def merged_over(self, existing: "CacheRecord") -> "CacheRecord":
        """Field-level merge of this (newer) record on top of an existing one."""
        return CacheRecord(
            lookup_key=self.lookup_key,
            track_name=self.track_name or existing.track_name,
            artist_name=self.artist_name or existing.artist_name,
            bpm=self.bpm if self.bpm is not None else existing.bpm,
            musical_key=(
                self.musical_key if self.musical_key is not None else existing.musical_key
            ),
            camelot_key=(
                self.camelot_key if self.camelot_key is not None else existing.camelot_key
            ),
            genres=self.genres if self.genres is not None else existing.genres,
            bpm_source=self.bpm_source if self.bpm_source is not None else existing.bpm_source,
            genre_source=(
                self.genre_source if self.genre_source is not None else existing.genre_source
            ),
            updated_at=utc_now(),
        )


@dataclass(frozen=True)
class BpmProgress:
    """BPM enrichment progress."""

    completed: int = 0
    total: int = 0


@dataclass(frozen=True)
class GenreProgress:
    """Genre enrichment progress; tagged = distinct tracks with at least one genre."""

    completed: int = 0
    tagged: int = 0
    total: int = 0


@dataclass(frozen=True)
class Track:
    """A library track as loaded from a streaming account or imported file."""

    id: str
    name: str
    artist: str
    album: str = ""
    uri: str = ""

    def to_request(self) -> LookupRequest:
        return LookupRequest(track_id=self.id, track_name=self.name, artist_name=self.artist)


@dataclass(frozen=True)
class EnrichedTrack:
    """A library track merged with everything the enrichment run learned about it."""

    track: Track
    bpm: float | None = None
    musical_key: str | None = None
    camelot_key: str | None = None
    bpm_source: str | None = None
    genres: list[str] = field(default_factory=list)
    vibe: str | None = None
    bpm_loading: bool = False


__all__ = [
    "NO_SOURCE",
    "ArtistCandidate",
    "BpmProgress",
    "CacheRecord",
    "EnrichedTrack",
    "GenreProgress",
    "GenreResult",
    "GenreScope",
    "LookupRequest",
    "LookupResult",
    "RawTag",
    "Track",
    "utc_now",
]
