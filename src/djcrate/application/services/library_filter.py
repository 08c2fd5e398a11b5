"""Library view: merge enrichment results into tracks, then filter by tempo, key, genre, vibe."""

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field

from djcrate.domain.dtos import EnrichedTrack, GenreResult, LookupResult, Track
from djcrate.domain.value_objects.camelot import to_camelot_key
from djcrate.domain.value_objects.tempo import normalize_bpm
from djcrate.domain.value_objects.vibe import derive_vibe

DEFAULT_BPM_RANGE: tuple[float, float] = (60.0, 200.0)


def enrich_track(
    track: Track,
    bpm_result: LookupResult | None,
    genre_result: GenreResult | None,
    enriching: bool = False,
) -> EnrichedTrack:
    """Merge one track with its BPM and genre results.

    BPM is folded into the display octave (see normalize_bpm); the Camelot code is derived from
    the musical key when the source didn't send one.
    """
    bpm = None
    musical_key = None
    camelot_key = None
    bpm_source = None
    if bpm_result is not None:
        bpm = normalize_bpm(bpm_result.bpm) if bpm_result.bpm is not None else None
        musical_key = bpm_result.musical_key
        camelot_key = bpm_result.camelot_key or to_camelot_key(musical_key)
        bpm_source = bpm_result.source

    genres = list(genre_result.genres) if genre_result is not None else []
    return EnrichedTrack(
        track=track,
        bpm=bpm,
        musical_key=musical_key,
        camelot_key=camelot_key,
        bpm_source=bpm_source,
        genres=genres,
        vibe=derive_vibe(genres, bpm),
        bpm_loading=bpm_result is None and enriching,
    )


def enrich_tracks(
    tracks: Iterable[Track],
    bpm_data: Mapping[str, LookupResult],
    genre_data: Mapping[str, GenreResult],
    enriching: bool = False,
) -> list[EnrichedTrack]:
    """Library order is kept; tracks without data are included with empty fields."""
    return [
        enrich_track(track, bpm_data.get(track.id), genre_data.get(track.id), enriching)
        for track in tracks
    ]


@dataclass(frozen=True)
class LibraryFilter:
    """Filter criteria. Empty key/genre sets and vibe=None mean "don't filter on this"."""

    bpm_range: tuple[float, float] = DEFAULT_BPM_RANGE
    camelot_keys: frozenset[str] = field(default_factory=frozenset)
    genres: frozenset[str] = field(default_factory=frozenset)
    vibe: str | None = None

    def matches(self, track: EnrichedTrack) -> bool:
        # Tracks without a BPM never pass, even while their lookup is still running.
        if track.bpm is None:
            return False
        low, high = self.bpm_range
        if not low <= track.bpm <= high:
            return False
        if self.camelot_keys and track.camelot_key not in self.camelot_keys:
            return False
        if self.genres and not self.genres.intersection(track.genres):
            return False
        return self.vibe is None or track.vibe == self.vibe


@dataclass(frozen=True)
class LibraryStats:
    total: int = 0
    with_bpm: int = 0
    in_range: int = 0


def filter_tracks(
    tracks: Sequence[EnrichedTrack], criteria: LibraryFilter | None = None
) -> list[EnrichedTrack]:
    criteria = criteria or LibraryFilter()
    return [track for track in tracks if criteria.matches(track)]


def library_stats(
    tracks: Sequence[EnrichedTrack], criteria: LibraryFilter | None = None
) -> LibraryStats:
    """Counts for the filter bar: all tracks, tracks with a BPM, tracks passing the filter."""
    return LibraryStats(
        total=len(tracks),
        with_bpm=sum(1 for track in tracks if track.bpm is not None),
        in_range=len(filter_tracks(tracks, criteria)),
    )


__all__ = [
    "DEFAULT_BPM_RANGE",
    "LibraryFilter",
    "LibraryStats",
    "enrich_track",
    "enrich_tracks",
    "filter_tracks",
    "library_stats",
]
