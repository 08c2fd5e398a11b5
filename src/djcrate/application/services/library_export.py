"""Export the filtered library view as CSV or a plain "Artist - Track" list."""

import csv
import io
import logging
import math
from collections.abc import Sequence
from pathlib import Path
from urllib.parse import quote

from djcrate.domain.dtos import EnrichedTrack

logger = logging.getLogger(__name__)

DEFAULT_EXPORT_FILENAME = "dj-crate-export.csv"

CSV_HEADER = (
    "Track Name",
    "Artist",
    "Album",
    "BPM",
    "Key",
    "Camelot Key",
    "Genres",
    "Vibe",
    "URI",
)

GENRE_SEPARATOR = "; "

# Punctuation left literal in store search queries; everything else is percent-encoded.
_URL_SAFE = "!~*'()"


def _round_bpm(bpm: float | None) -> str:
    # Half up, not banker's rounding: 127.5 is exported as 128.
    return str(math.floor(bpm + 0.5)) if bpm is not None else ""


def _csv_row(item: EnrichedTrack) -> list[str]:
    track = item.track
    return [
        track.name,
        track.artist,
        track.album,
        _round_bpm(item.bpm),
        item.musical_key or "",
        item.camelot_key or "",
        GENRE_SEPARATOR.join(item.genres),
        item.vibe or "",
        track.uri,
    ]


def to_csv(tracks: Sequence[EnrichedTrack]) -> str:
    """Render tracks as CSV text, header first, one row per track in the given order.

    Playlist importers match on the URI column, so it is always the last one.
    """
    output = io.StringIO()
    writer = csv.writer(output, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    writer.writerows(_csv_row(item) for item in tracks)
    return output.getvalue()


def write_csv(
    tracks: Sequence[EnrichedTrack], path: Path | str = DEFAULT_EXPORT_FILENAME
) -> Path:
    """Write the CSV export to path (parent directories are created) and return it."""
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(to_csv(tracks), encoding="utf-8")
    logger.info(f"Exported {len(tracks)} track(s) to {target}")
    return target


def to_text_list(tracks: Sequence[EnrichedTrack]) -> str:
    """One "Artist - Track" line per track, the format playlist transfer tools paste best."""
    return "\n".join(f"{item.track.artist} - {item.track.name}" for item in tracks)


def beatport_search_url(item: EnrichedTrack) -> str:
    query = f"{item.track.artist} {item.track.name}"
    return f"https://www.beatport.com/search?q={quote(query, safe=_URL_SAFE)}"


def soundcloud_search_url(item: EnrichedTrack) -> str:
    query = f"{item.track.artist} {item.track.name}"
    return f"https://soundcloud.com/search/sounds?q={quote(query, safe=_URL_SAFE)}"


__all__ = [
    "CSV_HEADER",
    "DEFAULT_EXPORT_FILENAME",
    "GENRE_SEPARATOR",
    "beatport_search_url",
    "soundcloud_search_url",
    "to_csv",
    "to_text_list",
    "write_csv",
]
