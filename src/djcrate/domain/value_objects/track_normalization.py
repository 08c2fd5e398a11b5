"""Track title / artist cleanup and cache-key construction.

Hey future me - streaming services decorate titles with all sorts of junk ("(feat. X)",
"- Remastered 2011", "[Live at ...]") that BPM databases don't have. Stripping it is the
single biggest win for match rates. The same normalized strings build the CacheKey, so
"Song (Radio Edit)" and "Song" share one cache entry - that's deliberate, tempo doesn't change
with a radio edit (well, almost never).

Examples:
    >>> normalize_title("Get Lucky (feat. Pharrell Williams) - Radio Edit")
    'Get Lucky'
    >>> normalize_artist("Daft Punk, Pharrell Williams")
    'Daft Punk'
    >>> cache_key("Mötley Crüe", "Dr. Feelgood")
    'motley crue:dr. feelgood'
"""

import re
import unicodedata

# Order only matters in that every pattern is applied once; a second pass is a no-op.
TITLE_PATTERNS_TO_STRIP: tuple[re.Pattern[str], ...] = (
    re.compile(r"\s*\(feat\.[^)]*\)", re.IGNORECASE),
    re.compile(r"\s*\(ft\.[^)]*\)", re.IGNORECASE),
    re.compile(r"\s*\bfeat\.\s*.*", re.IGNORECASE),
    re.compile(r"\s*\bft\.\s*.*", re.IGNORECASE),
    re.compile(r"\s*\(with\s+[^)]*\)", re.IGNORECASE),
    re.compile(r"\s*-\s*(\d{4}\s+)?remaster(ed)?(\s+\d{4})?(\s+version)?\s*$", re.IGNORECASE),
    re.compile(r"\s*-\s*radio\s*edit\s*$", re.IGNORECASE),
    re.compile(r"\s*\(remaster(ed)?\s*(\d{4})?\)", re.IGNORECASE),
    re.compile(r"\s*\(deluxe\s*(edition)?\)", re.IGNORECASE),
    re.compile(r"\s*\(bonus\s*track\s*(version)?\)", re.IGNORECASE),
    re.compile(r"\s*\(expanded\s*edition\)", re.IGNORECASE),
    re.compile(r"\s*\(anniversary\s*edition\)", re.IGNORECASE),
    re.compile(r"\s*\(live\)", re.IGNORECASE),
    re.compile(r"\s*\(acoustic\)", re.IGNORECASE),
    re.compile(r"\s*\(radio\s*edit\)", re.IGNORECASE),
    re.compile(r"\s*\(single\s*version\)", re.IGNORECASE),
    re.compile(r"\s*\(original\s*mix\)", re.IGNORECASE),
    re.compile(r"\s*\[.*?\]"),
)

_COMBINING_MARKS = re.compile(r"[\u0300-\u036f]")
_NON_PRINTABLE_ASCII = re.compile(r"[^\x20-\x7E]")


def normalize_title(title: str) -> str:
    """Strip feature credits, edition/remaster annotations and bracketed suffixes."""
    normalized = title
    for pattern in TITLE_PATTERNS_TO_STRIP:
        normalized = pattern.sub("", normalized)
    return normalized.strip()


def normalize_artist(artist: str) -> str:
    """Primary artist only: everything before the first comma."""
    return artist.split(",")[0].strip()


def artist_key(artist: str) -> str:
    """Grouping key for per-artist genre lookups."""
    return normalize_artist(artist).lower()


def to_ascii(text: str) -> str:
    """Drop diacritics (via NFD decomposition) and anything outside printable ASCII."""
    decomposed = unicodedata.normalize("NFD", text)
    return _NON_PRINTABLE_ASCII.sub("", _COMBINING_MARKS.sub("", decomposed))


# Yo, the store uses this as a record field name, so it MUST be printable ASCII. A key with
# "ö" in it breaks some stores. Two requests with the same key are the same musical work,
# no matter how the title was cased, accented or feature-credited.
def cache_key(artist: str, title: str) -> str:
    """Canonical identity of a musical work: '<primary-artist>:<normalized-title>'."""
    return to_ascii(f"{normalize_artist(artist).lower()}:{normalize_title(title).lower()}")


__all__ = [
    "TITLE_PATTERNS_TO_STRIP",
    "artist_key",
    "cache_key",
    "normalize_artist",
    "normalize_title",
    "to_ascii",
]
