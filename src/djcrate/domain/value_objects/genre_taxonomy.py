"""Raw provider tags -> small DJ-facing genre vocabulary.

Hey future me - community tag data is a swamp. Last.fm happily tags an artist "seen live",
"2019", "favorites" and "House Music" all at once. This module does three things:
1. drops noise (years, decades, mood/social stopwords)
2. maps many spellings onto one canonical name ("deep-house", "Deep House" -> "deep house")
3. dedupes and caps at MAX_GENRES so a track card never shows ten chips

Unmapped tags that survive the noise filter pass through lowercased - better to show
"vaporwave" than nothing - but they still count against the cap.

Examples:
    >>> normalize_genre_tags([RawTag("House Music", 50), RawTag("2019", 10),
    ...                       RawTag("seen live", 5), RawTag("Techno", 30)])
    ['house', 'techno']
    >>> normalize_simple_genres(["Hip-Hop", "rap", "80s"])
    ['hip hop']
"""

import re
from collections.abc import Iterable

from djcrate.domain.dtos import RawTag

MAX_GENRES = 3

TAG_MAP: dict[str, str] = {
    # House
    "house": "house",
    "house music": "house",
    "deep house": "deep house",
    "deep-house": "deep house",
    "tech house": "tech house",
    "tech-house": "tech house",
    "progressive house": "house",
    "acid house": "house",
    "funky house": "house",
    "electro house": "house",
    "minimal house": "house",
    # Techno
    "techno": "techno",
    "minimal techno": "techno",
    "detroit techno": "techno",
    "acid techno": "techno",
    "industrial techno": "techno",
    "hard techno": "techno",
    "dub techno": "techno",
    # Trance
    "trance": "trance",
    "progressive trance": "trance",
    "psytrance": "trance",
    "psy-trance": "trance",
    "uplifting trance": "trance",
    "vocal trance": "trance",
    # Drum and bass
    "drum and bass": "drum and bass",
    "drum & bass": "drum and bass",
    "drum n bass": "drum and bass",
    "dnb": "drum and bass",
    "d&b": "drum and bass",
    "liquid funk": "drum and bass",
    "jungle": "drum and bass",
    # Dubstep
    "dubstep": "dubstep",
    "brostep": "dubstep",
    "riddim": "dubstep",
    # Hip hop
    "hip hop": "hip hop",
    "hip-hop": "hip hop",
    "hiphop": "hip hop",
    "rap": "hip hop",
    "gangsta rap": "hip hop",
    "trap": "hip hop",
    "grime": "hip hop",
    # R&B
    "r&b": "r&b",
    "rnb": "r&b",
    "rhythm and blues": "r&b",
    "neo-soul": "r&b",
    "neo soul": "r&b",
    # Pop
    "pop": "pop",
    "synth-pop": "pop",
    "synthpop": "pop",
    "electropop": "pop",
    "dance-pop": "pop",
    "dance pop": "pop",
    "indie pop": "pop",
    "dream pop": "pop",
    "art pop": "pop",
    "k-pop": "pop",
    # Rock
    "rock": "rock",
    "alternative rock": "rock",
    "indie rock": "rock",
    "punk rock": "rock",
    "post-punk": "rock",
    "classic rock": "rock",
    "hard rock": "rock",
    "metal": "rock",
    "heavy metal": "rock",
    "grunge": "rock",
    # Indie
    "indie": "indie",
    "lo-fi": "indie",
    "lofi": "indie",
    "bedroom pop": "indie",
    "shoegaze": "indie",
    # Electronic (broad)
    "electronic": "electronic",
    "electronica": "electronic",
    "edm": "electronic",
    "idm": "electronic",
    "breakbeat": "electronic",
    "uk garage": "electronic",
    "garage": "electronic",
    "2-step": "electronic",
    "future bass": "electronic",
    # Disco
    "disco": "disco",
    "nu-disco": "disco",
    "nu disco": "disco",
    "italo disco": "disco",
    # Funk
    "funk": "funk",
    "p-funk": "funk",
    "electro-funk": "funk",
    # Soul
    "soul": "soul",
    "motown": "soul",
    # Reggae
    "reggae": "reggae",
    "dub": "reggae",
    "ska": "reggae",
    "roots": "reggae",
    # Dancehall
    "dancehall": "dancehall",
    "ragga": "dancehall",
    "soca": "dancehall",
    # Latin
    "latin": "latin",
    "reggaeton": "latin",
    "latin pop": "latin",
    "salsa": "latin",
    "bachata": "latin",
    "cumbia": "latin",
    "dembow": "latin",
    "bossa nova": "latin",
    # Ambient
    "ambient": "ambient",
    "dark ambient": "ambient",
    "downtempo": "ambient",
    "chillout": "ambient",
    "chill out": "ambient",
    "new age": "ambient",
}

CANONICAL_GENRES: frozenset[str] = frozenset(TAG_MAP.values())

NOISE_TAGS: frozenset[str] = frozenset(
    {
        "seen live",
        "favorites",
        "favourite",
        "favourites",
        "favorite",
        "loved",
        "spotify",
        "beautiful",
        "awesome",
        "cool",
        "catchy",
        "chill",
        "party",
        "summer",
        "good",
        "great",
        "classic",
        "best",
        "under 2000 listeners",
        "male vocalists",
        "female vocalists",
        "singer-songwriter",
        "all",
        "albums i own",
        "check out",
        "my favorite",
    }
)

_YEAR = re.compile(r"^\d{4}$")
_DECADE_SHORT = re.compile(r"^\d{2}s$")
_DECADE_LONG = re.compile(r"^\d{4}s$")


def is_noise(tag: str) -> bool:
    """True for tags that are not genres: stopwords, bare years, decades."""
    lower = tag.lower().strip()
    if not lower or lower in NOISE_TAGS:
        return True
    return bool(
        _YEAR.match(lower) or _DECADE_SHORT.match(lower) or _DECADE_LONG.match(lower)
    )


def canonical_genre(tag: str) -> str | None:
    """Canonical name for a raw tag, or None if the tag is unmapped."""
    return TAG_MAP.get(tag.lower().strip())


def _collect(names: Iterable[tuple[str, bool]]) -> list[str]:
    seen: set[str] = set()
    result: list[str] = []

    for name, allow_passthrough in names:
        lower = name.lower().strip()
        if is_noise(lower):
            continue

        canonical = TAG_MAP.get(lower)
        if canonical is not None:
            if canonical not in seen:
                seen.add(canonical)
                result.append(canonical)
        elif allow_passthrough and lower not in seen:
            seen.add(lower)
            result.append(lower)

        if len(result) >= MAX_GENRES:
            break

    return result


def normalize_simple_genres(genres: Iterable[str]) -> list[str]:
    """Canonicalize plain genre strings, preserving first-seen order."""
    return _collect((genre, True) for genre in genres)


def normalize_genre_tags(tags: Iterable[RawTag]) -> list[str]:
    """Canonicalize weighted tags, highest weight first (stable for ties).

    Unmapped tags only pass through with a weight of at least 1.
    """
    ordered = sorted(tags, key=lambda tag: tag.count, reverse=True)
    return _collect((tag.name, tag.count >= 1) for tag in ordered)


__all__ = [
    "CANONICAL_GENRES",
    "MAX_GENRES",
    "NOISE_TAGS",
    "TAG_MAP",
    "canonical_genre",
    "is_noise",
    "normalize_genre_tags",
    "normalize_simple_genres",
]
