"""Musical key -> Camelot wheel notation.

Hey future me - DJs mix harmonically by Camelot code: same number, or +/-1 on the same
letter, or same number with the other letter. Providers hand us keys in every notation
imaginable ("C major", "Cm", "c# MINOR", "8B", or a pitch-class integer + mode flag from
streaming-service audio features). Everything funnels through to_camelot_key().

to_camelot_key is IDEMPOTENT: feeding it its own output returns the same code, because the
first check short-circuits anything that already looks like Camelot.

Examples:
    >>> to_camelot_key("C major")
    '8B'
    >>> to_camelot_key("A minor")
    '8A'
    >>> to_camelot_key("f#m")
    '11A'
    >>> pitch_class_to_key(9, 0)
    'A minor'
"""

import re

KEY_TO_CAMELOT: dict[str, str] = {
    # Major keys
    "B major": "1B",
    "F# major": "2B",
    "Gb major": "2B",
    "Db major": "3B",
    "C# major": "3B",
    "Ab major": "4B",
    "G# major": "4B",
    "Eb major": "5B",
    "D# major": "5B",
    "Bb major": "6B",
    "A# major": "6B",
    "F major": "7B",
    "C major": "8B",
    "G major": "9B",
    "D major": "10B",
    "A major": "11B",
    "E major": "12B",
    # Minor keys
    "Ab minor": "1A",
    "G# minor": "1A",
    "Eb minor": "2A",
    "D# minor": "2A",
    "Bb minor": "3A",
    "A# minor": "3A",
    "F minor": "4A",
    "C minor": "5A",
    "G minor": "6A",
    "D minor": "7A",
    "A minor": "8A",
    "E minor": "9A",
    "B minor": "10A",
    "F# minor": "11A",
    "Gb minor": "11A",
    "Db minor": "12A",
    "C# minor": "12A",
}

# Bare note = major, note + "m" = minor.
SHORT_KEY_TO_CAMELOT: dict[str, str] = {
    "B": "1B",
    "F#": "2B",
    "Gb": "2B",
    "Db": "3B",
    "C#": "3B",
    "Ab": "4B",
    "G#": "4B",
    "Eb": "5B",
    "D#": "5B",
    "Bb": "6B",
    "A#": "6B",
    "F": "7B",
    "C": "8B",
    "G": "9B",
    "D": "10B",
    "A": "11B",
    "E": "12B",
    "Abm": "1A",
    "G#m": "1A",
    "Ebm": "2A",
    "D#m": "2A",
    "Bbm": "3A",
    "A#m": "3A",
    "Fm": "4A",
    "Cm": "5A",
    "Gm": "6A",
    "Dm": "7A",
    "Am": "8A",
    "Em": "9A",
    "Bm": "10A",
    "F#m": "11A",
    "Gbm": "11A",
    "Dbm": "12A",
    "C#m": "12A",
}

# Pitch-class convention of streaming audio-feature exports: 0 = C, 1 = C#/Db, ... 11 = B.
CHROMATIC_SCALE: tuple[str, ...] = (
    "C",
    "C#",
    "D",
    "D#",
    "E",
    "F",
    "F#",
    "G",
    "G#",
    "A",
    "A#",
    "B",
)

_CAMELOT_PATTERN = re.compile(r"^\d{1,2}[AB]$", re.IGNORECASE)
_MINOR_SUFFIX = re.compile(r"\s*min(or)?$", re.IGNORECASE)
_MAJOR_SUFFIX = re.compile(r"\s*maj(or)?$", re.IGNORECASE)


def _note_case(note: str) -> str:
    """'c#' -> 'C#', 'bb' -> 'Bb', 'f#M' -> 'F#m' (trailing m means minor in short form)."""
    if not note:
        return note
    return note[0].upper() + note[1:].lower()


def to_camelot_key(raw: str | None) -> str | None:
    """Convert any key notation to Camelot, or None if unrecognized.

    Lookup order: already-Camelot, full name table, case-normalized full name,
    short table, then strip a trailing major/minor/maj/min token and retry short table.
    """
    if not raw:
        return None

    trimmed = raw.strip()
    if not trimmed:
        return None

    if _CAMELOT_PATTERN.match(trimmed):
        return trimmed.upper()

    full_match = KEY_TO_CAMELOT.get(trimmed)
    if full_match:
        return full_match

    # "c MAJOR" -> "C major"
    title_case = trimmed[0].upper() + trimmed[1:].lower()
    full_match = KEY_TO_CAMELOT.get(title_case)
    if full_match:
        return full_match

    short_match = SHORT_KEY_TO_CAMELOT.get(trimmed) or SHORT_KEY_TO_CAMELOT.get(
        _note_case(trimmed)
    )
    if short_match:
        return short_match

    if _MINOR_SUFFIX.search(trimmed):
        note = _note_case(_MINOR_SUFFIX.sub("", trimmed).strip())
        return SHORT_KEY_TO_CAMELOT.get(note + "m")
    if _MAJOR_SUFFIX.search(trimmed):
        note = _note_case(_MAJOR_SUFFIX.sub("", trimmed).strip())
        return SHORT_KEY_TO_CAMELOT.get(note)

    return None


def pitch_class_to_key(pitch_class: int | None, mode: int | None) -> str | None:
    """Pitch class (0-11) + mode (1 = major, 0 = minor) -> key name like 'A minor'.

    Returns None for -1 ("no key detected") or anything out of range.
    """
    if pitch_class is None or not 0 <= pitch_class < len(CHROMATIC_SCALE):
        return None
    suffix = "major" if mode is None or mode == 1 else "minor"
    return f"{CHROMATIC_SCALE[pitch_class]} {suffix}"


def pitch_class_to_camelot(pitch_class: int | None, mode: int | None) -> str | None:
    """Pitch class + mode straight to Camelot via the name table."""
    return to_camelot_key(pitch_class_to_key(pitch_class, mode))


_OPEN_KEY_PATTERN = re.compile(r"^(\d{1,2})([dm])$", re.IGNORECASE)


# Open Key (Traktor) numbers the wheel differently: 1d = C major = 8B, 1m = A minor = 8A.
def open_key_to_camelot(raw: str | None) -> str | None:
    """Convert Open Key notation ("1d", "8m") to Camelot, or None if it isn't Open Key."""
    if not raw:
        return None
    match = _OPEN_KEY_PATTERN.match(raw.strip())
    if not match:
        return None
    number = int(match.group(1))
    if not 1 <= number <= 12:
        return None
    letter = "B" if match.group(2).lower() == "d" else "A"
    return f"{(number + 6) % 12 + 1}{letter}"


__all__ = [
    "CHROMATIC_SCALE",
    "KEY_TO_CAMELOT",
    "SHORT_KEY_TO_CAMELOT",
    "open_key_to_camelot",
    "pitch_class_to_camelot",
    "pitch_class_to_key",
    "to_camelot_key",
]
