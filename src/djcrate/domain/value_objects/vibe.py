"""One descriptive vibe tag from genre + tempo. Pure, no I/O.

Rules are evaluated top to bottom; the first match wins, so a 140 BPM techno track is
"aggressive" and never "high energy".

Examples:
    >>> derive_vibe(["techno"], 140)
    'aggressive'
    >>> derive_vibe([], 110) is None
    True
"""

from collections.abc import Iterable


def derive_vibe(genres: Iterable[str] | None, bpm: float | None) -> str | None:
    """Derive a single vibe tag, or None when no rule matches."""
    g = set(genres or ())
    has_bpm = bpm is not None

    # Genre-specific rules
    if "techno" in g and has_bpm and bpm >= 138:
        return "aggressive"
    if "techno" in g and has_bpm and bpm >= 125:
        return "dark"
    if ("house" in g or "deep house" in g) and has_bpm and 118 <= bpm <= 128:
        return "groovy"
    if "trance" in g:
        return "melodic"
    if "drum and bass" in g:
        return "high energy"
    if ("hip hop" in g or "r&b" in g) and has_bpm and bpm < 100:
        return "chill"
    if "ambient" in g:
        return "chill"

    # BPM-only fallbacks
    if has_bpm and bpm >= 140:
        return "high energy"
    if has_bpm and bpm < 95:
        return "chill"

    return None


__all__ = ["derive_vibe"]
