"""BPM octave folding.

Hey future me - tempo detectors love to report half or double time (a 174 BPM drum & bass
track shows up as 87, a 70 BPM hip-hop beat as 140). For filtering, a tempo and its half or
double are the same thing, so we fold everything into one display octave [80, 160).
"""

import math

BPM_FLOOR = 80.0
BPM_CEILING = 160.0


def normalize_bpm(bpm: float) -> float:
    """Fold bpm into [80, 160) by halving/doubling, rounded to one decimal.

    Idempotent: normalize_bpm(normalize_bpm(x)) == normalize_bpm(x).

    Raises:
        ValueError: If bpm is not a positive finite number
    """
    if not math.isfinite(bpm) or bpm <= 0:
        raise ValueError(f"BPM must be a positive finite number, got {bpm!r}")

    folded = float(bpm)
    while folded >= BPM_CEILING:
        folded /= 2
    while folded < BPM_FLOOR:
        folded *= 2

    rounded = round(folded, 1)
    # 159.96 rounds up to 160.0, which is outside the range - fold once more.
    if rounded >= BPM_CEILING:
        rounded = round(rounded / 2, 1)
    return rounded


__all__ = ["BPM_CEILING", "BPM_FLOOR", "normalize_bpm"]
