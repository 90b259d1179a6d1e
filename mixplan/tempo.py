"""
Tempo helpers: representative BPM for a beatgrid and octave-aware BPM distance.

A BPM of 0.0 means "unknown" everywhere in this package.
"""

import math
from typing import Any, Optional


def estimate_bpm(beatgrid: Any) -> float:
    """
    Representative BPM of a beatgrid.

    Priority: first tempo-map node > spacing of the first two beat markers
    (``60 / seconds``) > 0.0 (unknown).
    """
    if beatgrid is None:
        return 0.0

    tempo_map = getattr(beatgrid, "tempo_map", None) or ()
    if tempo_map:
        return _sanitize(tempo_map[0].bpm)

    beats = getattr(beatgrid, "beats", None) or ()
    if len(beats) >= 2:
        delta = beats[1].time - beats[0].time
        if delta > 0:
            return _sanitize(60.0 / delta)
    return 0.0


def _sanitize(bpm: float) -> float:
    if bpm is None or not math.isfinite(bpm) or bpm <= 0:
        return 0.0
    return float(bpm)


def octave_distance(bpm_a: float, bpm_b: float) -> float:
    """Distance when one track is mixed at half or double time."""
    return min(abs(bpm_a - 2 * bpm_b), abs(2 * bpm_a - bpm_b))


def bpm_distance(bpm_a: float, bpm_b: float) -> Optional[float]:
    """
    Octave-aware BPM distance, so 140 and 70 count as a match.

    Returns None when either tempo is unknown.
    """
    if bpm_a <= 0 or bpm_b <= 0:
        return None
    return min(abs(bpm_a - bpm_b), octave_distance(bpm_a, bpm_b))


def is_octave_match(bpm_a: float, bpm_b: float) -> bool:
    """True when half/double time is strictly closer than the direct difference."""
    if bpm_a <= 0 or bpm_b <= 0:
        return False
    return octave_distance(bpm_a, bpm_b) < abs(bpm_a - bpm_b)
