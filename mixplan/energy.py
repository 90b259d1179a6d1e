"""
Energy helpers: distance on the 1-10 scale and the per-mode direction bonus
used by the sequencer.
"""

from .models import SetMode


def energy_distance(energy_a: int, energy_b: int) -> int:
    return abs(energy_a - energy_b)


def direction_bonus(mode: SetMode, energy_delta: int, rise_bonus: float, hold_bonus: float) -> float:
    """
    Bonus for the direction of an energy step (``to - from``).

    Warm-up rewards non-decreasing energy and prefers a climb over a plateau.
    Peak-time rewards any step that does not drop. Open-format is neutral.
    """
    if mode == SetMode.WARM_UP:
        if energy_delta > 0:
            return rise_bonus
        if energy_delta == 0:
            return hold_bonus
        return 0.0
    if mode == SetMode.PEAK_TIME:
        return rise_bonus if energy_delta >= 0 else 0.0
    return 0.0
