# Numeric helpers shared by the scoring services
from __future__ import annotations

import math


def round_half_up(value: float) -> int:
    """
    Round to the nearest integer, halves rounding up.

    Python's round() rounds halves to even (round(12.5) == 12); scores
    must round 12.5 to 13 and -0.5 to 0.
    """
    return int(math.floor(value + 0.5))


def round_to(value: float, places: int) -> float:
    """Round half up to a fixed number of decimal places."""
    factor = 10 ** places
    return math.floor(value * factor + 0.5) / factor


def clamp(value: float, low: float, high: float) -> float:
    """Constrain value to the closed interval [low, high]."""
    return max(low, min(high, value))
