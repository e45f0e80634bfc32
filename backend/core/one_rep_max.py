"""
One-rep-max estimation.

Two formulas live here and serve different call sites:
- Epley: baseline, PR and closeness detection (per-workout and rolling scores,
  PR recalculation after deletion)
- Brzycki: ranking the best set of a day for display (best-set calendar)

They give different numbers for the same set and are kept separate; switching
a call site from one to the other changes scoring outcomes.
"""
from typing import Optional


# Eligible rep range for E1RM-based comparisons
E1RM_MIN_REPS = 1
E1RM_MAX_REPS = 12

# Brzycki reps are capped here before applying the formula
BRZYCKI_REP_CAP = 12


def epley_1rm(weight: Optional[float], reps: int) -> float:
    """
    Estimate 1RM using the Epley formula.

    Formula: 1RM = weight * (1 + reps/30)

    Rep-range eligibility (1-12) is the caller's job; reps above 12 are
    excluded by callers, never clamped here.

    Args:
        weight: Weight lifted in kg
        reps: Completed reps

    Returns:
        Estimated 1RM, or 0.0 for missing, zero or negative inputs
    """
    if weight is None or weight <= 0 or reps <= 0:
        return 0.0
    return weight * (1.0 + reps / 30.0)


def brzycki_1rm(weight: Optional[float], reps: int) -> float:
    """
    Estimate 1RM using the Brzycki formula with reps capped at 12.

    Formula: 1RM = weight * (36 / (37 - min(reps, 12)))

    Examples:
        >>> brzycki_1rm(100, 1)
        100.0
        >>> brzycki_1rm(100, 0)
        0.0
        >>> round(brzycki_1rm(100, 12), 2)
        144.0
    """
    if weight is None or weight <= 0 or reps <= 0:
        return 0.0
    if reps == 1:
        return float(weight)

    capped = min(reps, BRZYCKI_REP_CAP)
    return weight * (36.0 / (37.0 - capped))


def is_e1rm_eligible(weight: Optional[float], reps: int) -> bool:
    """True when a set can produce a comparable Epley E1RM."""
    return weight is not None and E1RM_MIN_REPS <= reps <= E1RM_MAX_REPS
