"""
Domain layer for workout scoring.

This package contains pure domain models that are independent of
infrastructure concerns (database, API, external services).
"""

from domain.models import (
    HistoricalSet,
    LoggedSet,
    RollingScoresResult,
    WorkoutScoreInput,
    WorkoutScoreResult,
    WorkoutWithSets,
)

__all__ = [
    "HistoricalSet",
    "LoggedSet",
    "RollingScoresResult",
    "WorkoutScoreInput",
    "WorkoutScoreResult",
    "WorkoutWithSets",
]
