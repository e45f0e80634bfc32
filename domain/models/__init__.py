"""
Domain models for workout scoring.

This package contains pure domain models that are independent of
infrastructure concerns (database, API, external services).

These models represent the core scoring concepts:
- LoggedSet: One performed set from a completed workout (immutable)
- HistoricalSet / WorkoutWithSets: Stored history read back for baselines
- WorkoutScoreResult: The 1-100 composite score of a single workout
- RollingScoresResult: Progression / Load / Consistency over 14 days
- MuscleDayCounter: Distinct training days per canonical muscle group

Usage:
    >>> from datetime import datetime
    >>> from domain.models import LoggedSet, WorkoutScoreInput

    >>> score_input = WorkoutScoreInput(
    ...     user_id="user-1",
    ...     workout_id="workout-1",
    ...     completed_at=datetime(2024, 1, 15, 18, 0),
    ...     sets=[
    ...         LoggedSet(
    ...             exercise_id="squat",
    ...             exercise_name="Squat",
    ...             weight_kg=100,
    ...             reps=5,
    ...             completed_at=datetime(2024, 1, 15, 17, 30),
    ...         )
    ...     ],
    ... )
"""

from domain.models.logged_set import (
    LB_TO_KG,
    DeletedSet,
    ExerciseType,
    HistoricalSet,
    LoggedSet,
    SetType,
    WeightUnit,
    WorkoutWithSets,
    as_utc,
)
from domain.models.muscle_days import MUSCLE_GROUPS, MuscleDayCounter
from domain.models.scores import (
    BestSet,
    ConsistencyBreakdown,
    ExerciseScore,
    LoadBreakdown,
    ProgressionBreakdown,
    RollingScoresResult,
    ScoresBreakdown,
    TopPerformer,
    WorkoutScoreInput,
    WorkoutScoreResult,
)

__all__ = [
    # Sets and history
    "LoggedSet",
    "HistoricalSet",
    "WorkoutWithSets",
    "DeletedSet",
    # Enums
    "SetType",
    "WeightUnit",
    "ExerciseType",
    # Per-workout score
    "WorkoutScoreInput",
    "WorkoutScoreResult",
    "ExerciseScore",
    "TopPerformer",
    # Rolling scores
    "RollingScoresResult",
    "ScoresBreakdown",
    "ProgressionBreakdown",
    "LoadBreakdown",
    "ConsistencyBreakdown",
    "MuscleDayCounter",
    "MUSCLE_GROUPS",
    # Best-set calendar
    "BestSet",
    # Helpers
    "LB_TO_KG",
    "as_utc",
]
