"""
Fake Repository Implementations for Testing.

This package provides an in-memory fake of the ScoringRepository interface
for fast, isolated testing. No database or external dependencies required.

Features:
- The fake implements the same Protocol interface as the Supabase adapter
- Supports seeding with test data
- Supports reset() for test isolation
- Factory functions for common test scenarios

Usage:
    from tests.fakes import FakeScoringRepository, make_set, make_workout

    repo = FakeScoringRepository()
    repo.seed_workout(make_workout("w1", completed_at, [make_set("bench", 100, 5)]))

    # Factory function with pre-populated data
    repo = create_scoring_repo(user_id="user-1", num_workouts=5)
"""
from typing import List, Optional
import uuid
from datetime import datetime, timedelta, timezone

from domain.models import HistoricalSet, WorkoutWithSets

from tests.fakes.scoring_repository import FakeScoringRepository


DEFAULT_USER_ID = "user-1"


# =============================================================================
# Factory Functions
# =============================================================================


def make_set(
    exercise_id: str,
    weight_kg: Optional[float],
    reps: int,
    *,
    set_type: str = "working",
    exercise_type: str = "weighted",
    muscle_group: str = "chest",
    is_pr: bool = False,
    is_bodyweight: bool = False,
    completed_at: Optional[datetime] = None,
) -> HistoricalSet:
    """
    Build a stored set.

    completed_at defaults to the epoch and is re-stamped with the session
    time when the set is seeded through a workout.
    """
    return HistoricalSet(
        id=str(uuid.uuid4()),
        exercise_id=exercise_id,
        exercise_name=exercise_id.replace("-", " ").title(),
        exercise_type=exercise_type,
        muscle_group=muscle_group,
        set_type=set_type,
        weight_kg=weight_kg,
        reps=reps,
        is_bodyweight=is_bodyweight,
        is_pr=is_pr,
        completed_at=completed_at or datetime(1970, 1, 1, tzinfo=timezone.utc),
    )


def make_workout(
    workout_id: str,
    completed_at: datetime,
    sets: List[HistoricalSet],
    *,
    user_id: str = DEFAULT_USER_ID,
) -> WorkoutWithSets:
    """Build a completed workout holding `sets`."""
    return WorkoutWithSets(
        id=workout_id,
        user_id=user_id,
        completed_at=completed_at,
        sets=sets,
    )


def create_scoring_repo(
    *,
    user_id: str = DEFAULT_USER_ID,
    num_workouts: int = 0,
    end: Optional[datetime] = None,
) -> FakeScoringRepository:
    """
    Create a FakeScoringRepository with optional pre-populated workouts.

    Generated workouts are one day apart, the last one a day before `end`,
    each with three working sets of bench press at 100 kg x 5.

    Args:
        user_id: User ID for generated workouts
        num_workouts: Number of sample workouts to create
        end: Reference time, defaults to now

    Returns:
        Pre-populated FakeScoringRepository
    """
    repo = FakeScoringRepository()
    end = end or datetime.now(timezone.utc)

    for i in range(num_workouts):
        completed_at = end - timedelta(days=num_workouts - i)
        repo.seed_workout(make_workout(
            f"w{i + 1}",
            completed_at,
            [make_set("bench-press", 100, 5) for _ in range(3)],
            user_id=user_id,
        ))

    return repo


# =============================================================================
# Exports
# =============================================================================

__all__ = [
    # Fake
    "FakeScoringRepository",
    # Factories
    "DEFAULT_USER_ID",
    "make_set",
    "make_workout",
    "create_scoring_repo",
]
