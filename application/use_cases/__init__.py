"""
Application Use Cases for workout scoring.

This package contains application-level use cases that orchestrate the
scoring services and coordinate between ports/adapters. Use cases are the
entry points for business operations and contain the application's
workflow logic.

Architecture follows Clean Architecture / Hexagonal pattern:
- Use cases orchestrate domain objects and repository ports
- Dependencies are injected via constructors for testability
- Use cases return result dataclasses, not API responses

Usage:
    from application.use_cases import (
        ScoreWorkoutUseCase,
        HandleWorkoutDeletionUseCase,
        BackfillWorkoutScoresUseCase,
    )

    # Score a completed workout
    score_use_case = ScoreWorkoutUseCase(
        score_service=WorkoutScoreService(repository),
        scoring_repo=repository,
        rolling_cache=cache,
    )
    result = score_use_case.execute(score_input)

    # Repair PR records after a deletion
    deletion_use_case = HandleWorkoutDeletionUseCase(
        pr_service=PRRecalculationService(repository),
        rolling_cache=cache,
    )
    result = deletion_use_case.execute(
        user_id="user-123",
        workout_id="w-123",
        deleted_sets=[DeletedSet(exercise_id="bench", is_pr=True)],
    )
"""

from application.use_cases.backfill_workout_scores import (
    BackfillWorkoutScoresResult,
    BackfillWorkoutScoresUseCase,
)
from application.use_cases.handle_workout_deletion import (
    HandleWorkoutDeletionResult,
    HandleWorkoutDeletionUseCase,
)
from application.use_cases.score_workout import (
    ScoreWorkoutResult,
    ScoreWorkoutUseCase,
)

__all__ = [
    # ScoreWorkout
    "ScoreWorkoutUseCase",
    "ScoreWorkoutResult",
    # HandleWorkoutDeletion
    "HandleWorkoutDeletionUseCase",
    "HandleWorkoutDeletionResult",
    # BackfillWorkoutScores
    "BackfillWorkoutScoresUseCase",
    "BackfillWorkoutScoresResult",
]
