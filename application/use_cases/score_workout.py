"""
ScoreWorkout Use Case.

Scores a workout right after it is completed, stores the score on the
workout and invalidates the user's cached rolling scores.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from application.exceptions import ScoringDataError
from application.ports import ScoringRepository
from backend.core.rolling_scores_cache import RollingScoresCache
from backend.core.workout_score_service import WorkoutScoreService
from domain.models import WorkoutScoreInput, WorkoutScoreResult

logger = logging.getLogger(__name__)


@dataclass
class ScoreWorkoutResult:
    """Result of the ScoreWorkout use case execution."""

    success: bool
    workout_id: str
    score: Optional[WorkoutScoreResult] = None
    persisted: bool = False
    error: Optional[str] = None


class ScoreWorkoutUseCase:
    """
    Use case for scoring a completed workout.

    Orchestrates the following workflow:
    1. Calculate the score (never fails for missing history)
    2. Persist it on the workout
    3. Invalidate the user's rolling scores

    A persist failure is reported with success=False, but the computed
    score is still returned so the caller can display it.

    Usage:
        >>> use_case = ScoreWorkoutUseCase(
        ...     score_service=WorkoutScoreService(repository),
        ...     scoring_repo=repository,
        ...     rolling_cache=cache,
        ... )
        >>> result = use_case.execute(score_input)
        >>> result.score.final_score
        42
    """

    def __init__(
        self,
        score_service: WorkoutScoreService,
        scoring_repo: ScoringRepository,
        rolling_cache: Optional[RollingScoresCache] = None,
    ) -> None:
        self._score_service = score_service
        self._scoring_repo = scoring_repo
        self._rolling_cache = rolling_cache

    def execute(self, score_input: WorkoutScoreInput) -> ScoreWorkoutResult:
        score = self._score_service.calculate(score_input)
        logger.info(
            f"Workout {score_input.workout_id} scored {score.final_score} "
            f"(progress={score.progress_score}, maintenance={score.maintenance_bonus}, "
            f"work={score.work_score}, consistency={score.consistency_score})"
        )

        try:
            self._scoring_repo.persist_workout_score(score_input.workout_id, score)
        except ScoringDataError as e:
            logger.error(f"Error saving workout score for {score_input.workout_id}: {e}")
            return ScoreWorkoutResult(
                success=False,
                workout_id=score_input.workout_id,
                score=score,
                persisted=False,
                error=e.message,
            )

        if self._rolling_cache is not None:
            self._rolling_cache.invalidate(score_input.user_id)

        return ScoreWorkoutResult(
            success=True,
            workout_id=score_input.workout_id,
            score=score,
            persisted=True,
        )
