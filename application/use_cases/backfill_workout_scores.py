"""
BackfillWorkoutScores Use Case.

Computes and stores scores for completed workouts that have none, e.g.
workouts logged before scoring existed.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from application.ports import ScoringRepository
from backend.core.workout_score_service import WorkoutScoreService
from domain.models import LoggedSet, WorkoutScoreInput, WorkoutWithSets

logger = logging.getLogger(__name__)


DEFAULT_BACKFILL_LIMIT = 20


@dataclass
class BackfillWorkoutScoresResult:
    """Result of the BackfillWorkoutScores use case execution."""

    success: bool
    scores: Dict[str, int] = field(default_factory=dict)
    skipped: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    dry_run: bool = False
    error: Optional[str] = None

    @property
    def processed(self) -> int:
        return len(self.scores) + len(self.skipped) + len(self.failed)


def to_score_input(workout: WorkoutWithSets) -> WorkoutScoreInput:
    """Rebuild the scoring input of a stored workout."""
    return WorkoutScoreInput(
        user_id=workout.user_id,
        workout_id=workout.id,
        completed_at=workout.completed_at,
        weight_unit=workout.weight_unit,
        sets=[
            LoggedSet(
                exercise_id=s.exercise_id,
                exercise_name=s.exercise_name,
                weight_kg=s.weight_kg,
                reps=s.reps,
                set_type=s.set_type,
                is_bodyweight=s.is_bodyweight,
                completed_at=s.completed_at,
            )
            for s in workout.sets
        ],
    )


class BackfillWorkoutScoresUseCase:
    """
    Use case for scoring stored workouts that were never scored.

    Workouts without sets or without an owner are skipped. A failure on one
    workout is recorded and the rest are still processed.
    """

    def __init__(
        self,
        scoring_repo: ScoringRepository,
        score_service: WorkoutScoreService,
    ) -> None:
        self._scoring_repo = scoring_repo
        self._score_service = score_service

    def execute(
        self,
        *,
        user_id: Optional[str] = None,
        limit: int = DEFAULT_BACKFILL_LIMIT,
        dry_run: bool = False,
    ) -> BackfillWorkoutScoresResult:
        try:
            workouts = self._scoring_repo.fetch_unscored_workouts(user_id=user_id, limit=limit)
        except Exception as e:
            logger.exception(f"Error fetching unscored workouts: {e}")
            return BackfillWorkoutScoresResult(success=False, dry_run=dry_run, error=str(e))

        logger.info(f"Found {len(workouts)} workouts without scores")
        result = BackfillWorkoutScoresResult(success=True, dry_run=dry_run)

        for workout in workouts:
            if not workout.sets or not workout.user_id:
                logger.info(f"Skipping workout {workout.id}: no sets or no owner")
                result.skipped.append(workout.id)
                continue

            try:
                score = self._score_service.calculate(to_score_input(workout))
                if not dry_run:
                    self._scoring_repo.persist_workout_score(workout.id, score)
                result.scores[workout.id] = score.final_score
                logger.info(
                    f"Workout {workout.id}: final={score.final_score} "
                    f"progress={score.progress_score} work={score.work_score} "
                    f"consistency={score.consistency_score}"
                    + (" (dry run)" if dry_run else "")
                )
            except Exception as e:
                logger.error(f"Error scoring workout {workout.id}: {e}")
                result.failed.append(workout.id)

        if result.failed:
            result.success = False
            result.error = f"{len(result.failed)} workouts failed"
        return result
