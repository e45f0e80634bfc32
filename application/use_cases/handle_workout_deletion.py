"""
HandleWorkoutDeletion Use Case.

Runs after a workout and its sets have been deleted: repairs the stored
best-E1RM records of exercises that lost a PR set and invalidates the
user's cached rolling scores. Repair failures are reported, never raised.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from backend.core.pr_recalculation import PRRecalculationService
from backend.core.rolling_scores_cache import RollingScoresCache
from domain.models import DeletedSet

logger = logging.getLogger(__name__)


@dataclass
class HandleWorkoutDeletionResult:
    """Result of the HandleWorkoutDeletion use case execution."""

    success: bool
    workout_id: str
    recalculated: Dict[str, float] = field(default_factory=dict)
    failed_exercise_ids: List[str] = field(default_factory=list)


class HandleWorkoutDeletionUseCase:
    """
    Use case for keeping scoring history consistent after a deletion.

    The deletion itself has already succeeded; this never turns it into a
    failure. success is True even when some exercises could not be repaired.
    """

    def __init__(
        self,
        pr_service: PRRecalculationService,
        rolling_cache: Optional[RollingScoresCache] = None,
    ) -> None:
        self._pr_service = pr_service
        self._rolling_cache = rolling_cache

    def execute(
        self,
        user_id: str,
        workout_id: str,
        deleted_sets: Sequence[DeletedSet],
    ) -> HandleWorkoutDeletionResult:
        report = self._pr_service.recalculate_after_deletion(user_id, deleted_sets)

        if report.failed:
            logger.warning(
                f"PR repair incomplete after deleting workout {workout_id}: "
                f"failed exercises {report.failed}"
            )

        if self._rolling_cache is not None:
            self._rolling_cache.invalidate(user_id)

        return HandleWorkoutDeletionResult(
            success=True,
            workout_id=workout_id,
            recalculated=dict(report.recalculated),
            failed_exercise_ids=list(report.failed),
        )
