"""
PR recalculation after a workout is deleted.

Only exercises that lost a PR set are recomputed. Each exercise's best Epley
E1RM is rebuilt from its surviving non-warmup sets and stored as the new
baseline. A failure on one exercise is logged and reported; the others are
still repaired and the deletion itself never fails because of it.
"""
from dataclasses import dataclass, field
from typing import Dict, Iterable, List
import logging

from application.ports.scoring_repository import ScoringRepository
from backend.core.one_rep_max import E1RM_MAX_REPS, epley_1rm
from domain.models import DeletedSet, HistoricalSet

logger = logging.getLogger(__name__)


@dataclass
class PRRecalculationReport:
    """Outcome of one recalculation pass."""
    recalculated: Dict[str, float] = field(default_factory=dict)
    failed: List[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.failed


def exercises_needing_recalculation(deleted_sets: Iterable[DeletedSet]) -> List[str]:
    """Distinct exercise IDs with at least one deleted PR set, in first-seen order."""
    return list(dict.fromkeys(s.exercise_id for s in deleted_sets if s.is_pr))


def best_surviving_e1rm(sets: Iterable[HistoricalSet]) -> float:
    """Best Epley E1RM over non-warmup sets with a weight and at most 12 reps."""
    best = 0.0
    for s in sets:
        if s.is_warmup or not s.weight_kg or s.reps > E1RM_MAX_REPS:
            continue
        best = max(best, epley_1rm(s.weight_kg, s.reps))
    return best


class PRRecalculationService:
    """Repairs stored best-E1RM records after deletions."""

    def __init__(self, repository: ScoringRepository):
        self.repository = repository

    def recalculate_after_deletion(
        self,
        user_id: str,
        deleted_sets: Iterable[DeletedSet],
    ) -> PRRecalculationReport:
        report = PRRecalculationReport()

        for exercise_id in exercises_needing_recalculation(deleted_sets):
            try:
                surviving = self.repository.fetch_exercise_sets(user_id, exercise_id)
                best = best_surviving_e1rm(surviving)
                self.repository.persist_recalculated_baseline(user_id, exercise_id, best)
                report.recalculated[exercise_id] = best
            except Exception as e:
                logger.error(f"Error recalculating PR for exercise {exercise_id}: {e}")
                report.failed.append(exercise_id)

        if report.recalculated or report.failed:
            logger.info(
                f"PR recalculation for user {user_id}: "
                f"{len(report.recalculated)} updated, {len(report.failed)} failed"
            )
        return report
