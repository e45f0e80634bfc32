"""
Baseline resolution for PR and closeness detection.

A baseline is the best eligible historical performance for an exercise in a
lookback window ending at a reference date:
- best Epley E1RM for weighted work
- best rep count for bodyweight work

When the window holds nothing for an exercise, the window is re-anchored on
that exercise's most recent earlier session, so infrequently trained lifts
still get a comparison point.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Sequence
import logging

from application.ports.scoring_repository import ScoringRepository
from backend.core.one_rep_max import E1RM_MAX_REPS, E1RM_MIN_REPS, epley_1rm
from domain.models import HistoricalSet

logger = logging.getLogger(__name__)


BASELINE_LOOKBACK_DAYS = 30


@dataclass
class ExerciseBaseline:
    """Best eligible historical performance for one exercise."""
    exercise_id: str
    best_e1rm: float = 0.0
    best_reps: int = 0

    @property
    def has_e1rm(self) -> bool:
        return self.best_e1rm > 0

    @property
    def has_reps(self) -> bool:
        return self.best_reps > 0


def is_baseline_eligible(historical_set: HistoricalSet) -> bool:
    """Non-warmup sets with reps in the E1RM range."""
    return (
        not historical_set.is_warmup
        and E1RM_MIN_REPS <= historical_set.reps <= E1RM_MAX_REPS
    )


def aggregate_baselines(sets: Iterable[HistoricalSet]) -> Dict[str, ExerciseBaseline]:
    """
    Fold raw candidate sets into per-exercise baselines.

    Every eligible set feeds best_reps; sets with a positive weight also
    feed best_e1rm. Callers pick the measure that fits the exercise.
    An exercise appears in the result only if it had at least one eligible set.
    """
    baselines: Dict[str, ExerciseBaseline] = {}
    for s in sets:
        if not is_baseline_eligible(s):
            continue

        baseline = baselines.setdefault(s.exercise_id, ExerciseBaseline(s.exercise_id))
        if s.reps > baseline.best_reps:
            baseline.best_reps = s.reps
        if s.weight_kg:
            e1rm = epley_1rm(s.weight_kg, s.reps)
            if e1rm > baseline.best_e1rm:
                baseline.best_e1rm = e1rm

    return baselines


class BaselineResolver:
    """
    Resolves per-exercise baselines against the scoring repository.

    Repository errors propagate; per-workout and rolling scoring degrade
    differently and handle them themselves.
    """

    def __init__(
        self,
        repository: ScoringRepository,
        lookback_days: int = BASELINE_LOOKBACK_DAYS,
    ):
        self.repository = repository
        self.lookback_days = lookback_days

    def resolve(
        self,
        user_id: str,
        exercise_ids: Sequence[str],
        before_date: datetime,
    ) -> Dict[str, ExerciseBaseline]:
        """
        Resolve baselines for exercises as of before_date.

        Step 1 searches [before_date - lookback, before_date). Exercises with
        no eligible set there fall back to the lookback window ending on
        (and including) their most recent session before step 1's window.

        Args:
            user_id: User ID
            exercise_ids: Exercises to resolve
            before_date: Reference point (workout time or rolling window start)

        Returns:
            Dict of exercise_id -> ExerciseBaseline. Exercises with no
            eligible history at all are absent.
        """
        ids = list(dict.fromkeys(exercise_ids))
        if not ids:
            return {}

        recent = self.repository.fetch_exercise_baseline_candidates(
            user_id, ids, before_date, self.lookback_days
        )
        baselines = aggregate_baselines(recent)

        missing = [i for i in ids if i not in baselines]
        if missing:
            baselines.update(self._resolve_fallback(user_id, missing, before_date))

        logger.debug(
            f"Resolved {len(baselines)}/{len(ids)} baselines for user {user_id} "
            f"before {before_date.isoformat()}"
        )
        return baselines

    def resolve_e1rm(
        self,
        user_id: str,
        exercise_ids: Sequence[str],
        before_date: datetime,
    ) -> Dict[str, float]:
        """Best E1RM per exercise, omitting exercises without a positive E1RM."""
        baselines = self.resolve(user_id, exercise_ids, before_date)
        return {i: b.best_e1rm for i, b in baselines.items() if b.has_e1rm}

    def _resolve_fallback(
        self,
        user_id: str,
        exercise_ids: List[str],
        before_date: datetime,
    ) -> Dict[str, ExerciseBaseline]:
        window_start = before_date - timedelta(days=self.lookback_days)
        last_dates = self.repository.fetch_last_session_dates(
            user_id, exercise_ids, window_start
        )

        resolved: Dict[str, ExerciseBaseline] = {}
        for exercise_id, last_date in last_dates.items():
            historical = self.repository.fetch_exercise_baseline_candidates(
                user_id,
                [exercise_id],
                last_date,
                self.lookback_days,
                include_end=True,
            )
            baseline = aggregate_baselines(historical).get(exercise_id)
            if baseline is not None:
                resolved[exercise_id] = baseline

        return resolved
