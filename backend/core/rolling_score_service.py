"""
Rolling Scores Service.

Calculates three independent 0-100 scores over a trailing 14-day window:
- Progression: PR events and near-PR performance of each exercise's top sets
- Load: effort-scaled training volume relative to the prior 14 days
- Consistency: workout frequency, longest gap and muscle-group coverage

Users with fewer than 4 lifetime workouts are uncalibrated and get null
scores. Any failure while calculating degrades the whole result to the
uncalibrated shape; callers never receive a mix of real and null scores.
"""
from dataclasses import dataclass
from datetime import datetime, time, timedelta, timezone, tzinfo
from typing import Callable, Dict, List, Optional, Sequence, Set, Tuple
import logging
import math

from application.ports.scoring_repository import ScoringRepository
from backend.core.baseline_resolver import (
    BASELINE_LOOKBACK_DAYS,
    BaselineResolver,
    ExerciseBaseline,
)
from backend.core.one_rep_max import E1RM_MAX_REPS, epley_1rm, is_e1rm_eligible
from backend.utils.numbers import clamp, round_half_up
from domain.models import (
    ConsistencyBreakdown,
    HistoricalSet,
    LoadBreakdown,
    MuscleDayCounter,
    ProgressionBreakdown,
    RollingScoresResult,
    ScoresBreakdown,
    WorkoutWithSets,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Configuration
# =============================================================================

WINDOW_DAYS = 14
CALIBRATION_WORKOUTS = 4
ELIGIBLE_MAX_REPS = E1RM_MAX_REPS
TOP_SETS_PER_EXERCISE = 2

# Progression
PR_WEIGHT = 0.65
NEAR_PR_WEIGHT = 0.35
PR_SATURATION_DIVISOR = 6
NEAR_PR_THRESHOLD = 0.90

# Load
ESU_WORKING = 1.0
ESU_WARMUP = 0.25
MAX_INTENSITY_MULTIPLIER = 2.0
DEFAULT_BASELINE_LOAD = 60
MIN_LOAD_RATIO = 0.50
MAX_LOAD_RATIO = 1.25

# Consistency
FREQ_WEIGHT = 0.45
GAP_WEIGHT = 0.20
COVERAGE_WEIGHT = 0.35
TARGET_WORKOUTS = 10
MIN_GAP_DAYS = 3
MAX_GAP_DAYS = 10
TARGET_MUSCLE_DAYS = 4

SECONDS_PER_DAY = 24 * 60 * 60


@dataclass
class RollingWindow:
    """Inclusive [start, end] bounds of a rolling window, in UTC."""
    start: datetime
    end: datetime


def window_boundaries(now: datetime, tz: tzinfo = timezone.utc) -> RollingWindow:
    """
    The 14 calendar days ending today in tz: [today-13d 00:00, today 23:59:59.999].
    """
    today = now.astimezone(tz).date()
    end = datetime.combine(today, time(23, 59, 59, 999000), tzinfo=tz)
    start = datetime.combine(today - timedelta(days=WINDOW_DAYS - 1), time.min, tzinfo=tz)
    return RollingWindow(start=start.astimezone(timezone.utc), end=end.astimezone(timezone.utc))


def effective_set_units(s: HistoricalSet) -> float:
    return ESU_WARMUP if s.is_warmup else ESU_WORKING


def is_progression_eligible(s: HistoricalSet) -> bool:
    return not s.is_warmup and s.reps <= ELIGIBLE_MAX_REPS


# =============================================================================
# Progression
# =============================================================================


def calculate_progression(
    workouts: Sequence[WorkoutWithSets],
    baselines: Dict[str, ExerciseBaseline],
    max_weights: Dict[str, float],
    max_reps: Dict[str, int],
) -> Tuple[int, ProgressionBreakdown]:
    """
    Score the top 2 sets of every exercise in the window.

    A top set counts as a PR when it beats a non-zero all-time max from
    before the window (weight for weighted work, reps for bodyweight).
    Closeness is measured against the exercise baseline, capped at 1.
    """
    sets_by_exercise = _eligible_sets_by_exercise(workouts)
    bodyweight_ids = _bodyweight_exercise_ids(sets_by_exercise)

    pr_count = 0
    near_pr_ratios: List[float] = []
    closeness_ratios: List[float] = []

    for exercise_id, sets in sets_by_exercise.items():
        is_bodyweight = exercise_id in bodyweight_ids
        baseline = baselines.get(exercise_id)

        for s in _top_sets(sets, is_bodyweight):
            ratio: Optional[float] = None
            if is_bodyweight:
                prior_max = max_reps.get(exercise_id, 0)
                if prior_max > 0 and s.reps > prior_max:
                    pr_count += 1
                if baseline is not None and baseline.has_reps:
                    ratio = s.reps / baseline.best_reps
            else:
                prior_max_weight = max_weights.get(exercise_id, 0.0)
                if prior_max_weight > 0 and s.weight_kg and s.weight_kg > prior_max_weight:
                    pr_count += 1
                if baseline is not None and baseline.has_e1rm:
                    ratio = epley_1rm(s.weight_kg, s.reps) / baseline.best_e1rm

            if ratio is None:
                continue
            closeness_ratios.append(min(ratio, 1.0))
            if ratio >= NEAR_PR_THRESHOLD:
                near_pr_ratios.append(min(ratio, 1.0))

    pr_component = 1 - math.exp(-pr_count / PR_SATURATION_DIVISOR)

    near_pr_component = 0.0
    if near_pr_ratios:
        normalized = [
            clamp((r - NEAR_PR_THRESHOLD) / (1 - NEAR_PR_THRESHOLD), 0.0, 1.0)
            for r in near_pr_ratios
        ]
        near_pr_component = sum(normalized) / len(normalized)

    score = round_half_up(100 * (PR_WEIGHT * pr_component + NEAR_PR_WEIGHT * near_pr_component))

    avg_closeness_percent = 0
    if closeness_ratios:
        avg_closeness_percent = round_half_up(100 * sum(closeness_ratios) / len(closeness_ratios))

    return score, ProgressionBreakdown(
        pr_count=pr_count,
        near_pr_count=len(near_pr_ratios),
        avg_closeness_percent=avg_closeness_percent,
    )


def _eligible_sets_by_exercise(workouts: Sequence[WorkoutWithSets]) -> Dict[str, List[HistoricalSet]]:
    grouped: Dict[str, List[HistoricalSet]] = {}
    for workout in workouts:
        for s in workout.sets:
            if is_progression_eligible(s):
                grouped.setdefault(s.exercise_id, []).append(s)
    return grouped


def _bodyweight_exercise_ids(sets_by_exercise: Dict[str, List[HistoricalSet]]) -> Set[str]:
    return {
        exercise_id for exercise_id, sets in sets_by_exercise.items()
        if any(s.tracks_reps for s in sets)
    }


def _top_sets(sets: List[HistoricalSet], is_bodyweight: bool) -> List[HistoricalSet]:
    if is_bodyweight:
        ranked = sorted(sets, key=lambda s: s.reps, reverse=True)
    else:
        ranked = sorted(sets, key=lambda s: epley_1rm(s.weight_kg, s.reps), reverse=True)
    return ranked[:TOP_SETS_PER_EXERCISE]


# =============================================================================
# Load
# =============================================================================


def calculate_load(
    workouts: Sequence[WorkoutWithSets],
    baselines: Dict[str, ExerciseBaseline],
    baseline_load_units: float,
) -> Tuple[int, LoadBreakdown]:
    """
    Effort-scaled volume against the prior window's flat volume.

    Working sets with a baseline are scaled by min(E1RM / baseline, 2.0).
    """
    current_load_units = 0.0
    working_sets = 0
    exercises_completed: Set[str] = set()

    for workout in workouts:
        for s in workout.sets:
            intensity = 1.0
            if not s.is_warmup:
                working_sets += 1
                if s.reps <= ELIGIBLE_MAX_REPS:
                    exercises_completed.add(s.exercise_id)
                    baseline = baselines.get(s.exercise_id)
                    if (
                        s.weight_kg
                        and is_e1rm_eligible(s.weight_kg, s.reps)
                        and baseline is not None
                        and baseline.has_e1rm
                    ):
                        intensity = min(
                            epley_1rm(s.weight_kg, s.reps) / baseline.best_e1rm,
                            MAX_INTENSITY_MULTIPLIER,
                        )
            current_load_units += effective_set_units(s) * intensity

    effective_baseline = baseline_load_units if baseline_load_units > 0 else DEFAULT_BASELINE_LOAD
    ratio = current_load_units / effective_baseline

    normalized = clamp((ratio - MIN_LOAD_RATIO) / (MAX_LOAD_RATIO - MIN_LOAD_RATIO), 0.0, 1.0)

    return round_half_up(100 * normalized), LoadBreakdown(
        working_sets=working_sets,
        load_vs_baseline_percent=round_half_up(ratio * 100),
        exercises_completed=len(exercises_completed),
    )


def calculate_flat_load(workouts: Sequence[WorkoutWithSets]) -> float:
    """Sum of effective set units with no intensity scaling."""
    return sum(effective_set_units(s) for workout in workouts for s in workout.sets)


# =============================================================================
# Consistency
# =============================================================================


def longest_gap_days(workouts: Sequence[WorkoutWithSets], window_start: datetime) -> int:
    """
    Longest whole-day gap between consecutive workouts.

    With one workout, the gap runs from the window start; with none it is
    the full window.
    """
    if not workouts:
        return WINDOW_DAYS

    if len(workouts) == 1:
        elapsed = (workouts[0].completed_at - window_start).total_seconds()
        return max(0, math.floor(elapsed / SECONDS_PER_DAY))

    ordered = sorted(workouts, key=lambda w: w.completed_at)
    longest = 0
    for previous, current in zip(ordered, ordered[1:]):
        gap = math.floor((current.completed_at - previous.completed_at).total_seconds() / SECONDS_PER_DAY)
        longest = max(longest, gap)
    return longest


def calculate_consistency(
    workouts: Sequence[WorkoutWithSets],
    window_start: datetime,
    tz: tzinfo = timezone.utc,
) -> Tuple[int, ConsistencyBreakdown]:
    frequency = min(len(workouts) / TARGET_WORKOUTS, 1.0)

    gap = longest_gap_days(workouts, window_start)
    penalty = max(0, gap - MIN_GAP_DAYS) / (MAX_GAP_DAYS - MIN_GAP_DAYS)
    gap_score = clamp(1 - penalty, 0.0, 1.0)

    muscle_days = MuscleDayCounter()
    for workout in workouts:
        day = workout.completed_at.astimezone(tz).date()
        for s in workout.sets:
            if not s.is_warmup:
                muscle_days.record(s.muscle_group, day)
    coverage = muscle_days.coverage(TARGET_MUSCLE_DAYS)

    score = round_half_up(100 * (FREQ_WEIGHT * frequency + GAP_WEIGHT * gap_score + COVERAGE_WEIGHT * coverage))

    return score, ConsistencyBreakdown(
        workouts_count=len(workouts),
        longest_gap_days=gap,
        muscle_groups_hit=muscle_days.groups_hit,
        coverage_percent=round_half_up(coverage * 100),
        muscle_days=muscle_days.to_dict(),
    )


# =============================================================================
# Service
# =============================================================================


class RollingScoreService:
    """
    Calculates rolling scores for a user from the scoring repository.

    Usage:
        >>> service = RollingScoreService(repository, tz=ZoneInfo("America/Chicago"))
        >>> result = service.calculate("user-123")
        >>> result.is_calibrated
        True
    """

    def __init__(
        self,
        repository: ScoringRepository,
        *,
        tz: tzinfo = timezone.utc,
        clock: Optional[Callable[[], datetime]] = None,
        lookback_days: int = BASELINE_LOOKBACK_DAYS,
    ):
        self.repository = repository
        self.tz = tz
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self.baselines = BaselineResolver(repository, lookback_days=lookback_days)

    def calculate(self, user_id: str, now: Optional[datetime] = None) -> RollingScoresResult:
        """Calculate all three rolling scores, or the uncalibrated shape."""
        now = now or self._clock()
        try:
            return self._calculate(user_id, now)
        except Exception:
            logger.exception(f"Error calculating rolling scores for user {user_id}")
            return RollingScoresResult.uncalibrated(calculated_at=now)

    def _calculate(self, user_id: str, now: datetime) -> RollingScoresResult:
        total_workouts = self.repository.get_total_workouts(user_id)
        if total_workouts < CALIBRATION_WORKOUTS:
            logger.debug(f"User {user_id} uncalibrated: {total_workouts} workouts")
            return RollingScoresResult.uncalibrated(calculated_at=now)

        window = window_boundaries(now, self.tz)
        workouts = self.repository.fetch_workouts_with_sets(user_id, window.start, window.end)

        sets_by_exercise = _eligible_sets_by_exercise(workouts)
        exercise_ids = list(sets_by_exercise.keys())
        bodyweight_ids = _bodyweight_exercise_ids(sets_by_exercise)
        weighted_ids = [i for i in exercise_ids if i not in bodyweight_ids]

        baselines = self.baselines.resolve(user_id, exercise_ids, window.start)
        max_weights: Dict[str, float] = {}
        max_reps: Dict[str, int] = {}
        if weighted_ids:
            max_weights = self.repository.fetch_all_time_max_weight(
                user_id, weighted_ids, before=window.start
            )
        if bodyweight_ids:
            max_reps = self.repository.fetch_all_time_max_reps(
                user_id, sorted(bodyweight_ids), before=window.start
            )

        prior_window = self.repository.fetch_workouts_with_sets(
            user_id,
            window.start - timedelta(days=WINDOW_DAYS),
            window.start - timedelta(microseconds=1),
        )

        progression, progression_breakdown = calculate_progression(
            workouts, baselines, max_weights, max_reps
        )
        load, load_breakdown = calculate_load(workouts, baselines, calculate_flat_load(prior_window))
        consistency, consistency_breakdown = calculate_consistency(workouts, window.start, self.tz)

        return RollingScoresResult(
            progression=progression,
            load=load,
            consistency=consistency,
            is_calibrated=True,
            breakdown=ScoresBreakdown(
                progression=progression_breakdown,
                load=load_breakdown,
                consistency=consistency_breakdown,
            ),
            calculated_at=now,
        )
