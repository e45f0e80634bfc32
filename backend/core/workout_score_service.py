"""
Per-Workout Score Calculation.

Calculates a workout score (1-100) once, right after a workout is completed:
- Progress Score (0-55): PRs (0-40) + closeness to baseline (0-25)
  + near-PR bonus (0-9), capped at 55
- Maintenance Bonus (0-19): strong sessions near PR range without PRs
- Work Score (0-40): effective set volume
- Consistency Score (0-5): workouts in the trailing 7 days

History fetch failures never abort scoring: a failed fetch is treated as
empty history (no baseline, prior max weight 0).
"""
from dataclasses import dataclass, field
from datetime import datetime, time, timedelta, timezone, tzinfo
from typing import Dict, List, Optional, Sequence, Tuple
import logging

from application.exceptions import ScoringDataError
from application.ports.scoring_repository import ScoringRepository
from backend.core.baseline_resolver import BASELINE_LOOKBACK_DAYS, BaselineResolver
from backend.core.one_rep_max import epley_1rm, is_e1rm_eligible
from backend.utils.numbers import clamp, round_half_up, round_to
from domain.models import (
    LB_TO_KG,
    ExerciseScore,
    LoggedSet,
    TopPerformer,
    WeightUnit,
    WorkoutScoreInput,
    WorkoutScoreResult,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

# EPR PR thresholds
EPR_MIN_PERCENT_IMPROVEMENT = 0.01
EPR_MIN_ABSOLUTE_IMPROVEMENT_KG = 1.0
EPR_MIN_ABSOLUTE_IMPROVEMENT_LBS = 2.5

# PR point values, EPRs are ordered before weight PRs
BASE_EPR_VALUE = 10
BASE_WPR_VALUE = 8

# Diminishing returns by position in the PR event list
PR_MULTIPLIERS = (1.0, 0.85, 0.70, 0.55, 0.45, 0.35, 0.30, 0.25, 0.22, 0.20)
PR_MULTIPLIER_FLOOR = 0.20
PR_COMPONENT_MAX = 40

CLOSENESS_RATIO_CAP = 1.05
CLOSENESS_BRACKETS = (
    (1.00, 1.00),
    (0.98, 0.85),
    (0.95, 0.65),
    (0.90, 0.45),
    (0.85, 0.30),
    (0.80, 0.15),
)
CLOSENESS_MAX = 25
NO_BASELINE_CLOSENESS_POINTS = 0.5

# Near-PR: 98-99.9% of baseline without an EPR
NEAR_PR_MIN_RATIO = 0.98
NEAR_PR_BONUS = 3
NEAR_PR_MAX = 9

PROGRESS_MAX = 55

MAINTENANCE_BONUS_TIERS = (
    (0.95, 19),
    (0.90, 16),
    (0.85, 12),
    (0.80, 6),
)
MAINTENANCE_PR_DIVISOR = 40

WARMUP_SET_WEIGHT = 0.25
WORKING_SET_WEIGHT = 1.0
WORK_SCORE_MAX = 40

CONSISTENCY_WINDOW_DAYS = 7
CONSISTENCY_MAP = {0: 0, 1: 1, 2: 3, 3: 4}
CONSISTENCY_MAX = 5

MIN_FINAL_SCORE = 1
MAX_FINAL_SCORE = 100


# =============================================================================
# Per-exercise analysis
# =============================================================================


@dataclass
class ExerciseAnalysis:
    """Everything derived for one exercise of the workout being scored."""
    exercise_id: str
    exercise_name: str
    set_indices: List[int] = field(default_factory=list)
    prior_max_weight: float = 0.0
    baseline_e1rm: Optional[float] = None
    today_best_e1rm: Optional[float] = None
    best_set_index: Optional[int] = None
    did_weight_pr: bool = False
    did_epr_pr: bool = False
    closeness_ratio: Optional[float] = None

    @property
    def is_near_pr(self) -> bool:
        return (
            self.closeness_ratio is not None
            and NEAR_PR_MIN_RATIO <= self.closeness_ratio < 1.0
            and not self.did_epr_pr
        )


def epr_threshold_kg(weight_unit: WeightUnit) -> float:
    """Minimum absolute E1RM gain for an EPR, in kg."""
    if weight_unit == WeightUnit.LBS:
        return EPR_MIN_ABSOLUTE_IMPROVEMENT_LBS * LB_TO_KG
    return EPR_MIN_ABSOLUTE_IMPROVEMENT_KG


def is_epr(today_e1rm: Optional[float], baseline_e1rm: Optional[float], weight_unit: WeightUnit) -> bool:
    if today_e1rm is None or baseline_e1rm is None or baseline_e1rm <= 0:
        return False
    gain = today_e1rm - baseline_e1rm
    return gain / baseline_e1rm >= EPR_MIN_PERCENT_IMPROVEMENT and gain >= epr_threshold_kg(weight_unit)


def closeness_ratio(today_e1rm: Optional[float], baseline_e1rm: Optional[float]) -> Optional[float]:
    if today_e1rm is None or baseline_e1rm is None or baseline_e1rm <= 0:
        return None
    return max(min(today_e1rm / baseline_e1rm, CLOSENESS_RATIO_CAP), 0.0)


def closeness_points(ratio: float) -> float:
    for minimum, points in CLOSENESS_BRACKETS:
        if ratio >= minimum:
            return points
    return 0.0


# =============================================================================
# Component calculations
# =============================================================================


def calculate_pr_points(n_epr: int, n_wpr: int) -> float:
    """Raw (unrounded) PR points with diminishing returns applied."""
    events = [BASE_EPR_VALUE] * n_epr + [BASE_WPR_VALUE] * n_wpr
    total = 0.0
    for position, value in enumerate(events):
        multiplier = PR_MULTIPLIERS[position] if position < len(PR_MULTIPLIERS) else PR_MULTIPLIER_FLOOR
        total += value * multiplier
    return total


def calculate_closeness_aggregate(exercises: Sequence[ExerciseAnalysis]) -> float:
    """Average bracket points; exercises without a baseline count as neutral."""
    if not exercises:
        return 0.0

    total = 0.0
    for exercise in exercises:
        if exercise.baseline_e1rm is None or exercise.closeness_ratio is None:
            total += NO_BASELINE_CLOSENESS_POINTS
        else:
            total += closeness_points(exercise.closeness_ratio)
    return total / len(exercises)


def calculate_progress_score(exercises: Sequence[ExerciseAnalysis]) -> Tuple[int, float]:
    """
    Returns:
        (progress_score, raw_pr_points). The raw points drive the maintenance
        bonus scale factor.
    """
    n_epr = sum(1 for e in exercises if e.did_epr_pr)
    n_wpr = sum(1 for e in exercises if e.did_weight_pr)
    pr_points = calculate_pr_points(n_epr, n_wpr)
    pr_component = min(PR_COMPONENT_MAX, round_half_up(pr_points))

    aggregate = calculate_closeness_aggregate(exercises)
    closeness_component = min(CLOSENESS_MAX, round_half_up(CLOSENESS_MAX * aggregate))

    near_pr_bonus = min(NEAR_PR_MAX, NEAR_PR_BONUS * sum(1 for e in exercises if e.is_near_pr))

    progress = min(PROGRESS_MAX, pr_component + closeness_component + near_pr_bonus)
    return progress, pr_points


def calculate_maintenance_bonus(exercises: Sequence[ExerciseAnalysis], pr_points: float) -> int:
    scale = max(0.0, 1 - pr_points / MAINTENANCE_PR_DIVISOR)
    if scale <= 0:
        return 0

    ratios = [
        e.closeness_ratio for e in exercises
        if e.closeness_ratio is not None and e.baseline_e1rm is not None
    ]
    if not ratios:
        return 0

    average = sum(ratios) / len(ratios)
    base_bonus = 0
    for minimum, points in MAINTENANCE_BONUS_TIERS:
        if average >= minimum:
            base_bonus = points
            break

    return round_half_up(base_bonus * scale)


def calculate_effective_set_count(sets: Sequence[LoggedSet]) -> float:
    return sum(WARMUP_SET_WEIGHT if s.is_warmup else WORKING_SET_WEIGHT for s in sets)


def calculate_work_score(effective_set_count: float) -> int:
    """Piecewise-linear volume curve: 6 sets -> 10, 12 -> 25, 20+ -> 40."""
    n = effective_set_count
    if n < 6:
        score = (n / 6) * 10
    elif n <= 12:
        score = 10 + ((n - 6) / 6) * 15
    elif n <= 20:
        score = 25 + ((n - 12) / 8) * 15
    else:
        score = WORK_SCORE_MAX
    return int(clamp(round_half_up(score), 0, WORK_SCORE_MAX))


def consistency_score_for_count(workout_count: int) -> int:
    """Step function: 1 workout -> 1, 2 -> 3, 3 -> 4, 4+ -> 5."""
    if workout_count >= 4:
        return CONSISTENCY_MAX
    return CONSISTENCY_MAP.get(max(workout_count, 0), 0)


def find_top_performer(exercises: Sequence[ExerciseAnalysis]) -> Optional[TopPerformer]:
    """Exercise with the highest rounded closeness percent; first one wins ties."""
    top: Optional[TopPerformer] = None
    for exercise in exercises:
        if exercise.closeness_ratio is None:
            continue
        percent = round_half_up(exercise.closeness_ratio * 100)
        if top is None or percent > top.closeness_percent:
            top = TopPerformer(name=exercise.exercise_name, closeness_percent=percent)
    return top


# =============================================================================
# Service
# =============================================================================


class WorkoutScoreService:
    """
    Computes the 1-100 score of a single completed workout.

    Usage:
        >>> service = WorkoutScoreService(repository)
        >>> result = service.calculate(score_input)
        >>> result.final_score
        57
    """

    def __init__(
        self,
        repository: ScoringRepository,
        *,
        tz: tzinfo = timezone.utc,
        lookback_days: int = BASELINE_LOOKBACK_DAYS,
    ):
        self.repository = repository
        self.tz = tz
        self.baselines = BaselineResolver(repository, lookback_days=lookback_days)

    def calculate(self, score_input: WorkoutScoreInput) -> WorkoutScoreResult:
        """
        Score one workout.

        Never raises for missing history: every repository call degrades to
        empty data on ScoringDataError.
        """
        exercises = self._group_by_exercise(score_input.sets)
        exercise_ids = list(exercises.keys())

        prior_max_weights = self._fetch_prior_max_weights(score_input, exercise_ids)
        baselines = self._fetch_baselines(score_input, exercise_ids)

        for exercise in exercises.values():
            self._analyze_exercise(
                exercise,
                score_input,
                prior_max_weight=prior_max_weights.get(exercise.exercise_id, 0.0),
                baseline_e1rm=baselines.get(exercise.exercise_id),
            )

        analyses = list(exercises.values())

        progress_score, pr_points = calculate_progress_score(analyses)
        maintenance_bonus = calculate_maintenance_bonus(analyses, pr_points)
        effective_set_count = calculate_effective_set_count(score_input.sets)
        work_score = calculate_work_score(effective_set_count)
        consistency_score = consistency_score_for_count(self._count_recent_workouts(score_input))

        final_score = int(clamp(
            progress_score + maintenance_bonus + work_score + consistency_score,
            MIN_FINAL_SCORE,
            MAX_FINAL_SCORE,
        ))

        return WorkoutScoreResult(
            final_score=final_score,
            progress_score=progress_score,
            maintenance_bonus=maintenance_bonus,
            work_score=work_score,
            consistency_score=consistency_score,
            effective_set_count=round_to(effective_set_count, 2),
            n_epr=sum(1 for e in analyses if e.did_epr_pr),
            n_wpr=sum(1 for e in analyses if e.did_weight_pr),
            near_pr_count=sum(1 for e in analyses if e.is_near_pr),
            closeness_aggregate_ratio=round_to(calculate_closeness_aggregate(analyses), 3),
            top_performer=find_top_performer(analyses),
            exercise_scores=[
                ExerciseScore(
                    exercise_id=e.exercise_id,
                    exercise_name=e.exercise_name,
                    did_epr_pr=e.did_epr_pr,
                    did_weight_pr=e.did_weight_pr,
                    best_today_e1rm=e.today_best_e1rm,
                    baseline_e1rm_used=e.baseline_e1rm,
                    closeness_ratio=e.closeness_ratio,
                )
                for e in analyses
            ],
            pr_set_indices=self._pr_set_indices(score_input.sets, analyses),
        )

    # -------------------------------------------------------------------------
    # Analysis
    # -------------------------------------------------------------------------

    @staticmethod
    def _group_by_exercise(sets: Sequence[LoggedSet]) -> Dict[str, ExerciseAnalysis]:
        grouped: Dict[str, ExerciseAnalysis] = {}
        for index, s in enumerate(sets):
            analysis = grouped.get(s.exercise_id)
            if analysis is None:
                analysis = ExerciseAnalysis(
                    exercise_id=s.exercise_id,
                    exercise_name=s.exercise_name,
                )
                grouped[s.exercise_id] = analysis
            analysis.set_indices.append(index)
        return grouped

    def _analyze_exercise(
        self,
        exercise: ExerciseAnalysis,
        score_input: WorkoutScoreInput,
        *,
        prior_max_weight: float,
        baseline_e1rm: Optional[float],
    ) -> None:
        exercise.prior_max_weight = prior_max_weight
        exercise.baseline_e1rm = baseline_e1rm

        for index in exercise.set_indices:
            s = score_input.sets[index]
            if is_e1rm_eligible(s.weight_kg, s.reps):
                e1rm = epley_1rm(s.weight_kg, s.reps)
                if exercise.today_best_e1rm is None or e1rm > exercise.today_best_e1rm:
                    exercise.today_best_e1rm = e1rm
                    exercise.best_set_index = index
            if s.weight_kg is not None and s.weight_kg > prior_max_weight:
                exercise.did_weight_pr = True

        exercise.did_epr_pr = is_epr(exercise.today_best_e1rm, baseline_e1rm, score_input.weight_unit)
        exercise.closeness_ratio = closeness_ratio(exercise.today_best_e1rm, baseline_e1rm)

        logger.debug(
            f"{exercise.exercise_name}: baseline={baseline_e1rm}, today={exercise.today_best_e1rm}, "
            f"closeness={exercise.closeness_ratio}, weightPR={exercise.did_weight_pr}, "
            f"eprPR={exercise.did_epr_pr}"
        )

    @staticmethod
    def _pr_set_indices(sets: Sequence[LoggedSet], analyses: Sequence[ExerciseAnalysis]) -> List[int]:
        flagged = set()
        for exercise in analyses:
            for index in exercise.set_indices:
                weight = sets[index].weight_kg
                if weight is not None and weight > exercise.prior_max_weight:
                    flagged.add(index)
            if exercise.did_epr_pr and exercise.best_set_index is not None:
                flagged.add(exercise.best_set_index)
        return sorted(flagged)

    # -------------------------------------------------------------------------
    # History (degrades to empty on failure)
    # -------------------------------------------------------------------------

    def _fetch_prior_max_weights(
        self, score_input: WorkoutScoreInput, exercise_ids: List[str]
    ) -> Dict[str, float]:
        if not exercise_ids:
            return {}
        try:
            return self.repository.fetch_all_time_max_weight(
                score_input.user_id, exercise_ids, before=score_input.completed_at
            )
        except ScoringDataError as e:
            logger.warning(f"Prior max weight fetch failed for workout {score_input.workout_id}: {e}")
            return {}

    def _fetch_baselines(
        self, score_input: WorkoutScoreInput, exercise_ids: List[str]
    ) -> Dict[str, float]:
        if not exercise_ids:
            return {}
        try:
            return self.baselines.resolve_e1rm(
                score_input.user_id, exercise_ids, score_input.completed_at
            )
        except ScoringDataError as e:
            logger.warning(f"Baseline fetch failed for workout {score_input.workout_id}: {e}")
            return {}

    def _count_recent_workouts(self, score_input: WorkoutScoreInput) -> int:
        """Workouts in the trailing 7 calendar days, this one included exactly once."""
        local_day = score_input.completed_at.astimezone(self.tz).date()
        window_start = datetime.combine(
            local_day - timedelta(days=CONSISTENCY_WINDOW_DAYS - 1),
            time.min,
            tzinfo=self.tz,
        ).astimezone(timezone.utc)

        try:
            previous = self.repository.count_workouts(
                score_input.user_id,
                window_start,
                score_input.completed_at,
                exclude_workout_id=score_input.workout_id,
            )
        except ScoringDataError as e:
            logger.warning(f"Workout count fetch failed for workout {score_input.workout_id}: {e}")
            return 1

        return previous + 1
