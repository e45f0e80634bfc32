"""
Score result models for per-workout and rolling scoring.

Results are derived data: they may be cached or stored, but can always be
recomputed from set history plus the time of calculation.
"""

from datetime import date, datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from domain.models.logged_set import LoggedSet, WeightUnit, as_utc
from domain.models.muscle_days import MuscleDayCounter


# =============================================================================
# Per-workout score
# =============================================================================


class WorkoutScoreInput(BaseModel):
    """Everything the per-workout calculator needs about one finished workout."""

    user_id: str = Field(..., min_length=1)
    workout_id: str = Field(..., min_length=1)
    completed_at: datetime
    sets: List[LoggedSet] = Field(default_factory=list)
    weight_unit: WeightUnit = WeightUnit.KG

    @field_validator("completed_at")
    @classmethod
    def validate_completed_at(cls, v: datetime) -> datetime:
        return as_utc(v)


class ExerciseScore(BaseModel):
    """Per-exercise breakdown stored alongside a workout score."""

    exercise_id: str
    exercise_name: str
    did_epr_pr: bool = False
    did_weight_pr: bool = False
    best_today_e1rm: Optional[float] = None
    baseline_e1rm_used: Optional[float] = None
    closeness_ratio: Optional[float] = None


class TopPerformer(BaseModel):
    """The exercise closest to (or furthest past) its baseline."""

    name: str
    closeness_percent: int


class WorkoutScoreResult(BaseModel):
    """
    Composite 1-100 workout score and its components.

    final_score = clamp(progress + maintenance + work + consistency, 1, 100)
    """

    final_score: int = Field(..., ge=1, le=100)
    progress_score: int = Field(..., ge=0, le=55)
    maintenance_bonus: int = Field(..., ge=0, le=19)
    work_score: int = Field(..., ge=0, le=40)
    consistency_score: int = Field(..., ge=0, le=5)
    effective_set_count: float = 0.0
    n_epr: int = 0
    n_wpr: int = 0
    near_pr_count: int = 0
    closeness_aggregate_ratio: float = 0.0
    top_performer: Optional[TopPerformer] = None
    exercise_scores: List[ExerciseScore] = Field(default_factory=list)
    pr_set_indices: List[int] = Field(
        default_factory=list,
        description="Indices into the scored set list of sets flagged as PRs",
    )


# =============================================================================
# Rolling scores
# =============================================================================


class ProgressionBreakdown(BaseModel):
    pr_count: int = 0
    near_pr_count: int = 0
    avg_closeness_percent: int = 0


class LoadBreakdown(BaseModel):
    working_sets: int = 0
    load_vs_baseline_percent: int = 0
    exercises_completed: int = 0


class ConsistencyBreakdown(BaseModel):
    workouts_count: int = 0
    longest_gap_days: int = 0
    muscle_groups_hit: int = 0
    coverage_percent: int = 0
    muscle_days: Dict[str, int] = Field(
        default_factory=dict,
        description="Distinct training days per canonical muscle group",
    )

    @field_validator("muscle_days")
    @classmethod
    def validate_muscle_days(cls, v: Dict[str, int]) -> Dict[str, int]:
        """Read stored breakdowns back through the counter: canonical groups, canonical order."""
        if not v:
            return v
        return MuscleDayCounter.from_dict(v).to_dict()


class ScoresBreakdown(BaseModel):
    progression: ProgressionBreakdown
    load: LoadBreakdown
    consistency: ConsistencyBreakdown


class RollingScoresResult(BaseModel):
    """
    Three independent 0-100 scores over the trailing 14-day window.

    All three scores are None together when the user is not calibrated.
    """

    progression: Optional[int] = None
    load: Optional[int] = None
    consistency: Optional[int] = None
    is_calibrated: bool = False
    breakdown: Optional[ScoresBreakdown] = None
    calculated_at: Optional[datetime] = None

    @classmethod
    def uncalibrated(cls, calculated_at: Optional[datetime] = None) -> "RollingScoresResult":
        return cls(calculated_at=calculated_at)


# =============================================================================
# Best-set calendar
# =============================================================================


class BestSet(BaseModel):
    """Best set of one exercise on one calendar day, ranked by Brzycki E1RM."""

    day: date
    workout_id: Optional[str] = None
    weight_kg: float
    reps: int
    e1rm: float
