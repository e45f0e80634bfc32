"""
Logged set value objects - the raw input to workout scoring.

A LoggedSet is created once when a workout is completed and never mutated.
HistoricalSet is the same record as read back from the data store, with
exercise metadata (type, muscle group) joined in.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# Conversion constant
LB_TO_KG = 0.453592


def as_utc(value: datetime) -> datetime:
    """Return `value` as an aware UTC datetime. Naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class SetType(str, Enum):
    """
    Kind of set performed.

    - WARMUP: Excluded from PR/closeness eligibility, down-weighted in volume
    - WORKING: Regular working set
    - DROPSET: Reduced-weight continuation set
    - FAILURE: Set taken to failure
    """

    WARMUP = "warmup"
    WORKING = "working"
    DROPSET = "dropset"
    FAILURE = "failure"


class WeightUnit(str, Enum):
    """Display unit the user logs weights in. Storage is always kg."""

    KG = "kg"
    LBS = "lbs"


class ExerciseType(str, Enum):
    """Whether an exercise is tracked by load or by rep count."""

    WEIGHTED = "weighted"
    BODYWEIGHT = "bodyweight"


class LoggedSet(BaseModel):
    """
    One performed set from a completed workout.

    `weight_kg` is None only for pure bodyweight movements where load
    is not tracked. Whether a set is a PR is derived by the score
    calculator and is never supplied by the caller.

    Examples:
        >>> s = LoggedSet(
        ...     exercise_id="bench",
        ...     exercise_name="Bench Press",
        ...     weight_kg=100,
        ...     reps=8,
        ...     completed_at=datetime(2024, 1, 15, 18, 0),
        ... )
        >>> s.is_warmup
        False
    """

    model_config = ConfigDict(frozen=True)

    exercise_id: str = Field(..., min_length=1, description="Exercise identifier")
    exercise_name: str = Field(default="", description="Exercise display name")
    weight_kg: Optional[float] = Field(
        default=None,
        description="Load in kilograms, None for untracked bodyweight",
    )
    reps: int = Field(..., ge=0, description="Completed repetitions")
    set_type: SetType = Field(default=SetType.WORKING)
    is_bodyweight: bool = Field(default=False)
    completed_at: datetime = Field(..., description="When the set was logged")

    @field_validator("weight_kg")
    @classmethod
    def validate_weight(cls, v: Optional[float]) -> Optional[float]:
        """Negative loads are treated as missing."""
        if v is not None and v < 0:
            return None
        return v

    @field_validator("completed_at")
    @classmethod
    def validate_completed_at(cls, v: datetime) -> datetime:
        return as_utc(v)

    @property
    def is_warmup(self) -> bool:
        return self.set_type == SetType.WARMUP


class HistoricalSet(BaseModel):
    """A stored set read back from history, with exercise metadata joined in."""

    model_config = ConfigDict(frozen=True)

    id: Optional[str] = None
    workout_id: Optional[str] = None
    exercise_id: str
    exercise_name: str = "Unknown"
    exercise_type: ExerciseType = ExerciseType.WEIGHTED
    muscle_group: str = "other"
    set_type: SetType = SetType.WORKING
    weight_kg: Optional[float] = None
    reps: int = 0
    is_bodyweight: bool = False
    is_pr: bool = False
    completed_at: datetime

    @field_validator("muscle_group")
    @classmethod
    def normalize_muscle_group(cls, v: str) -> str:
        return (v or "other").strip().lower()

    @field_validator("completed_at")
    @classmethod
    def validate_completed_at(cls, v: datetime) -> datetime:
        return as_utc(v)

    @property
    def is_warmup(self) -> bool:
        return self.set_type == SetType.WARMUP

    @property
    def tracks_reps(self) -> bool:
        """True when the exercise is measured by reps rather than load."""
        return self.exercise_type == ExerciseType.BODYWEIGHT or self.is_bodyweight


class WorkoutWithSets(BaseModel):
    """A completed workout session and all of its sets."""

    id: str
    user_id: Optional[str] = None
    completed_at: datetime
    weight_unit: WeightUnit = WeightUnit.KG
    sets: List[HistoricalSet] = Field(default_factory=list)

    @field_validator("completed_at")
    @classmethod
    def validate_completed_at(cls, v: datetime) -> datetime:
        return as_utc(v)


class DeletedSet(BaseModel):
    """A set removed by a workout deletion, as seen by PR recalculation."""

    exercise_id: str = Field(..., min_length=1)
    is_pr: bool = False
