"""
Scores router for workout and rolling scores.

This router provides endpoints for:
- Scoring a workout right after it is completed
- Repairing PR records after a workout is deleted
- Rolling Progression / Load / Consistency scores (cached)
- Per-day best sets of an exercise for the progress calendar
"""
import logging
from datetime import date, datetime
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query
from pydantic import BaseModel, Field

from api.deps import (
    get_best_set_service,
    get_current_user,
    get_handle_workout_deletion_use_case,
    get_rolling_scores_cache,
    get_score_workout_use_case,
)
from application.use_cases import HandleWorkoutDeletionUseCase, ScoreWorkoutUseCase
from backend.core.best_set import BestSetService
from backend.core.rolling_scores_cache import RollingScoresCache
from domain.models import (
    BestSet,
    DeletedSet,
    LoggedSet,
    RollingScoresResult,
    SetType,
    WeightUnit,
    WorkoutScoreInput,
    WorkoutScoreResult,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/scores",
    tags=["Scores"],
)

MAX_CALENDAR_RANGE_DAYS = 366


# =============================================================================
# Request / Response Models
# =============================================================================


class LoggedSetRequest(BaseModel):
    """A performed set as sent by the client."""
    exercise_id: str = Field(..., min_length=1)
    exercise_name: str = ""
    weight_kg: Optional[float] = None
    reps: int = Field(..., ge=0)
    set_type: SetType = SetType.WORKING
    is_bodyweight: bool = False
    completed_at: Optional[datetime] = Field(
        default=None,
        description="Defaults to the workout's completion time",
    )


class ScoreWorkoutRequest(BaseModel):
    """Request body for scoring a completed workout."""
    completed_at: datetime
    weight_unit: WeightUnit = WeightUnit.KG
    sets: List[LoggedSetRequest] = Field(default_factory=list)


class ScoreWorkoutResponse(BaseModel):
    """Response for the score endpoint."""
    success: bool
    workout_id: str
    persisted: bool = False
    score: Optional[WorkoutScoreResult] = None
    message: Optional[str] = None


class WorkoutDeletionRequest(BaseModel):
    """Sets removed by a workout deletion."""
    deleted_sets: List[DeletedSet] = Field(default_factory=list)


class WorkoutDeletionResponse(BaseModel):
    """Outcome of PR repair after a deletion."""
    success: bool
    workout_id: str
    recalculated: Dict[str, float] = Field(default_factory=dict)
    failed_exercise_ids: List[str] = Field(default_factory=list)


class BestSetsResponse(BaseModel):
    """Best set per day for one exercise."""
    exercise_id: str
    start_date: date
    end_date: date
    days: List[BestSet] = Field(default_factory=list)


# =============================================================================
# Endpoints
# =============================================================================


@router.post("/workouts/{workout_id}", response_model=ScoreWorkoutResponse)
def score_workout(
    request: ScoreWorkoutRequest,
    workout_id: str = Path(..., min_length=1),
    user_id: str = Depends(get_current_user),
    use_case: ScoreWorkoutUseCase = Depends(get_score_workout_use_case),
):
    """
    Score a completed workout and store the score.

    Always returns the computed score; success is False when it could not
    be stored.
    """
    score_input = WorkoutScoreInput(
        user_id=user_id,
        workout_id=workout_id,
        completed_at=request.completed_at,
        weight_unit=request.weight_unit,
        sets=[
            LoggedSet(
                exercise_id=s.exercise_id,
                exercise_name=s.exercise_name,
                weight_kg=s.weight_kg,
                reps=s.reps,
                set_type=s.set_type,
                is_bodyweight=s.is_bodyweight,
                completed_at=s.completed_at or request.completed_at,
            )
            for s in request.sets
        ],
    )

    result = use_case.execute(score_input)

    return ScoreWorkoutResponse(
        success=result.success,
        workout_id=result.workout_id,
        persisted=result.persisted,
        score=result.score,
        message=None if result.success else (result.error or "Failed to save workout score"),
    )


@router.post("/workouts/{workout_id}/deletion", response_model=WorkoutDeletionResponse)
def handle_workout_deletion(
    request: WorkoutDeletionRequest,
    workout_id: str = Path(..., min_length=1),
    user_id: str = Depends(get_current_user),
    use_case: HandleWorkoutDeletionUseCase = Depends(get_handle_workout_deletion_use_case),
):
    """Repair stored PR records after a workout and its sets were deleted."""
    result = use_case.execute(
        user_id=user_id,
        workout_id=workout_id,
        deleted_sets=request.deleted_sets,
    )
    return WorkoutDeletionResponse(
        success=result.success,
        workout_id=result.workout_id,
        recalculated=result.recalculated,
        failed_exercise_ids=result.failed_exercise_ids,
    )


@router.get("/rolling", response_model=RollingScoresResult)
def get_rolling_scores(
    force: bool = Query(False, description="Bypass the cache and recalculate"),
    user_id: str = Depends(get_current_user),
    cache: RollingScoresCache = Depends(get_rolling_scores_cache),
):
    """
    Get the user's rolling Progression, Load and Consistency scores.

    All three scores are null while the user has fewer than 4 workouts.
    """
    return cache.get(user_id, force=force)


@router.get("/exercises/{exercise_id}/best-sets", response_model=BestSetsResponse)
def get_best_sets(
    exercise_id: str = Path(..., min_length=1),
    start_date: date = Query(..., description="First day (inclusive)"),
    end_date: date = Query(..., description="Last day (inclusive)"),
    user_id: str = Depends(get_current_user),
    service: BestSetService = Depends(get_best_set_service),
):
    """Get the best set of each day for one exercise, ranked by estimated 1RM."""
    if start_date > end_date:
        raise HTTPException(status_code=400, detail="start_date must not be after end_date")
    if (end_date - start_date).days >= MAX_CALENDAR_RANGE_DAYS:
        raise HTTPException(
            status_code=400,
            detail=f"Date range must be shorter than {MAX_CALENDAR_RANGE_DAYS} days",
        )

    days = service.best_sets_by_day(user_id, exercise_id, start_date, end_date)
    return BestSetsResponse(
        exercise_id=exercise_id,
        start_date=start_date,
        end_date=end_date,
        days=days,
    )
