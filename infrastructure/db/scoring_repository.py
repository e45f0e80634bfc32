"""
Supabase Scoring Repository Implementation.

This module implements the ScoringRepository protocol using Supabase.

Tables:
- workout_sessions: one row per workout (completed_at, score columns)
- workout_sets: one row per set, joined to exercises for name/type/muscle
- user_stats: lifetime counters (total_workouts)
- exercise_baselines: stored best E1RM per (user, exercise)

Every query failure is raised as ScoringDataError.
"""
from typing import Any, Dict, List, Optional, Sequence
from datetime import datetime, timedelta, timezone
import logging

from pydantic import TypeAdapter
from supabase import Client

from application.exceptions import ScoringDataError
from domain.models import HistoricalSet, WorkoutScoreResult, WorkoutWithSets, as_utc

logger = logging.getLogger(__name__)


SET_COLUMNS = (
    "id, workout_session_id, exercise_id, set_type, weight_kg, reps, "
    "is_bodyweight, is_pr, completed_at, "
    "exercise:exercises(name, exercise_type, muscle_group)"
)

JOINED_SET_COLUMNS = (
    "id, workout_session_id, exercise_id, set_type, weight_kg, reps, "
    "is_bodyweight, is_pr, completed_at, "
    "exercise:exercises(name, exercise_type, muscle_group), "
    "workout_session:workout_sessions!inner(user_id, completed_at)"
)


def _iso(value: datetime) -> str:
    return value.astimezone(timezone.utc).isoformat()


_TIMESTAMP = TypeAdapter(datetime)


def _parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse a PostgREST timestamptz; any fraction length and a trailing Z are accepted."""
    if not value:
        return None
    return as_utc(_TIMESTAMP.validate_python(value))


def _row_to_historical_set(
    row: Dict[str, Any],
    session_completed_at: Optional[str] = None,
) -> HistoricalSet:
    """
    Convert a workout_sets row to a HistoricalSet.

    Windows are defined on the session's completion time, so that time is
    used when the row carries its session; the set's own timestamp otherwise.
    """
    exercise = row.get("exercise") or {}
    session = row.get("workout_session") or {}
    completed_at = (
        session.get("completed_at")
        or session_completed_at
        or row.get("completed_at")
    )

    return HistoricalSet(
        id=row.get("id"),
        workout_id=row.get("workout_session_id"),
        exercise_id=row["exercise_id"],
        exercise_name=exercise.get("name") or "Unknown",
        exercise_type=exercise.get("exercise_type") or "weighted",
        muscle_group=exercise.get("muscle_group") or "other",
        set_type=row.get("set_type") or "working",
        weight_kg=row.get("weight_kg"),
        reps=row.get("reps") or 0,
        is_bodyweight=bool(row.get("is_bodyweight")),
        is_pr=bool(row.get("is_pr")),
        completed_at=_parse_timestamp(completed_at),
    )


class SupabaseScoringRepository:
    """
    Supabase implementation of ScoringRepository.

    Filters on the parent session go through the inner join
    (workout_session.user_id, workout_session.completed_at).
    """

    def __init__(self, client: Client):
        """
        Initialize with Supabase client.

        Args:
            client: Supabase client instance (injected)
        """
        self._client = client

    # =========================================================================
    # Counters
    # =========================================================================

    def get_total_workouts(self, user_id: str) -> int:
        try:
            result = self._client.table("user_stats") \
                .select("total_workouts") \
                .eq("user_id", user_id) \
                .limit(1) \
                .execute()
            if not result.data:
                return 0
            return int(result.data[0].get("total_workouts") or 0)
        except Exception as e:
            raise ScoringDataError(f"Error fetching total workouts: {e}", "get_total_workouts") from e

    def count_workouts(
        self,
        user_id: str,
        start: datetime,
        end: datetime,
        *,
        exclude_workout_id: Optional[str] = None,
    ) -> int:
        try:
            query = self._client.table("workout_sessions") \
                .select("id", count="exact") \
                .eq("user_id", user_id) \
                .not_.is_("completed_at", "null") \
                .gte("completed_at", _iso(start)) \
                .lt("completed_at", _iso(end))
            if exclude_workout_id:
                query = query.neq("id", exclude_workout_id)
            result = query.execute()
            if result.count is not None:
                return result.count
            return len(result.data or [])
        except Exception as e:
            raise ScoringDataError(f"Error counting workouts: {e}", "count_workouts") from e

    # =========================================================================
    # Windows of workouts
    # =========================================================================

    def fetch_workouts_with_sets(
        self,
        user_id: str,
        window_start: datetime,
        window_end: datetime,
    ) -> List[WorkoutWithSets]:
        try:
            result = self._client.table("workout_sessions") \
                .select("id, user_id, completed_at") \
                .eq("user_id", user_id) \
                .gte("completed_at", _iso(window_start)) \
                .lte("completed_at", _iso(window_end)) \
                .order("completed_at") \
                .execute()
        except Exception as e:
            raise ScoringDataError(f"Error fetching workouts: {e}", "fetch_workouts_with_sets") from e

        return self._attach_sets(result.data or [])

    def fetch_unscored_workouts(
        self,
        *,
        user_id: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[WorkoutWithSets]:
        try:
            query = self._client.table("workout_sessions") \
                .select("id, user_id, completed_at") \
                .not_.is_("completed_at", "null") \
                .is_("final_score", "null") \
                .order("completed_at", desc=True)
            if user_id:
                query = query.eq("user_id", user_id)
            if limit:
                query = query.limit(limit)
            result = query.execute()
        except Exception as e:
            raise ScoringDataError(f"Error fetching unscored workouts: {e}", "fetch_unscored_workouts") from e

        return self._attach_sets(result.data or [])

    def _attach_sets(self, sessions: List[Dict[str, Any]]) -> List[WorkoutWithSets]:
        if not sessions:
            return []

        try:
            session_ids = [s["id"] for s in sessions]
            completed_by_session = {s["id"]: s.get("completed_at") for s in sessions}

            result = self._client.table("workout_sets") \
                .select(SET_COLUMNS) \
                .in_("workout_session_id", session_ids) \
                .execute()

            sets_by_session: Dict[str, List[HistoricalSet]] = {}
            for row in result.data or []:
                session_id = row.get("workout_session_id")
                sets_by_session.setdefault(session_id, []).append(
                    _row_to_historical_set(row, completed_by_session.get(session_id))
                )

            return [
                WorkoutWithSets(
                    id=s["id"],
                    user_id=s.get("user_id"),
                    completed_at=_parse_timestamp(s["completed_at"]),
                    sets=sets_by_session.get(s["id"], []),
                )
                for s in sessions
            ]
        except Exception as e:
            raise ScoringDataError(f"Error fetching workout sets: {e}", "fetch_sets") from e

    # =========================================================================
    # Baselines and all-time maxima
    # =========================================================================

    def fetch_exercise_baseline_candidates(
        self,
        user_id: str,
        exercise_ids: Sequence[str],
        before_date: datetime,
        lookback_days: int,
        *,
        include_end: bool = False,
    ) -> List[HistoricalSet]:
        if not exercise_ids:
            return []

        lookback_start = before_date - timedelta(days=lookback_days)
        try:
            query = self._client.table("workout_sets") \
                .select(JOINED_SET_COLUMNS) \
                .in_("exercise_id", list(exercise_ids)) \
                .eq("workout_session.user_id", user_id) \
                .gte("workout_session.completed_at", _iso(lookback_start)) \
                .neq("set_type", "warmup")
            if include_end:
                query = query.lte("workout_session.completed_at", _iso(before_date))
            else:
                query = query.lt("workout_session.completed_at", _iso(before_date))
            result = query.execute()
            return [_row_to_historical_set(row) for row in result.data or []]
        except Exception as e:
            raise ScoringDataError(f"Error fetching baseline sets: {e}", "fetch_exercise_baseline_candidates") from e

    def fetch_last_session_dates(
        self,
        user_id: str,
        exercise_ids: Sequence[str],
        before_date: datetime,
    ) -> Dict[str, datetime]:
        if not exercise_ids:
            return {}

        try:
            result = self._client.table("workout_sets") \
                .select("exercise_id, workout_session:workout_sessions!inner(user_id, completed_at)") \
                .in_("exercise_id", list(exercise_ids)) \
                .eq("workout_session.user_id", user_id) \
                .lt("workout_session.completed_at", _iso(before_date)) \
                .execute()

            last_dates: Dict[str, datetime] = {}
            for row in result.data or []:
                completed_at = _parse_timestamp((row.get("workout_session") or {}).get("completed_at"))
                if completed_at is None:
                    continue
                current = last_dates.get(row["exercise_id"])
                if current is None or completed_at > current:
                    last_dates[row["exercise_id"]] = completed_at
            return last_dates
        except Exception as e:
            raise ScoringDataError(f"Error fetching last session dates: {e}", "fetch_last_session_dates") from e

    def fetch_all_time_max_weight(
        self,
        user_id: str,
        exercise_ids: Sequence[str],
        *,
        before: Optional[datetime] = None,
    ) -> Dict[str, float]:
        if not exercise_ids:
            return {}

        try:
            query = self._client.table("workout_sets") \
                .select("exercise_id, weight_kg, workout_session:workout_sessions!inner(user_id, completed_at)") \
                .in_("exercise_id", list(exercise_ids)) \
                .eq("workout_session.user_id", user_id) \
                .neq("set_type", "warmup") \
                .not_.is_("weight_kg", "null")
            if before is not None:
                query = query.lt("workout_session.completed_at", _iso(before))
            result = query.execute()

            max_weights: Dict[str, float] = {}
            for row in result.data or []:
                weight = float(row.get("weight_kg") or 0)
                if weight > max_weights.get(row["exercise_id"], 0):
                    max_weights[row["exercise_id"]] = weight
            return max_weights
        except Exception as e:
            raise ScoringDataError(f"Error fetching max weights: {e}", "fetch_all_time_max_weight") from e

    def fetch_all_time_max_reps(
        self,
        user_id: str,
        exercise_ids: Sequence[str],
        *,
        before: Optional[datetime] = None,
    ) -> Dict[str, int]:
        if not exercise_ids:
            return {}

        try:
            query = self._client.table("workout_sets") \
                .select("exercise_id, reps, workout_session:workout_sessions!inner(user_id, completed_at)") \
                .in_("exercise_id", list(exercise_ids)) \
                .eq("workout_session.user_id", user_id) \
                .neq("set_type", "warmup")
            if before is not None:
                query = query.lt("workout_session.completed_at", _iso(before))
            result = query.execute()

            max_reps: Dict[str, int] = {}
            for row in result.data or []:
                reps = int(row.get("reps") or 0)
                if reps > max_reps.get(row["exercise_id"], 0):
                    max_reps[row["exercise_id"]] = reps
            return max_reps
        except Exception as e:
            raise ScoringDataError(f"Error fetching max reps: {e}", "fetch_all_time_max_reps") from e

    # =========================================================================
    # Query by exercise
    # =========================================================================

    def fetch_exercise_sets(
        self,
        user_id: str,
        exercise_id: str,
        *,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[HistoricalSet]:
        try:
            query = self._client.table("workout_sets") \
                .select(JOINED_SET_COLUMNS) \
                .eq("exercise_id", exercise_id) \
                .eq("workout_session.user_id", user_id) \
                .not_.is_("workout_session.completed_at", "null")
            if start is not None:
                query = query.gte("workout_session.completed_at", _iso(start))
            if end is not None:
                query = query.lte("workout_session.completed_at", _iso(end))
            result = query.execute()
            return [_row_to_historical_set(row) for row in result.data or []]
        except Exception as e:
            raise ScoringDataError(f"Error fetching exercise sets: {e}", "fetch_exercise_sets") from e

    # =========================================================================
    # Persistence
    # =========================================================================

    def persist_workout_score(self, workout_id: str, result: WorkoutScoreResult) -> None:
        payload = {
            "final_score": result.final_score,
            "progress_score": result.progress_score,
            "work_score": result.work_score,
            "consistency_score": result.consistency_score,
            "effective_set_count": result.effective_set_count,
            "epr_pr_count": result.n_epr,
            "weight_pr_count": result.n_wpr,
            "closeness_aggregate_ratio": result.closeness_aggregate_ratio,
            "exercise_scores": [
                score.model_dump(mode="json") for score in result.exercise_scores
            ],
        }
        try:
            self._client.table("workout_sessions") \
                .update(payload) \
                .eq("id", workout_id) \
                .execute()
        except Exception as e:
            raise ScoringDataError(f"Error saving workout score: {e}", "persist_workout_score") from e

        logger.info(f"Workout score saved for {workout_id}: {result.final_score}")

    def persist_recalculated_baseline(
        self,
        user_id: str,
        exercise_id: str,
        new_best_e1rm: float,
    ) -> None:
        try:
            self._client.table("exercise_baselines") \
                .update({
                    "best_e1rm": new_best_e1rm,
                    "updated_at": datetime.now(timezone.utc).isoformat(),
                }) \
                .eq("user_id", user_id) \
                .eq("exercise_id", exercise_id) \
                .execute()
        except Exception as e:
            raise ScoringDataError(f"Error saving baseline: {e}", "persist_recalculated_baseline") from e
