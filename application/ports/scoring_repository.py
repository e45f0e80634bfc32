"""
Scoring Repository Interface (Port).

This module defines the abstract interface for the set-history store that
the workout scoring services read from and write scores back to.

All datetimes passed in and returned are timezone-aware UTC. Implementations
raise application.exceptions.ScoringDataError on any failure and never
return partial results; services decide how to degrade.
"""
from datetime import datetime
from typing import Dict, List, Optional, Protocol, Sequence

from domain.models import HistoricalSet, WorkoutScoreResult, WorkoutWithSets


class ScoringRepository(Protocol):
    """
    Abstract interface for workout history queries and score persistence.

    Covers query-by-date-range (rolling windows, baselines) and
    query-by-exercise (PR recalculation, best-set calendar).
    """

    def get_total_workouts(self, user_id: str) -> int:
        """
        Get the user's lifetime completed workout count.

        Returns:
            Total workouts, 0 for users with no stats row
        """
        ...

    def fetch_workouts_with_sets(
        self,
        user_id: str,
        window_start: datetime,
        window_end: datetime,
    ) -> List[WorkoutWithSets]:
        """
        Get completed workouts in [window_start, window_end] with all their sets.

        Workouts are ordered by completed_at ascending. Every set carries the
        exercise name, type and muscle group.
        """
        ...

    def fetch_exercise_baseline_candidates(
        self,
        user_id: str,
        exercise_ids: Sequence[str],
        before_date: datetime,
        lookback_days: int,
        *,
        include_end: bool = False,
    ) -> List[HistoricalSet]:
        """
        Get non-warmup sets from sessions completed in the lookback window.

        The window is [before_date - lookback_days, before_date), or closed
        at before_date when include_end is True. Callers aggregate the raw
        sets into best E1RM or best reps.

        Args:
            user_id: User ID
            exercise_ids: Exercises to include
            before_date: End of the lookback window
            lookback_days: Window length in days
            include_end: Whether sessions completed exactly at before_date count
        """
        ...

    def fetch_last_session_dates(
        self,
        user_id: str,
        exercise_ids: Sequence[str],
        before_date: datetime,
    ) -> Dict[str, datetime]:
        """
        Get the most recent session date strictly before before_date per exercise.

        Exercises never performed before before_date are absent from the result.
        """
        ...

    def fetch_all_time_max_weight(
        self,
        user_id: str,
        exercise_ids: Sequence[str],
        *,
        before: Optional[datetime] = None,
    ) -> Dict[str, float]:
        """
        Get the heaviest non-warmup weight per exercise.

        Args:
            before: Only consider sessions completed strictly before this time
        """
        ...

    def fetch_all_time_max_reps(
        self,
        user_id: str,
        exercise_ids: Sequence[str],
        *,
        before: Optional[datetime] = None,
    ) -> Dict[str, int]:
        """Get the highest non-warmup rep count per exercise."""
        ...

    def count_workouts(
        self,
        user_id: str,
        start: datetime,
        end: datetime,
        *,
        exclude_workout_id: Optional[str] = None,
    ) -> int:
        """Count completed workouts with start <= completed_at < end."""
        ...

    def fetch_exercise_sets(
        self,
        user_id: str,
        exercise_id: str,
        *,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[HistoricalSet]:
        """
        Get every stored set of one exercise, optionally limited to a date range.

        The range is inclusive on both ends. Warmups are included; callers filter.
        """
        ...

    def fetch_unscored_workouts(
        self,
        *,
        user_id: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[WorkoutWithSets]:
        """Get completed workouts without a stored final score, newest first."""
        ...

    def persist_workout_score(
        self,
        workout_id: str,
        result: WorkoutScoreResult,
    ) -> None:
        """Write a computed score back onto the workout."""
        ...

    def persist_recalculated_baseline(
        self,
        user_id: str,
        exercise_id: str,
        new_best_e1rm: float,
    ) -> None:
        """Store a recalculated best E1RM for one exercise."""
        ...
