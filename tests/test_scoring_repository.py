"""
Tests for the Supabase scoring repository.

The Supabase client is mocked; these tests verify row mapping, query
filters and error wrapping.
"""
import pytest
from datetime import datetime, timezone
from unittest.mock import MagicMock, Mock

from application.exceptions import ScoringDataError
from backend.core.workout_score_service import WorkoutScoreService
from domain.models import ExerciseType, LoggedSet, SetType, WorkoutScoreInput, WorkoutScoreResult
from infrastructure.db.scoring_repository import (
    SupabaseScoringRepository,
    _parse_timestamp,
    _row_to_historical_set,
)

# All tests in this module are pure logic tests with mocks - mark as unit
pytestmark = pytest.mark.unit


QUERY_METHODS = ("select", "eq", "neq", "gte", "lte", "lt", "in_", "is_", "order", "limit", "update")

BEFORE = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


def make_client(*results, error=None):
    """
    Mock Supabase client whose query builder chains back to itself.

    Each execute() call returns the next of `results` (data, count) pairs.
    """
    query = MagicMock()
    for name in QUERY_METHODS:
        getattr(query, name).return_value = query
    query.not_ = query

    if error is not None:
        query.execute.side_effect = error
    else:
        query.execute.side_effect = [Mock(data=data, count=count) for data, count in results]

    client = MagicMock()
    client.table.return_value = query
    return client, query


def set_row(**overrides):
    row = {
        "id": "s1",
        "workout_session_id": "w1",
        "exercise_id": "bench",
        "set_type": "working",
        "weight_kg": 100,
        "reps": 5,
        "is_bodyweight": False,
        "is_pr": False,
        "completed_at": "2024-02-20T10:05:00+00:00",
        "exercise": {"name": "Bench Press", "exercise_type": "weighted", "muscle_group": "Chest"},
    }
    row.update(overrides)
    return row


class TestRowMapping:
    """Tests for workout_sets row conversion."""

    def test_joined_exercise_fields(self):
        s = _row_to_historical_set(set_row())
        assert s.exercise_name == "Bench Press"
        assert s.exercise_type == ExerciseType.WEIGHTED
        assert s.muscle_group == "chest"
        assert s.set_type == SetType.WORKING
        assert s.workout_id == "w1"

    def test_session_time_preferred(self):
        s = _row_to_historical_set(set_row(
            workout_session={"user_id": "user-1", "completed_at": "2024-02-20T11:00:00Z"},
        ))
        assert s.completed_at == datetime(2024, 2, 20, 11, 0, tzinfo=timezone.utc)

    def test_missing_exercise_join(self):
        s = _row_to_historical_set(set_row(exercise=None, set_type=None, reps=None))
        assert s.exercise_name == "Unknown"
        assert s.exercise_type == ExerciseType.WEIGHTED
        assert s.muscle_group == "other"
        assert s.reps == 0

    def test_short_fraction_timestamp(self):
        """PostgREST drops trailing zeros from fractional seconds."""
        assert _parse_timestamp("2024-02-20T10:05:00.12345+00:00") == datetime(
            2024, 2, 20, 10, 5, 0, 123450, tzinfo=timezone.utc
        )

    def test_offset_timestamp_normalized_to_utc(self):
        assert _parse_timestamp("2024-02-20T12:05:00+02:00") == datetime(
            2024, 2, 20, 10, 5, tzinfo=timezone.utc
        )

    def test_malformed_row_wrapped(self):
        """Rows that cannot be mapped surface as ScoringDataError."""
        client, _ = make_client(([set_row(completed_at="yesterday")], None))

        with pytest.raises(ScoringDataError) as exc_info:
            SupabaseScoringRepository(client).fetch_exercise_sets("user-1", "bench")

        assert exc_info.value.operation == "fetch_exercise_sets"


class TestCounters:
    def test_total_workouts(self):
        client, _ = make_client(([{"total_workouts": 7}], None))
        assert SupabaseScoringRepository(client).get_total_workouts("user-1") == 7
        client.table.assert_called_with("user_stats")

    def test_total_workouts_without_stats_row(self):
        client, _ = make_client(([], None))
        assert SupabaseScoringRepository(client).get_total_workouts("user-1") == 0

    def test_count_workouts_uses_exact_count(self):
        client, query = make_client(([{"id": "a"}], 3))

        count = SupabaseScoringRepository(client).count_workouts(
            "user-1", BEFORE, BEFORE, exclude_workout_id="w-today"
        )

        assert count == 3
        query.select.assert_called_with("id", count="exact")
        query.neq.assert_called_with("id", "w-today")

    def test_errors_wrapped(self):
        client, _ = make_client(error=RuntimeError("connection refused"))

        with pytest.raises(ScoringDataError) as exc_info:
            SupabaseScoringRepository(client).get_total_workouts("user-1")

        assert exc_info.value.operation == "get_total_workouts"
        assert "connection refused" in exc_info.value.message


class TestWorkouts:
    def test_fetch_workouts_with_sets(self):
        sessions = [
            {"id": "w1", "user_id": "user-1", "completed_at": "2024-02-20T11:00:00Z"},
            {"id": "w2", "user_id": "user-1", "completed_at": "2024-02-22T11:00:00Z"},
        ]
        sets = [set_row(), set_row(id="s2", reps=8)]
        client, _ = make_client((sessions, None), (sets, None))

        workouts = SupabaseScoringRepository(client).fetch_workouts_with_sets("user-1", BEFORE, BEFORE)

        assert [w.id for w in workouts] == ["w1", "w2"]
        assert len(workouts[0].sets) == 2
        assert workouts[1].sets == []
        # Sets take their session's completion time
        assert workouts[0].sets[0].completed_at == workouts[0].completed_at

    def test_no_sessions_skips_set_query(self):
        client, query = make_client(([], None))

        assert SupabaseScoringRepository(client).fetch_workouts_with_sets("user-1", BEFORE, BEFORE) == []
        assert query.execute.call_count == 1


class TestHistoryQueries:
    def test_max_weight(self):
        rows = [
            {"exercise_id": "bench", "weight_kg": 100},
            {"exercise_id": "bench", "weight_kg": 110},
            {"exercise_id": "squat", "weight_kg": 140},
        ]
        client, query = make_client((rows, None))

        result = SupabaseScoringRepository(client).fetch_all_time_max_weight(
            "user-1", ["bench", "squat"], before=BEFORE
        )

        assert result == {"bench": 110, "squat": 140}
        query.neq.assert_called_with("set_type", "warmup")
        query.lt.assert_called_with("workout_session.completed_at", BEFORE.isoformat())

    def test_empty_exercise_ids_skip_query(self):
        client, _ = make_client()

        repo = SupabaseScoringRepository(client)

        assert repo.fetch_all_time_max_weight("user-1", []) == {}
        assert repo.fetch_all_time_max_reps("user-1", []) == {}
        assert repo.fetch_exercise_baseline_candidates("user-1", [], BEFORE, 30) == []
        client.table.assert_not_called()

    def test_max_reps(self):
        rows = [{"exercise_id": "pull-up", "reps": 12}, {"exercise_id": "pull-up", "reps": 9}]
        client, _ = make_client((rows, None))

        assert SupabaseScoringRepository(client).fetch_all_time_max_reps("user-1", ["pull-up"]) == {"pull-up": 12}

    def test_last_session_dates(self):
        rows = [
            {"exercise_id": "bench", "workout_session": {"completed_at": "2024-01-01T10:00:00Z"}},
            {"exercise_id": "bench", "workout_session": {"completed_at": "2024-01-15T10:00:00Z"}},
        ]
        client, _ = make_client((rows, None))

        result = SupabaseScoringRepository(client).fetch_last_session_dates("user-1", ["bench"], BEFORE)

        assert result == {"bench": datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc)}

    def test_baseline_candidates_window_end(self):
        client, query = make_client(([set_row()], None), ([], None))
        repo = SupabaseScoringRepository(client)

        candidates = repo.fetch_exercise_baseline_candidates("user-1", ["bench"], BEFORE, 30)
        repo.fetch_exercise_baseline_candidates("user-1", ["bench"], BEFORE, 30, include_end=True)

        assert len(candidates) == 1
        query.lt.assert_called_once_with("workout_session.completed_at", BEFORE.isoformat())
        query.lte.assert_called_once_with("workout_session.completed_at", BEFORE.isoformat())


class TestPersistence:
    def test_persist_workout_score(self):
        client, query = make_client((None, None))
        result = WorkoutScoreResult(
            final_score=42,
            progress_score=21,
            maintenance_bonus=0,
            work_score=20,
            consistency_score=1,
            n_wpr=1,
        )

        SupabaseScoringRepository(client).persist_workout_score("w1", result)

        client.table.assert_called_with("workout_sessions")
        payload = query.update.call_args[0][0]
        assert payload["final_score"] == 42
        assert payload["weight_pr_count"] == 1
        assert payload["exercise_scores"] == []
        query.eq.assert_called_with("id", "w1")

    def test_persist_baseline(self):
        client, query = make_client((None, None))

        SupabaseScoringRepository(client).persist_recalculated_baseline("user-1", "bench", 116.7)

        client.table.assert_called_with("exercise_baselines")
        assert query.update.call_args[0][0]["best_e1rm"] == 116.7

    def test_persist_error_wrapped(self):
        client, _ = make_client(error=RuntimeError("boom"))
        result = WorkoutScoreResult(
            final_score=1, progress_score=0, maintenance_bonus=0, work_score=0, consistency_score=1
        )

        with pytest.raises(ScoringDataError) as exc_info:
            SupabaseScoringRepository(client).persist_workout_score("w1", result)

        assert exc_info.value.operation == "persist_workout_score"


class TestWorkoutScoringOverSupabase:
    """Per-workout scoring against rows as PostgREST returns them."""

    COMPLETED_AT = datetime(2024, 3, 1, 18, 0, tzinfo=timezone.utc)

    def _score(self, client):
        score_input = WorkoutScoreInput(
            user_id="user-1",
            workout_id="w-today",
            completed_at=self.COMPLETED_AT,
            sets=[
                LoggedSet(
                    exercise_id="bench",
                    exercise_name="Bench Press",
                    weight_kg=100,
                    reps=5,
                    completed_at=self.COMPLETED_AT,
                ),
            ],
        )
        return WorkoutScoreService(SupabaseScoringRepository(client)).calculate(score_input)

    def test_short_fraction_baseline_row(self):
        """A baseline session stored with a 5-digit fraction still scores."""
        client, _ = make_client(
            ([{"exercise_id": "bench", "weight_kg": 100}], None),
            ([set_row(completed_at="2024-02-20T10:05:00.12345+00:00")], None),
            ([], 0),
        )

        result = self._score(client)

        # closeness 25 + maintenance 19 + work 2 + consistency 1
        assert result.exercise_scores[0].closeness_ratio == pytest.approx(1.0)
        assert result.final_score == 47

    def test_malformed_baseline_row_degrades(self):
        """An unreadable baseline row is treated as missing history."""
        client, _ = make_client(
            ([{"exercise_id": "bench", "weight_kg": 100}], None),
            ([set_row(completed_at="yesterday")], None),
            ([], 0),
        )

        result = self._score(client)

        # neutral closeness 13 + work 2 + consistency 1
        assert result.exercise_scores[0].baseline_e1rm_used is None
        assert result.final_score == 16
