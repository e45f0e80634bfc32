"""
Unit tests for ScoreWorkoutUseCase.

Tests for:
- Score calculation and persistence
- Persist failures reported without losing the score
- Rolling scores invalidation
"""
from datetime import datetime, timezone

import pytest

from application.use_cases import ScoreWorkoutResult, ScoreWorkoutUseCase
from backend.core.rolling_score_service import RollingScoreService
from backend.core.rolling_scores_cache import RollingScoresCache
from backend.core.workout_score_service import WorkoutScoreService
from domain.models import LoggedSet, WorkoutScoreInput
from tests.fakes import FakeScoringRepository


COMPLETED_AT = datetime(2024, 3, 1, 18, 0, tzinfo=timezone.utc)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def repo() -> FakeScoringRepository:
    """Create a fresh fake scoring repository."""
    return FakeScoringRepository()


@pytest.fixture
def cache(repo) -> RollingScoresCache:
    return RollingScoresCache(RollingScoreService(repo))


@pytest.fixture
def use_case(repo, cache) -> ScoreWorkoutUseCase:
    """Create ScoreWorkoutUseCase with fake dependencies."""
    return ScoreWorkoutUseCase(
        score_service=WorkoutScoreService(repo),
        scoring_repo=repo,
        rolling_cache=cache,
    )


@pytest.fixture
def score_input() -> WorkoutScoreInput:
    """Sample completed workout."""
    return WorkoutScoreInput(
        user_id="user-1",
        workout_id="w-1",
        completed_at=COMPLETED_AT,
        sets=[
            LoggedSet(
                exercise_id="bench",
                exercise_name="Bench Press",
                weight_kg=100,
                reps=8,
                completed_at=COMPLETED_AT,
            )
        ],
    )


# =============================================================================
# Tests
# =============================================================================


@pytest.mark.unit
class TestScoreWorkoutUseCase:
    """Tests for ScoreWorkoutUseCase."""

    def test_scores_and_persists(self, use_case, repo, score_input):
        result = use_case.execute(score_input)

        assert isinstance(result, ScoreWorkoutResult)
        assert result.success is True
        assert result.persisted is True
        assert result.workout_id == "w-1"
        assert repo.persisted_scores["w-1"] == result.score

    def test_invalidates_rolling_scores(self, use_case, cache, score_input):
        cache.get("user-1")
        assert cache.peek("user-1") is not None

        use_case.execute(score_input)

        assert cache.peek("user-1") is None

    def test_persist_failure_keeps_score(self, use_case, repo, cache, score_input):
        repo.fail_on("persist_workout_score")
        cache.get("user-1")

        result = use_case.execute(score_input)

        assert result.success is False
        assert result.persisted is False
        assert result.score is not None
        assert result.score.final_score >= 1
        assert "persist_workout_score" in result.error
        # Nothing changed, cached scores stay
        assert cache.peek("user-1") is not None

    def test_without_cache(self, repo, score_input):
        use_case = ScoreWorkoutUseCase(
            score_service=WorkoutScoreService(repo),
            scoring_repo=repo,
        )

        result = use_case.execute(score_input)

        assert result.success is True
