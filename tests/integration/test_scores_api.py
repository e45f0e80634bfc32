"""
Integration tests for Scores API endpoints.

Tests cover:
- Scoring a completed workout
- Repairing PRs after a deletion
- Rolling scores (calibration, caching, invalidation)
- Best-set calendar and its date range validation
- API key authentication
"""
import pytest
from datetime import date, datetime, timedelta, timezone
from fastapi.testclient import TestClient

from backend.main import create_app
from backend.settings import Settings, get_settings
from api.deps import get_current_user, get_scoring_repo
from tests.fakes import FakeScoringRepository, make_set, make_workout


USER_ID = "test_user"


# =============================================================================
# Test Fixtures
# =============================================================================


@pytest.fixture
def scoring_repo():
    """Create a fake scoring repository."""
    return FakeScoringRepository()


@pytest.fixture
def app(scoring_repo):
    app = create_app(settings=Settings(environment="test", _env_file=None))

    # Override dependencies
    async def mock_user():
        return USER_ID

    def mock_scoring_repo():
        return scoring_repo

    app.dependency_overrides[get_current_user] = mock_user
    app.dependency_overrides[get_scoring_repo] = mock_scoring_repo
    return app


@pytest.fixture
def client(app):
    """Create a test client with fake dependencies."""
    yield TestClient(app)


def seed_recent_workouts(repo, count):
    now = datetime.now(timezone.utc)
    for i in range(count):
        repo.seed_workout(make_workout(
            f"w-{i}",
            now - timedelta(days=2 * i + 1),
            [make_set("bench", 100, 5) for _ in range(3)],
            user_id=USER_ID,
        ))


# =============================================================================
# Score workout
# =============================================================================


@pytest.mark.integration
class TestScoreWorkoutEndpoint:
    """Tests for POST /scores/workouts/{workout_id}."""

    def test_scores_and_persists(self, client, scoring_repo):
        response = client.post("/scores/workouts/w-new", json={
            "completed_at": "2024-03-01T18:00:00Z",
            "sets": [
                {"exercise_id": "bench", "exercise_name": "Bench Press", "weight_kg": 100, "reps": 8},
            ],
        })

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["persisted"] is True
        assert data["score"]["final_score"] == 24
        assert data["score"]["progress_score"] == 21
        assert data["score"]["pr_set_indices"] == [0]
        assert "w-new" in scoring_repo.persisted_scores

    def test_persist_failure_still_returns_score(self, client, scoring_repo):
        scoring_repo.fail_on("persist_workout_score")

        response = client.post("/scores/workouts/w-new", json={
            "completed_at": "2024-03-01T18:00:00Z",
            "sets": [{"exercise_id": "bench", "weight_kg": 100, "reps": 8}],
        })

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is False
        assert data["persisted"] is False
        assert data["score"]["final_score"] >= 1
        assert data["message"]

    def test_invalid_set_rejected(self, client):
        response = client.post("/scores/workouts/w-new", json={
            "completed_at": "2024-03-01T18:00:00Z",
            "sets": [{"exercise_id": "bench", "weight_kg": 100, "reps": -1}],
        })

        assert response.status_code == 422

    def test_invalidates_cached_rolling_scores(self, client, scoring_repo):
        seed_recent_workouts(scoring_repo, 4)
        first = client.get("/scores/rolling").json()
        assert first["is_calibrated"] is True

        client.post("/scores/workouts/w-new", json={
            "completed_at": datetime.now(timezone.utc).isoformat(),
            "sets": [{"exercise_id": "bench", "weight_kg": 100, "reps": 5}],
        })
        calls_before = scoring_repo.calls.count("get_total_workouts")
        client.get("/scores/rolling")

        assert scoring_repo.calls.count("get_total_workouts") == calls_before + 1


# =============================================================================
# Deletion
# =============================================================================


@pytest.mark.integration
class TestWorkoutDeletionEndpoint:
    """Tests for POST /scores/workouts/{workout_id}/deletion."""

    def test_repairs_pr_exercises(self, client, scoring_repo):
        seed_recent_workouts(scoring_repo, 1)

        response = client.post("/scores/workouts/w-gone/deletion", json={
            "deleted_sets": [
                {"exercise_id": "bench", "is_pr": True},
                {"exercise_id": "squat", "is_pr": False},
            ],
        })

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert list(data["recalculated"]) == ["bench"]
        assert data["recalculated"]["bench"] == pytest.approx(116.667, abs=0.01)

    def test_partial_failure_reported(self, client, scoring_repo):
        scoring_repo.fail_for_exercise("bench")

        response = client.post("/scores/workouts/w-gone/deletion", json={
            "deleted_sets": [{"exercise_id": "bench", "is_pr": True}],
        })

        assert response.status_code == 200
        assert response.json()["success"] is True
        assert response.json()["failed_exercise_ids"] == ["bench"]


# =============================================================================
# Rolling scores
# =============================================================================


@pytest.mark.integration
class TestRollingScoresEndpoint:
    """Tests for GET /scores/rolling."""

    def test_uncalibrated(self, client, scoring_repo):
        seed_recent_workouts(scoring_repo, 3)

        response = client.get("/scores/rolling")

        assert response.status_code == 200
        data = response.json()
        assert data["is_calibrated"] is False
        assert data["progression"] is None
        assert data["load"] is None
        assert data["consistency"] is None

    def test_calibrated(self, client, scoring_repo):
        seed_recent_workouts(scoring_repo, 4)

        data = client.get("/scores/rolling").json()

        assert data["is_calibrated"] is True
        for key in ("progression", "load", "consistency"):
            assert 0 <= data[key] <= 100
        assert data["breakdown"]["consistency"]["workouts_count"] == 4
        assert data["breakdown"]["consistency"]["muscle_days"]["chest"] == 4

    def test_cached_until_forced(self, client, scoring_repo):
        seed_recent_workouts(scoring_repo, 4)

        client.get("/scores/rolling")
        client.get("/scores/rolling")
        assert scoring_repo.calls.count("get_total_workouts") == 1

        client.get("/scores/rolling", params={"force": True})
        assert scoring_repo.calls.count("get_total_workouts") == 2

    def test_cache_lives_on_app_state(self, app, client, scoring_repo):
        assert app.state.rolling_scores_cache is None

        client.get("/scores/rolling")

        assert app.state.rolling_scores_cache is not None


# =============================================================================
# Best sets
# =============================================================================


@pytest.mark.integration
class TestBestSetsEndpoint:
    """Tests for GET /scores/exercises/{exercise_id}/best-sets."""

    def test_best_sets(self, client, scoring_repo):
        scoring_repo.seed_workout(make_workout("w1", datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc), [
            make_set("bench", 100, 5),
            make_set("bench", 90, 10),
        ], user_id=USER_ID))

        response = client.get("/scores/exercises/bench/best-sets", params={
            "start_date": "2024-03-01",
            "end_date": "2024-03-31",
        })

        assert response.status_code == 200
        data = response.json()
        assert data["exercise_id"] == "bench"
        assert len(data["days"]) == 1
        assert data["days"][0]["day"] == "2024-03-01"
        assert data["days"][0]["e1rm"] == pytest.approx(120.0)

    def test_start_after_end(self, client):
        response = client.get("/scores/exercises/bench/best-sets", params={
            "start_date": "2024-03-31",
            "end_date": "2024-03-01",
        })

        assert response.status_code == 400

    def test_range_too_long(self, client):
        start = date(2023, 1, 1)
        response = client.get("/scores/exercises/bench/best-sets", params={
            "start_date": start.isoformat(),
            "end_date": (start + timedelta(days=366)).isoformat(),
        })

        assert response.status_code == 400


# =============================================================================
# Authentication
# =============================================================================


@pytest.mark.integration
class TestAuthentication:
    """Tests for API key authentication on the scores endpoints."""

    @pytest.fixture
    def auth_client(self, scoring_repo, monkeypatch):
        monkeypatch.setenv("API_KEYS", "sk_test_abc")
        get_settings.cache_clear()
        app = create_app(settings=Settings(environment="test", _env_file=None))
        app.dependency_overrides[get_scoring_repo] = lambda: scoring_repo
        yield TestClient(app)
        get_settings.cache_clear()

    def test_missing_key(self, auth_client):
        response = auth_client.get("/scores/rolling")
        assert response.status_code == 401

    def test_invalid_key(self, auth_client):
        response = auth_client.get("/scores/rolling", headers={"X-API-Key": "wrong:test_user"})
        assert response.status_code == 401

    def test_key_with_user(self, auth_client, scoring_repo):
        seed_recent_workouts(scoring_repo, 4)

        response = auth_client.get("/scores/rolling", headers={"X-API-Key": "sk_test_abc:test_user"})

        assert response.status_code == 200
        assert response.json()["is_calibrated"] is True


# =============================================================================
# Health
# =============================================================================


@pytest.mark.integration
class TestHealthEndpoints:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_readiness(self, client):
        response = client.get("/health/ready")
        assert response.status_code == 200
        assert response.json()["status"] in ("ok", "degraded")
