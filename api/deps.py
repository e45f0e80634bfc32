"""
FastAPI Dependency Providers for the workout scoring API.

This module provides FastAPI dependency injection functions that return
interface types (Protocols) rather than concrete implementations. This
enables clean separation of concerns and easy testing with fake implementations.

Architecture:
- Settings and Supabase client are cached per-process (lru_cache)
- Repository and service providers create new instances per-request
- The rolling scores cache lives on app.state, one per application
- Auth providers wrap backend.auth

Usage in routers:
    from api.deps import get_current_user, get_rolling_scores_cache

    @router.get("/scores/rolling")
    def rolling_scores(
        user_id: str = Depends(get_current_user),
        cache: RollingScoresCache = Depends(get_rolling_scores_cache),
    ):
        return cache.get(user_id)

Testing:
    # Override dependencies in tests
    app.dependency_overrides[get_scoring_repo] = lambda: FakeScoringRepository()
"""

from functools import lru_cache
from typing import Optional

from fastapi import Depends, Header, Request
from supabase import Client, create_client

# Protocol types (interfaces)
from application.ports import ScoringRepository

# Concrete implementations
from infrastructure import SupabaseScoringRepository

from application.use_cases import (
    HandleWorkoutDeletionUseCase,
    ScoreWorkoutUseCase,
)
from backend.core.best_set import BestSetService
from backend.core.pr_recalculation import PRRecalculationService
from backend.core.rolling_score_service import RollingScoreService
from backend.core.rolling_scores_cache import RollingScoresCache
from backend.core.workout_score_service import WorkoutScoreService
from backend.settings import Settings, get_settings as _get_settings

# Auth from existing module (wrap to maintain single source of truth)
from backend.auth import get_current_user as _get_current_user


# =============================================================================
# Settings Provider
# =============================================================================


def get_settings() -> Settings:
    """
    Get application settings.

    Returns cached Settings instance from backend.settings.
    Use this as a FastAPI dependency for settings access.

    Returns:
        Settings: Application settings instance
    """
    return _get_settings()


# =============================================================================
# Supabase Client Provider
# =============================================================================


@lru_cache
def get_supabase_client() -> Optional[Client]:
    """
    Get Supabase client instance (cached).

    Creates a Supabase client using credentials from settings.
    Returns None if credentials are not configured.

    Returns:
        Client: Supabase client instance, or None if not configured
    """
    settings = _get_settings()

    if not settings.supabase_url or not settings.supabase_key:
        return None

    return create_client(settings.supabase_url, settings.supabase_key)


def get_supabase_client_required() -> Client:
    """
    Get Supabase client instance, raising if not configured.

    Use this dependency when the endpoint requires database access.
    Raises HTTPException 503 if database is not available.

    Returns:
        Client: Supabase client instance

    Raises:
        HTTPException: 503 if Supabase is not configured
    """
    from fastapi import HTTPException

    client = get_supabase_client()
    if client is None:
        raise HTTPException(
            status_code=503,
            detail="Database not available. Supabase credentials not configured.",
        )
    return client


# =============================================================================
# Repository Providers
# =============================================================================


def get_scoring_repo(
    client: Client = Depends(get_supabase_client_required),
) -> ScoringRepository:
    """
    Get ScoringRepository implementation.

    Returns a SupabaseScoringRepository instance with injected client.
    The return type is the Protocol to enable easy faking.

    Args:
        client: Supabase client (injected)

    Returns:
        ScoringRepository: Repository for set history and score persistence
    """
    return SupabaseScoringRepository(client)


# =============================================================================
# Service Providers
# =============================================================================


def get_workout_score_service(
    scoring_repo: ScoringRepository = Depends(get_scoring_repo),
    settings: Settings = Depends(get_settings),
) -> WorkoutScoreService:
    """Get the per-workout score calculator."""
    return WorkoutScoreService(scoring_repo, tz=settings.scoring_tz)


def get_rolling_score_service(
    scoring_repo: ScoringRepository = Depends(get_scoring_repo),
    settings: Settings = Depends(get_settings),
) -> RollingScoreService:
    """Get the rolling scores calculator."""
    return RollingScoreService(scoring_repo, tz=settings.scoring_tz)


def get_pr_recalculation_service(
    scoring_repo: ScoringRepository = Depends(get_scoring_repo),
) -> PRRecalculationService:
    """Get the post-deletion PR repair service."""
    return PRRecalculationService(scoring_repo)


def get_best_set_service(
    scoring_repo: ScoringRepository = Depends(get_scoring_repo),
    settings: Settings = Depends(get_settings),
) -> BestSetService:
    """Get the best-set calendar service."""
    return BestSetService(scoring_repo, tz=settings.scoring_tz)


def get_rolling_scores_cache(
    request: Request,
    service: RollingScoreService = Depends(get_rolling_score_service),
    settings: Settings = Depends(get_settings),
) -> RollingScoresCache:
    """
    Get the application's rolling scores cache.

    Created on first use and kept on app.state so every request of one
    application shares it.
    """
    cache = getattr(request.app.state, "rolling_scores_cache", None)
    if cache is None:
        cache = RollingScoresCache(
            service,
            ttl_seconds=settings.rolling_scores_cache_ttl_seconds,
        )
        request.app.state.rolling_scores_cache = cache
    return cache


# =============================================================================
# Use Case Providers
# =============================================================================


def get_score_workout_use_case(
    score_service: WorkoutScoreService = Depends(get_workout_score_service),
    scoring_repo: ScoringRepository = Depends(get_scoring_repo),
    rolling_cache: RollingScoresCache = Depends(get_rolling_scores_cache),
) -> ScoreWorkoutUseCase:
    """Get the score-on-completion use case."""
    return ScoreWorkoutUseCase(
        score_service=score_service,
        scoring_repo=scoring_repo,
        rolling_cache=rolling_cache,
    )


def get_handle_workout_deletion_use_case(
    pr_service: PRRecalculationService = Depends(get_pr_recalculation_service),
    rolling_cache: RollingScoresCache = Depends(get_rolling_scores_cache),
) -> HandleWorkoutDeletionUseCase:
    """Get the post-deletion repair use case."""
    return HandleWorkoutDeletionUseCase(
        pr_service=pr_service,
        rolling_cache=rolling_cache,
    )


# =============================================================================
# Authentication Providers
# =============================================================================


async def get_current_user(
    x_api_key: Optional[str] = Header(None, alias="X-API-Key"),
) -> str:
    """
    Get the current authenticated user ID.

    Wraps backend.auth.get_current_user for dependency injection.

    Args:
        x_api_key: API key header ("key" or "key:user_id")

    Returns:
        str: User ID from authentication

    Raises:
        HTTPException: 401 if authentication fails
    """
    return await _get_current_user(x_api_key=x_api_key)


# =============================================================================
# Exports
# =============================================================================

__all__ = [
    # Settings
    "get_settings",
    # Database
    "get_supabase_client",
    "get_supabase_client_required",
    # Repositories
    "get_scoring_repo",
    # Services
    "get_workout_score_service",
    "get_rolling_score_service",
    "get_pr_recalculation_service",
    "get_best_set_service",
    "get_rolling_scores_cache",
    # Use cases
    "get_score_workout_use_case",
    "get_handle_workout_deletion_use_case",
    # Authentication
    "get_current_user",
]
