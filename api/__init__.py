"""
API package for the workout scoring service.

This package contains:
- deps.py: FastAPI dependency providers for DI
- routers/: API route handlers
"""

# Re-export dependency providers for convenient access
from api.deps import (
    get_settings,
    get_supabase_client,
    get_supabase_client_required,
    get_scoring_repo,
    get_rolling_scores_cache,
    get_current_user,
)

__all__ = [
    # Settings
    "get_settings",
    # Database
    "get_supabase_client",
    "get_supabase_client_required",
    # Repositories
    "get_scoring_repo",
    # Cache
    "get_rolling_scores_cache",
    # Authentication
    "get_current_user",
]
