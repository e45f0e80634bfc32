"""
Infrastructure Database Layer.

This package provides Supabase-backed implementations of the repository interfaces
defined in application.ports. These implementations can be injected into services
and routers for clean separation of concerns and testability.

Usage:
    from supabase import create_client
    from infrastructure.db import SupabaseScoringRepository

    # Create Supabase client
    client = create_client(SUPABASE_URL, SUPABASE_KEY)

    # Instantiate repository with injected client
    scoring_repo = SupabaseScoringRepository(client)
"""

from infrastructure.db.scoring_repository import SupabaseScoringRepository

__all__ = [
    "SupabaseScoringRepository",
]
