"""
Infrastructure Layer for workout scoring.

This package contains concrete implementations of repository interfaces:
- db/: Supabase database implementations
"""

# Re-export database repositories for convenient access
from infrastructure.db import SupabaseScoringRepository

__all__ = [
    "SupabaseScoringRepository",
]
