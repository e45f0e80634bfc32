"""
Repository Interfaces (Ports) for workout scoring.

This package defines abstract interfaces that decouple the scoring logic
from infrastructure (database, external services). Implementations are
provided in the infrastructure layer.

Architecture follows the Ports & Adapters (Hexagonal) pattern:
- Ports: Abstract interfaces defined here (what the scoring services need)
- Adapters: Concrete implementations in infrastructure/ (how it's provided)

Usage:
    from application.ports import ScoringRepository

    class WorkoutScoreService:
        def __init__(self, repository: ScoringRepository):
            self.repository = repository
"""

from application.ports.scoring_repository import ScoringRepository

__all__ = [
    "ScoringRepository",
]
