"""
Application-level exceptions.

Adapters raise these so services can decide how to degrade without
depending on a particular database client.
"""

from typing import Optional


class ScoringDataError(Exception):
    """Raised when workout history cannot be fetched or a score cannot be persisted."""

    def __init__(self, message: str, operation: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.operation = operation
