"""
Router package for the workout scoring API.

This package contains all API routers organized by domain:
- health: Liveness and readiness endpoints
- scores: Workout scores, rolling scores, PR repair and best-set calendar
"""

from api.routers.health import router as health_router
from api.routers.scores import router as scores_router

__all__ = [
    "health_router",
    "scores_router",
]
