"""
Health check router.

This router provides health check endpoints for monitoring and load balancers.
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from backend.settings import Settings, get_settings

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["Health"],
)


@router.get("/health")
def health():
    """
    Simple liveness endpoint.

    Returns:
        dict: Status indicator for health checks
    """
    return {"status": "ok"}


@router.get("/health/ready")
def readiness(settings: Settings = Depends(get_settings)):
    """
    Readiness endpoint reporting whether the database is configured.

    Returns:
        dict: Status, environment and database configuration flag
    """
    database_configured = bool(settings.supabase_url and settings.supabase_key)
    return {
        "status": "ok" if database_configured else "degraded",
        "environment": settings.environment,
        "database_configured": database_configured,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
