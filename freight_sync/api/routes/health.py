"""
Health check routes.

- /health: liveness (always 200 while the app runs)
- /health/ready: readiness (Redis reachable)
"""
from fastapi import APIRouter
import logging

from freight_sync.core.config import settings
from freight_sync.core.timezone import now_utc
from freight_sync.services.redis import check_redis_connection

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/health")
async def health_check():
    """
    Checks that the API is up.
    Used by monitoring and load balancers.
    """
    redis_ok = await check_redis_connection()

    return {
        "status": "healthy" if redis_ok else "degraded",
        "timestamp": now_utc().isoformat(),
        "service": settings.APP_NAME,
        "checks": {
            "redis": "ok" if redis_ok else "error",
        },
    }


@router.get("/health/ready")
async def readiness_check():
    """Checks that the DLQ store is reachable."""
    redis_ok = await check_redis_connection()

    return {
        "status": "ready" if redis_ok else "degraded",
        "checks": {
            "redis": "ok" if redis_ok else "error",
        },
    }
