"""
Health check endpoints.
Used for monitoring, deployment readiness checks, and basic connectivity tests.
"""

from fastapi import APIRouter, Request

from app.core.settings import settings
from app.utils.clock import utc_now


router = APIRouter(prefix="/health", tags=["Health"])


@router.get("")
async def health_check(request: Request):
    """
    Basic health check endpoint.
    Returns 200 if service is running.
    """
    limiter = request.app.state.rate_limiter
    return {
        "status": "healthy",
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "rate_limiter": {
            "enabled": settings.RATE_LIMIT_ENABLED,
            "tracked_identities": limiter.tracked_identities,
        },
        "weather_configured": bool(settings.OPENWEATHER_API_KEY),
        "timestamp": utc_now().isoformat(),
    }
