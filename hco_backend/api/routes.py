"""Root and health endpoints."""

from datetime import datetime, timezone

from fastapi import APIRouter

from hco_backend.config import get_settings

router = APIRouter()


@router.get("/")
async def root() -> dict:
    """Welcome payload with a map of the API."""
    settings = get_settings()
    return {
        "message": "Welcome to HCO Backend API",
        "status": "active",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": settings.environment,
        "endpoints": {
            "health": "/api/v1/health",
            "admin": "/api/v1/admin",
        },
    }


@router.get("/api/v1/health")
async def health_check() -> dict:
    """Health check endpoint.

    Returns:
        Status, environment and timestamp in ISO8601 format, plus database state
    """
    settings = get_settings()
    health_status = {
        "status": "ok",
        "message": "Server is running",
        "environment": settings.environment,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }

    try:
        from hco_backend.database import health_check as db_health_check

        db_healthy = await db_health_check()
        health_status["database"] = "healthy" if db_healthy else "unhealthy"
    except Exception:
        health_status["database"] = "unavailable"

    return health_status
