"""
Health check endpoint.

Reports database reachability and the rate-limit backend in use.
"""

from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

from storepilot import __version__
from storepilot.db import verify_database_connection

router = APIRouter(prefix="/api", tags=["health"])

_NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}


@router.get("/health")
async def healthcheck(request: Request) -> JSONResponse:
    """
    Health check endpoint.

    Returns 200 when the database answers, 503 otherwise. Used by load
    balancers and uptime monitors.
    """
    settings = request.app.state.settings
    db_ok = verify_database_connection()

    services: dict[str, Any] = {
        "database": {"status": "healthy" if db_ok else "unhealthy"},
        "rateLimits": {
            "status": "healthy",
            "backend": settings.limits_backend,
        },
    }
    if settings.limits_backend == "memory" and settings.is_prod_like:
        services["rateLimits"]["status"] = "degraded"

    overall = "healthy" if db_ok else "unhealthy"
    if overall == "healthy" and any(s["status"] == "degraded" for s in services.values()):
        overall = "degraded"

    return JSONResponse(
        status_code=status.HTTP_200_OK if db_ok else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": overall,
            "version": __version__,
            "timestamp": datetime.now(UTC).isoformat(),
            "environment": settings.environment,
            "services": services,
        },
        headers=_NO_CACHE_HEADERS,
    )
