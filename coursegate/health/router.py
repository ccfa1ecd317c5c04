"""Health check endpoints."""

from fastapi import APIRouter, Request, status
from fastapi.responses import ORJSONResponse

from coursegate.config import get_settings


router = APIRouter(prefix="/health", tags=["health"])


@router.get("/live")
async def liveness() -> dict[str, str]:
    """Liveness probe - the process is up."""
    return {"status": "alive"}


@router.get("/ready")
async def readiness(request: Request):
    """Readiness probe - services are wired and the store is reachable."""
    settings = get_settings()
    state = request.app.state
    checks = {
        "store": getattr(state, "store", None) is not None,
        "enrollments": getattr(state, "enrollment_service", None) is not None,
        "payments": getattr(state, "payment_service", None) is not None,
        "redis": getattr(state, "redis", None) is not None,
    }
    ready = checks["store"] and checks["enrollments"]
    return ORJSONResponse(
        status_code=status.HTTP_200_OK if ready else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": "ready" if ready else "not_ready",
            "environment": settings.environment,
            "store_backend": settings.store_backend,
            "checks": checks,
        },
    )


@router.get("")
async def health() -> dict[str, str]:
    """General health check endpoint."""
    settings = get_settings()
    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
    }
