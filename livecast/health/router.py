"""Health check endpoints."""

from fastapi import APIRouter, Request


router = APIRouter(prefix="/health", tags=["health"])


@router.get("/live")
async def liveness() -> dict[str, str]:
    """Liveness probe - checks if the application is running."""
    return {"status": "alive"}


@router.get("/ready")
async def readiness(request: Request) -> dict[str, str | bool | int]:
    """Readiness probe - checks if the live comment service is up."""
    settings = request.app.state.settings
    service = getattr(request.app.state, "live_comment_service", None)
    return {
        "status": "ready" if service else "starting",
        "environment": settings.environment,
        "debug": settings.debug,
        "comments": len(service.store) if service else 0,
        "subscribers": service.broadcaster.subscriber_count if service else 0,
    }


@router.get("")
async def health(request: Request) -> dict[str, str]:
    """General health check endpoint."""
    settings = request.app.state.settings
    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
    }
