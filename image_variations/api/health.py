"""Health check endpoint."""

from datetime import datetime, timezone
from fastapi import APIRouter, Request

router = APIRouter()


def _now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


@router.get("/")
async def health_check():
    """Basic health check endpoint."""
    return {
        "status": "healthy",
        "timestamp": _now(),
        "service": "image-variations",
        "version": "1.0.0",
    }


@router.get("/ready")
async def readiness_check(request: Request):
    """Readiness check; reports whether a generation credential is configured."""
    config = getattr(request.app.state, "config", None)
    return {
        "ready": config is not None,
        "credentials": bool(config and config.has_credentials),
        "timestamp": _now(),
    }
