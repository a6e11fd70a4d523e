"""Health check and system status routes."""

import platform
import time
from typing import Any

from fastapi import APIRouter, HTTPException, Request

from core.config import settings
from core.rate_limit import rate_limit_service
from schemas.common import HealthResponse

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """
    Health check endpoint.

    Returns basic service health information.
    """
    return HealthResponse(
        status="healthy",
        version=settings.version,
        timestamp=int(time.time()),
    )


@router.get("/health/detailed")
async def detailed_health_check(request: Request) -> dict[str, Any]:
    """
    Detailed health check with system information.

    Only available in debug mode. Secrets are reported as present/absent only.
    """
    if not settings.debug:
        raise HTTPException(status_code=404, detail="Endpoint not available")

    return {
        "status": "healthy",
        "version": settings.version,
        "timestamp": int(time.time()),
        "request_id": getattr(request.state, "request_id", None),
        "config": {
            "debug": settings.debug,
            "shared_secret_configured": bool(settings.shared_secret),
            "openai_model": settings.openai_model,
            "allowed_origins": settings.allowed_origins,
            "rate_limit": {
                "requests": settings.rate_limit_requests,
                "tokens": settings.rate_limit_tokens,
                "window": settings.rate_limit_window,
                "tracked_clients": len(rate_limit_service),
            },
        },
        "system": {
            "python_version": platform.python_version(),
            "fastapi_app": settings.app_name,
        },
    }


@router.get("/health/live")
async def liveness_check() -> dict[str, str]:
    """
    Kubernetes/Docker liveness probe.

    Returns 200 when the service is alive.
    """
    return {"status": "alive"}
