"""
Status endpoints
================

GET /        -- service banner with push-delivery state
GET /health  -- liveness (always 200 while the process serves requests)
GET /ready   -- readiness (503 until push delivery is configured)
"""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from tripnotify.api.dependencies import get_runtime
from tripnotify.api.schemas import (
    HealthResponse,
    ReadinessResponse,
    ServiceStatusResponse,
)
from tripnotify.config import settings
from tripnotify.workers.runtime import NotificationRuntime

router = APIRouter(tags=["status"])


@router.get("/", response_model=ServiceStatusResponse, summary="Service status")
async def service_status(runtime: NotificationRuntime = Depends(get_runtime)):
    return ServiceStatusResponse(
        service=settings.service_name,
        version=settings.version,
        push="connected" if runtime.ready else "waiting for credentials",
        state=runtime.state.value,
        provider=runtime.provider.name if runtime.provider else None,
    )


@router.get("/health", response_model=HealthResponse, summary="Liveness check")
async def health(runtime: NotificationRuntime = Depends(get_runtime)):
    return HealthResponse(ready=runtime.ready, uptime=runtime.uptime_seconds)


@router.get(
    "/ready",
    response_model=ReadinessResponse,
    summary="Readiness check",
    responses={503: {"model": ReadinessResponse}},
)
async def ready(runtime: NotificationRuntime = Depends(get_runtime)):
    body = ReadinessResponse(ready=runtime.ready, state=runtime.state.value)
    if not runtime.ready:
        return JSONResponse(status_code=503, content=body.model_dump())
    return body
