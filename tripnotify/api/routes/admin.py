"""
Admin endpoints
===============

POST /api/v1/admin/init -- (re)run runtime initialization, e.g. after
                           push credentials were added to the environment
"""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from tripnotify.api.dependencies import get_runtime
from tripnotify.api.middleware import limiter
from tripnotify.api.schemas import InitResponse
from tripnotify.workers.runtime import NotificationRuntime

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


@router.post(
    "/init",
    response_model=InitResponse,
    summary="Initialize push delivery and start the trip watcher",
    description=(
        "Idempotent.  Returns ``ready=false`` while credentials are still "
        "missing; that is not an error."
    ),
)
@limiter.limit("10/minute")
async def init_runtime(
    request: Request,
    runtime: NotificationRuntime = Depends(get_runtime),
):
    try:
        ready = await runtime.initialize()
    except Exception as exc:
        logger.exception("Manual initialization failed")
        return JSONResponse(
            status_code=500,
            content=InitResponse(
                success=False, ready=runtime.ready, error=str(exc)
            ).model_dump(),
        )
    return InitResponse(success=True, ready=ready)
