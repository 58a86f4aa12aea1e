"""
FastAPI application factory.

* Registers the status and admin routes.
* Initializes the notification runtime (push provider + trip watcher) on
  startup and shuts it down on exit.  Missing credentials leave the app up
  and serving, waiting for ``POST /api/v1/admin/init``.
* Applies rate-limiting middleware.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from tripnotify.api.middleware import limiter
from tripnotify.api.routes import admin, health
from tripnotify.config import settings
from tripnotify.infrastructure.redis_client import close_redis
from tripnotify.workers.runtime import NotificationRuntime

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize the runtime on startup; stop it on shutdown."""
    runtime: NotificationRuntime = app.state.runtime
    await runtime.initialize()
    yield
    await runtime.shutdown()
    await close_redis()


def create_app(runtime: NotificationRuntime | None = None) -> FastAPI:
    app = FastAPI(
        title=settings.service_name,
        description=(
            "Watches the trip store and pushes notifications to drivers "
            "(new trip requests) and passengers (trip status changes)."
        ),
        version=settings.version,
        lifespan=lifespan,
    )
    app.state.runtime = runtime or NotificationRuntime()

    # Rate limiter
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # Routers
    app.include_router(health.router)
    app.include_router(admin.router, prefix="/api/v1")

    return app
