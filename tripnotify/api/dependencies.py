"""FastAPI dependency injection helpers."""

from fastapi import Request

from tripnotify.workers.runtime import NotificationRuntime


def get_runtime(request: Request) -> NotificationRuntime:
    """The process-wide runtime created by the app lifespan."""
    return request.app.state.runtime
