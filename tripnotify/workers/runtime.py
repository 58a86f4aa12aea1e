"""
Notification runtime lifecycle.

``UNINITIALIZED -> READY``.  ``initialize()`` is the single entry point: it
loads the push provider and starts the trip watcher.  It is safe to call
repeatedly (startup, then the manual ``/init`` trigger); once READY it does
nothing.  Without push credentials the runtime stays UNINITIALIZED and no
watcher is started.
"""

from __future__ import annotations

import asyncio
import enum
import logging
import time
from typing import Callable, Optional

from tripnotify.config import Settings
from tripnotify.domain.errors import ConfigurationMissing
from tripnotify.infrastructure.database import async_session_factory
from tripnotify.infrastructure.providers import build_provider
from tripnotify.infrastructure.push import PushDispatcher, PushProvider
from tripnotify.infrastructure.redis_client import get_redis
from tripnotify.workers.handlers import NotificationHandler
from tripnotify.workers.watcher import TripWatcher

logger = logging.getLogger(__name__)


class LifecycleState(str, enum.Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"


class NotificationRuntime:
    def __init__(
        self,
        settings_loader: Callable[[], Settings] = Settings,
        provider_factory: Callable[[Settings], PushProvider] = build_provider,
        session_factory=async_session_factory,
    ):
        self.settings_loader = settings_loader
        self.settings: Optional[Settings] = None
        self.provider_factory = provider_factory
        self.session_factory = session_factory
        self.state = LifecycleState.UNINITIALIZED
        self.started_at = time.monotonic()
        self.provider: Optional[PushProvider] = None
        self.watcher: Optional[TripWatcher] = None
        self._lock = asyncio.Lock()

    @property
    def ready(self) -> bool:
        return self.state is LifecycleState.READY

    @property
    def uptime_seconds(self) -> float:
        return time.monotonic() - self.started_at

    async def initialize(self) -> bool:
        """Bring the runtime to READY if credentials allow.  Idempotent."""
        async with self._lock:
            if self.ready:
                return True

            # Re-read the environment so a manual retry sees new credentials
            self.settings = self.settings_loader()
            try:
                provider = self.provider_factory(self.settings)
            except ConfigurationMissing as exc:
                logger.warning("Push delivery not configured: %s", exc)
                logger.info("Waiting for credentials; call /api/v1/admin/init once set")
                return False

            redis = await get_redis()
            handler = NotificationHandler(
                self.session_factory, PushDispatcher(provider)
            )
            watcher = TripWatcher(
                self.session_factory,
                redis,
                handler,
                interval_seconds=self.settings.watch_interval_seconds,
                batch_size=self.settings.watch_batch_size,
                lag_seconds=self.settings.watch_lag_seconds,
            )
            await watcher.start()

            self.provider = provider
            self.watcher = watcher
            self.state = LifecycleState.READY
            logger.info("Notification runtime ready (provider=%s)", provider.name)
            return True

    async def shutdown(self) -> None:
        async with self._lock:
            if self.watcher:
                await self.watcher.stop()
                self.watcher = None
            if self.provider:
                await self.provider.aclose()
                self.provider = None
            self.state = LifecycleState.UNINITIALIZED
