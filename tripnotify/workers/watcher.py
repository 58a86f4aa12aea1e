"""
Trip Watcher
============

Polls the ``trips`` table every ``WATCH_INTERVAL_SECONDS`` (default 5 s)
and turns what changed into notification events.

Concurrency safety
------------------
* A **Redis distributed lock** around each cycle keeps replicas from
  classifying (and notifying) the same change twice.
* Events of one page are handled concurrently; each handler opens its own
  DB session and shares nothing with the others.

Algorithm per cycle
-------------------
1. Start ``WATCH_LAG_SECONDS`` before the watermark.  ``updated_at`` is
   stamped when a writer's transaction starts but only becomes visible at
   commit, so a slow commit can land behind an already advanced watermark.
2. Read trips page by page in ``(updated_at, id)`` order, keyset style, until
   a short page comes back.  Rows sharing one timestamp can never stall the
   cursor, however many there are.
3. Per page: fetch last observed statuses from Redis, ``detect_changes``,
   hand every event to the ``NotificationHandler``, record the statuses.
4. Advance the watermark to the newest ``updated_at`` seen.

Rows inside the lag window are re-read every cycle; the last-seen store makes
that silent.  A crash between handling and recording replays the events on
the next cycle, so delivery is at-least-once.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Optional

import redis.asyncio as aioredis
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from tripnotify.config import settings
from tripnotify.domain.changes import detect_changes
from tripnotify.infrastructure.locks import DistributedLock
from tripnotify.infrastructure.repositories import TripRepository
from tripnotify.infrastructure.status_store import TripStatusStore
from tripnotify.workers.handlers import NotificationHandler

logger = logging.getLogger(__name__)


class TripWatcher:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        redis: aioredis.Redis,
        handler: NotificationHandler,
        interval_seconds: float = settings.watch_interval_seconds,
        batch_size: int = settings.watch_batch_size,
        lag_seconds: float = settings.watch_lag_seconds,
    ):
        self.session_factory = session_factory
        self.redis = redis
        self.store = TripStatusStore(redis)
        self.handler = handler
        self.interval_seconds = interval_seconds
        self.batch_size = batch_size
        self.lag = timedelta(seconds=lag_seconds)
        self._task: asyncio.Task | None = None
        self._stop_event: asyncio.Event | None = None

    # ── Public API ────────────────────────────────────────────────────

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        if self.running:
            return
        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self._loop())
        logger.info("Trip watcher started (interval=%ss)", self.interval_seconds)

    async def stop(self) -> None:
        if self._stop_event:
            self._stop_event.set()
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
            logger.info("Trip watcher stopped")

    async def run_cycle(self) -> int:
        """Execute one polling cycle.  Returns the number of events handled."""
        lock = DistributedLock(
            self.redis, "trip_watcher", ttl_seconds=settings.lock_ttl_seconds
        )
        if not await lock.acquire():
            logger.debug("Lock held by another replica – skipping cycle")
            return 0

        try:
            watermark = await self.store.get_watermark()
            after_ts: Optional[datetime] = (
                watermark - self.lag if watermark is not None else None
            )
            after_id = ""
            newest = watermark
            handled = 0

            while True:
                async with self.session_factory() as session:
                    trips = await TripRepository(session).get_page_after(
                        after_ts, after_id, self.batch_size
                    )
                if not trips:
                    break

                handled += await self._process_page(trips)

                last = trips[-1]
                after_ts, after_id = last.updated_at, last.id
                if newest is None or last.updated_at > newest:
                    newest = last.updated_at
                if len(trips) < self.batch_size:
                    break

            if newest is not None and newest != watermark:
                await self.store.set_watermark(newest)
            if handled:
                logger.info("Watch cycle: %d events", handled)
            return handled
        finally:
            await lock.release()

    # ── Internals ─────────────────────────────────────────────────────

    async def _process_page(self, trips: list) -> int:
        last_seen = await self.store.get_statuses([t.id for t in trips])
        events = detect_changes(trips, last_seen)
        if events:
            await asyncio.gather(*(self.handler.handle(e) for e in events))
        await self.store.record(trips)
        return len(events)

    async def _loop(self) -> None:
        """Periodic loop: run a cycle then sleep."""
        assert self._stop_event is not None
        while not self._stop_event.is_set():
            try:
                await self.run_cycle()
            except Exception:
                logger.exception("Unhandled error in watch cycle")
            try:
                await asyncio.wait_for(
                    self._stop_event.wait(), timeout=self.interval_seconds
                )
                break
            except asyncio.TimeoutError:
                pass  # next cycle
