"""
Last-seen trip status store (Redis).

The watcher compares each trip's current status with the status it saw on
the previous read, so "previous" must be remembered explicitly, keyed by
trip id.  Statuses live in one hash; the polling watermark is a plain key
holding an ISO-8601 timestamp.

Completed and cancelled trips are dropped from the hash once recorded, so it
only holds trips that can still change.  A terminal trip re-read later has
no tracked status and is not pending, which classifies as no event.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable, Optional

import redis.asyncio as aioredis

from tripnotify.domain.enums import TERMINAL_TRIP_STATUSES

STATUS_HASH = "tripnotify:trip_status"
WATERMARK_KEY = "tripnotify:watermark"

_TERMINAL = {s.value for s in TERMINAL_TRIP_STATUSES}


class TripStatusStore:
    def __init__(self, client: aioredis.Redis):
        self.redis = client

    async def get_statuses(self, trip_ids: list[str]) -> dict[str, Optional[str]]:
        if not trip_ids:
            return {}
        values = await self.redis.hmget(STATUS_HASH, trip_ids)
        return dict(zip(trip_ids, values))

    async def record(self, trips: Iterable[Any]) -> None:
        """Remember each trip's status; forget trips that reached a terminal one."""
        mapping: dict[str, str] = {}
        finished: list[str] = []
        for trip in trips:
            if trip.status in _TERMINAL:
                finished.append(trip.id)
            else:
                mapping[trip.id] = trip.status
        if mapping:
            await self.redis.hset(STATUS_HASH, mapping=mapping)
        if finished:
            await self.redis.hdel(STATUS_HASH, *finished)

    async def get_watermark(self) -> Optional[datetime]:
        raw = await self.redis.get(WATERMARK_KEY)
        return datetime.fromisoformat(raw) if raw else None

    async def set_watermark(self, value: datetime) -> None:
        await self.redis.set(WATERMARK_KEY, value.isoformat())
