"""
Trip watcher tests: polling cycles over SQLite with an in-memory stand-in
for the handful of Redis commands the watcher uses.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from unittest.mock import AsyncMock

import pytest
from sqlalchemy import update

from tripnotify.domain.enums import ChangeKind
from tripnotify.infrastructure.models import TripModel
from tripnotify.infrastructure.status_store import STATUS_HASH, WATERMARK_KEY
from tripnotify.workers.watcher import TripWatcher

T0 = datetime(2026, 10, 19, 12, 0, 0)


class _MemoryRedis:
    def __init__(self):
        self.strings: dict[str, str] = {}
        self.hashes: dict[str, dict[str, str]] = {}

    async def set(self, key, value, nx=False, ex=None):
        if nx and key in self.strings:
            return None
        self.strings[key] = value
        return True

    async def get(self, key):
        return self.strings.get(key)

    async def hmget(self, key, fields):
        h = self.hashes.get(key, {})
        return [h.get(f) for f in fields]

    async def hset(self, key, mapping):
        self.hashes.setdefault(key, {}).update(mapping)
        return len(mapping)

    async def hdel(self, key, *fields):
        h = self.hashes.get(key, {})
        return sum(h.pop(f, None) is not None for f in fields)

    async def eval(self, script, numkeys, key, token):
        if self.strings.get(key) == token:
            del self.strings[key]
            return 1
        return 0


def _handler():
    handler = AsyncMock()
    handler.handle = AsyncMock(return_value=None)
    return handler


def _handled(handler):
    return [(c.args[0].kind, c.args[0].trip.id, c.args[0].previous_status)
            for c in handler.handle.call_args_list]


async def _set_status(session_factory, trip_id, status, at):
    async with session_factory() as session:
        await session.execute(
            update(TripModel).where(TripModel.id == trip_id).values(status=status, updated_at=at)
        )
        await session.commit()


async def _insert(session_factory, trip_id, status, at):
    async with session_factory() as session:
        session.add(TripModel(id=trip_id, status=status, updated_at=at))
        await session.commit()


class TestRunCycle:
    @pytest.mark.asyncio
    async def test_first_cycle_notifies_pending_and_records_baseline(self, session_factory, seed):
        await seed(trips=[
            {"id": "t-pending", "status": "pending", "updated_at": T0},
            {"id": "t-done", "status": "completed", "updated_at": T0 + timedelta(seconds=1)},
        ])
        redis, handler = _MemoryRedis(), _handler()
        watcher = TripWatcher(session_factory, redis, handler)

        count = await watcher.run_cycle()

        assert count == 1
        assert _handled(handler) == [(ChangeKind.PENDING_TRIP_ADDED, "t-pending", None)]
        assert redis.hashes[STATUS_HASH] == {"t-pending": "pending"}
        assert datetime.fromisoformat(redis.strings[WATERMARK_KEY]) == T0 + timedelta(seconds=1)

    @pytest.mark.asyncio
    async def test_status_change_uses_tracked_previous_status(self, session_factory, seed):
        await seed(trips=[{"id": "t1", "status": "accepted", "updated_at": T0}])
        redis, handler = _MemoryRedis(), _handler()
        watcher = TripWatcher(session_factory, redis, handler)

        await watcher.run_cycle()
        await _set_status(session_factory, "t1", "arrived", T0 + timedelta(seconds=5))
        await watcher.run_cycle()

        assert _handled(handler) == [(ChangeKind.TRIP_STATUS_CHANGED, "t1", "accepted")]

    @pytest.mark.asyncio
    async def test_rereading_unchanged_trips_is_silent(self, session_factory, seed):
        await seed(trips=[{"id": "t1", "status": "pending", "updated_at": T0}])
        redis, handler = _MemoryRedis(), _handler()
        watcher = TripWatcher(session_factory, redis, handler)

        await watcher.run_cycle()
        assert await watcher.run_cycle() == 0
        assert handler.handle.await_count == 1

    @pytest.mark.asyncio
    async def test_skips_cycle_when_lock_held(self, session_factory, seed):
        await seed(trips=[{"id": "t1", "status": "pending", "updated_at": T0}])
        redis, handler = _MemoryRedis(), _handler()
        redis.strings["tripnotify:lock:trip_watcher"] = "other-replica"

        assert await TripWatcher(session_factory, redis, handler).run_cycle() == 0
        handler.handle.assert_not_called()

    @pytest.mark.asyncio
    async def test_lock_released_after_cycle(self, session_factory):
        redis = _MemoryRedis()
        await TripWatcher(session_factory, redis, _handler()).run_cycle()
        assert "tripnotify:lock:trip_watcher" not in redis.strings


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_start_is_idempotent_and_stop_cancels(self, session_factory):
        watcher = TripWatcher(session_factory, _MemoryRedis(), _handler(), interval_seconds=60)

        await watcher.start()
        task = watcher._task
        await watcher.start()
        assert watcher._task is task
        assert watcher.running

        await watcher.stop()
        assert not watcher.running


class TestCursor:
    @pytest.mark.asyncio
    async def test_shared_timestamp_larger_than_batch_is_fully_read(self, session_factory, seed):
        await seed(trips=[
            {"id": f"t{i}", "status": "pending", "updated_at": T0} for i in range(1, 4)
        ])
        redis, handler = _MemoryRedis(), _handler()
        watcher = TripWatcher(session_factory, redis, handler, batch_size=2)

        assert await watcher.run_cycle() == 3
        assert await watcher.run_cycle() == 0
        assert sorted(trip_id for _, trip_id, _ in _handled(handler)) == ["t1", "t2", "t3"]

    @pytest.mark.asyncio
    async def test_pages_follow_across_batch_boundary(self, session_factory, seed):
        await seed(trips=[
            {"id": f"t{i}", "status": "pending", "updated_at": T0 + timedelta(seconds=i)}
            for i in range(1, 5)
        ])
        redis, handler = _MemoryRedis(), _handler()
        watcher = TripWatcher(session_factory, redis, handler, batch_size=2)

        assert await watcher.run_cycle() == 4
        assert datetime.fromisoformat(redis.strings[WATERMARK_KEY]) == T0 + timedelta(seconds=4)

        await _set_status(session_factory, "t4", "accepted", T0 + timedelta(seconds=10))
        await _insert(session_factory, "t5", "pending", T0 + timedelta(seconds=10))
        assert await watcher.run_cycle() == 2
        assert _handled(handler)[4:] == [
            (ChangeKind.TRIP_STATUS_CHANGED, "t4", "pending"),
            (ChangeKind.PENDING_TRIP_ADDED, "t5", None),
        ]

    @pytest.mark.asyncio
    async def test_late_commit_inside_lag_window_is_handled(self, session_factory, seed):
        await seed(trips=[
            {"id": "fast", "status": "pending", "updated_at": T0 + timedelta(seconds=2)},
        ])
        redis, handler = _MemoryRedis(), _handler()
        watcher = TripWatcher(session_factory, redis, handler, lag_seconds=30)

        await watcher.run_cycle()
        # Stamped before "fast" but committed after the watermark moved past it
        await _insert(session_factory, "slow", "pending", T0)
        assert await watcher.run_cycle() == 1

        assert _handled(handler) == [
            (ChangeKind.PENDING_TRIP_ADDED, "fast", None),
            (ChangeKind.PENDING_TRIP_ADDED, "slow", None),
        ]
        assert datetime.fromisoformat(redis.strings[WATERMARK_KEY]) == T0 + timedelta(seconds=2)

    @pytest.mark.asyncio
    async def test_commit_older_than_lag_window_is_not_read(self, session_factory, seed):
        await seed(trips=[
            {"id": "fast", "status": "pending", "updated_at": T0 + timedelta(minutes=5)},
        ])
        redis, handler = _MemoryRedis(), _handler()
        watcher = TripWatcher(session_factory, redis, handler, lag_seconds=30)

        await watcher.run_cycle()
        await _insert(session_factory, "stale", "pending", T0)
        assert await watcher.run_cycle() == 0


class TestTerminalTrips:
    @pytest.mark.asyncio
    async def test_terminal_status_is_notified_then_dropped(self, session_factory, seed):
        await seed(trips=[
            {"id": "t1", "status": "in_progress", "updated_at": T0},
            {"id": "t2", "status": "accepted", "updated_at": T0},
        ])
        redis, handler = _MemoryRedis(), _handler()
        watcher = TripWatcher(session_factory, redis, handler)

        await watcher.run_cycle()
        await _set_status(session_factory, "t1", "completed", T0 + timedelta(seconds=3))
        await _set_status(session_factory, "t2", "cancelled", T0 + timedelta(seconds=3))
        assert await watcher.run_cycle() == 2

        assert sorted(_handled(handler), key=lambda h: h[1]) == [
            (ChangeKind.TRIP_STATUS_CHANGED, "t1", "in_progress"),
            (ChangeKind.TRIP_STATUS_CHANGED, "t2", "accepted"),
        ]
        assert redis.hashes[STATUS_HASH] == {}

    @pytest.mark.asyncio
    async def test_rereading_dropped_terminal_trip_is_silent(self, session_factory, seed):
        await seed(trips=[{"id": "t1", "status": "arrived", "updated_at": T0}])
        redis, handler = _MemoryRedis(), _handler()
        watcher = TripWatcher(session_factory, redis, handler)

        await watcher.run_cycle()
        await _set_status(session_factory, "t1", "cancelled", T0 + timedelta(seconds=1))
        await watcher.run_cycle()
        # Still inside the lag window, so re-read without a tracked status
        assert await watcher.run_cycle() == 0
        assert handler.handle.await_count == 1
