"""
Shared test fixtures.

Uses an in-memory SQLite database (via aiosqlite) so tests run without
Docker / PostgreSQL / Redis.  The production models use only portable
column types, so the real ``Base.metadata`` is created as-is.
"""

from __future__ import annotations

from typing import AsyncGenerator, Sequence

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from tripnotify.domain.entities import DeliveryResult
from tripnotify.infrastructure.database import Base
from tripnotify.infrastructure.models import TripModel, UserModel
from tripnotify.infrastructure.push import PushMessage, PushProvider


# ── Test DB (SQLite in-memory) ────────────────────────────────────────

TEST_DB_URL = "sqlite+aiosqlite:///:memory:"


class RecordingProvider(PushProvider):
    """Push provider that records every send instead of calling out."""

    name = "recording"

    def __init__(self, failing: Sequence[str] = ()):
        self.failing = set(failing)
        self.sent: list[tuple[list[str], PushMessage]] = []

    async def send(self, handles, message):
        self.sent.append((list(handles), message))
        return [
            DeliveryResult(h, h not in self.failing, "rejected" if h in self.failing else None)
            for h in handles
        ]


# ── Fixtures ──────────────────────────────────────────────────────────


@pytest_asyncio.fixture
async def session_factory() -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Fresh schema per test; all sessions share one in-memory connection."""
    engine = create_async_engine(TEST_DB_URL, poolclass=StaticPool, echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def seed(session_factory):
    """Insert users / trips given as keyword dicts."""

    async def _seed(users=(), trips=()):
        async with session_factory() as session:
            session.add_all(UserModel(**u) for u in users)
            session.add_all(TripModel(**t) for t in trips)
            await session.commit()

    return _seed


@pytest.fixture
def provider() -> RecordingProvider:
    return RecordingProvider()
