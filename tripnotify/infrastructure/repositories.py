"""
Repository Pattern -- read-only access to the trip-tracking store.

Each repository receives an ``AsyncSession`` and exposes the queries the
notification flows need.  Driver errors surface as ``LookupFailure`` so the
caller can skip the event instead of crashing.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import and_, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from .models import TripModel, UserModel
from tripnotify.domain.enums import ACTIVE_TRIP_STATUSES, DriverStatus, UserRole
from tripnotify.domain.errors import LookupFailure


class TripRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_active_trips(self) -> list[TripModel]:
        """Trips whose driver is committed (accepted / arrived / in progress)."""
        try:
            result = await self.session.execute(
                select(TripModel).where(
                    TripModel.status.in_([s.value for s in ACTIVE_TRIP_STATUSES])
                )
            )
        except SQLAlchemyError as exc:
            raise LookupFailure(f"active trips: {exc}") from exc
        return list(result.scalars().all())

    async def get_page_after(
        self, after_ts: Optional[datetime], after_id: str, limit: int
    ) -> list[TripModel]:
        """Next page of trips in ``(updated_at, id)`` order after the given key.

        ``after_id=""`` includes every row stamped exactly *after_ts*.  With
        ``after_ts=None`` the page starts at the oldest trip.
        """
        query = select(TripModel).order_by(TripModel.updated_at, TripModel.id)
        if after_ts is not None:
            query = query.where(
                or_(
                    TripModel.updated_at > after_ts,
                    and_(TripModel.updated_at == after_ts, TripModel.id > after_id),
                )
            )
        try:
            result = await self.session.execute(query.limit(limit))
        except SQLAlchemyError as exc:
            raise LookupFailure(f"trips after {after_ts} / {after_id!r}: {exc}") from exc
        return list(result.scalars().all())


class UserRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, user_id: str) -> Optional[UserModel]:
        try:
            return await self.session.get(UserModel, user_id)
        except SQLAlchemyError as exc:
            raise LookupFailure(f"user {user_id}: {exc}") from exc

    async def get_active_drivers(self) -> list[UserModel]:
        try:
            result = await self.session.execute(
                select(UserModel)
                .where(UserModel.role == UserRole.DRIVER.value)
                .where(UserModel.driver_status == DriverStatus.ACTIVE.value)
                .order_by(UserModel.id)
            )
        except SQLAlchemyError as exc:
            raise LookupFailure(f"active drivers: {exc}") from exc
        return list(result.scalars().all())
