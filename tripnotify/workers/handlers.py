"""
Notification handlers
=====================

One change event in, at most one push dispatch out:

1. Resolve recipients (fresh reads, nothing cached between events).
2. Compose the message.
3. Dispatch.

Every event is isolated: a lookup failure skips the event, a dispatch
failure is already absorbed into the report, and anything unexpected is
logged without disturbing other events of the same cycle.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from tripnotify.domain.composer import compose, compose_new_trip_request
from tripnotify.domain.entities import ChangeEvent, DispatchReport
from tripnotify.domain.enums import ChangeKind
from tripnotify.domain.errors import LookupFailure
from tripnotify.domain.recipients import available_driver_handles, busy_driver_ids
from tripnotify.infrastructure.push import PushDispatcher
from tripnotify.infrastructure.repositories import TripRepository, UserRepository

logger = logging.getLogger(__name__)


class RecipientResolver:
    def __init__(self, session: AsyncSession):
        self.users = UserRepository(session)
        self.trips = TripRepository(session)

    async def resolve_driver_targets(self, pending_trip: Any) -> list[str]:
        """Push handles of active drivers not committed to another trip.

        The two reads are independent; a driver accepting a trip between
        them may still receive this request.
        """
        drivers = await self.users.get_active_drivers()
        active_trips = await self.trips.get_active_trips()
        handles = available_driver_handles(drivers, active_trips)
        logger.debug(
            "Trip %s: %d active drivers, %d busy, %d reachable",
            pending_trip.id,
            len(drivers),
            len(busy_driver_ids(active_trips)),
            len(handles),
        )
        return handles

    async def resolve_passenger_target(self, trip: Any) -> Optional[str]:
        if not trip.passenger_id:
            return None
        passenger = await self.users.get_by_id(trip.passenger_id)
        if passenger is None:
            logger.warning(
                "Trip %s: passenger %s not found", trip.id, trip.passenger_id
            )
            return None
        return passenger.push_token or None


class NotificationHandler:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        dispatcher: PushDispatcher,
    ):
        self.session_factory = session_factory
        self.dispatcher = dispatcher

    async def handle(self, event: ChangeEvent) -> Optional[DispatchReport]:
        """Process one event; never raises."""
        try:
            if event.kind is ChangeKind.PENDING_TRIP_ADDED:
                return await self.on_pending_trip_added(event)
            return await self.on_trip_status_changed(event)
        except LookupFailure as exc:
            logger.warning("Skipping %s for trip %s: %s", event.kind.value, event.trip.id, exc)
        except Exception:
            logger.exception(
                "Unhandled error processing %s for trip %s",
                event.kind.value,
                event.trip.id,
            )
        return None

    async def on_pending_trip_added(
        self, event: ChangeEvent
    ) -> Optional[DispatchReport]:
        trip = event.trip
        logger.info("New trip detected: %s", trip.id)

        async with self.session_factory() as session:
            handles = await RecipientResolver(session).resolve_driver_targets(trip)

        if not handles:
            logger.info("Trip %s: no available drivers to notify", trip.id)
            return None

        notification = compose_new_trip_request(trip)
        report = await self.dispatcher.dispatch(
            handles,
            notification.title,
            notification.body,
            notification.payload(trip.id),
        )
        logger.info(
            "Trip %s: new-trip request sent to %d of %d available drivers",
            trip.id,
            report.success_count,
            len(handles),
        )
        return report

    async def on_trip_status_changed(
        self, event: ChangeEvent
    ) -> Optional[DispatchReport]:
        trip = event.trip
        notification = compose(event.previous_status, trip)
        if notification is None:
            return None

        logger.info(
            "Trip %s status changed: %s -> %s",
            trip.id,
            event.previous_status,
            trip.status,
        )

        async with self.session_factory() as session:
            handle = await RecipientResolver(session).resolve_passenger_target(trip)

        if handle is None:
            logger.info("Trip %s: passenger has no push handle", trip.id)
            return None

        report = await self.dispatcher.dispatch(
            [handle],
            notification.title,
            notification.body,
            notification.payload(trip.id),
        )
        if report.success_count:
            logger.info("Trip %s: passenger notified (%s)", trip.id, notification.title)
        return report
