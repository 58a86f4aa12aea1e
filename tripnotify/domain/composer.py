"""
Notification composer
=====================

Pure mapping from a trip status change to the message shown to the
passenger, plus the fixed "new trip" message shown to drivers.

Only the new status selects the message; the previous status only decides
whether there is a change at all.
"""

from __future__ import annotations

from typing import Any, Callable, Optional

from .entities import Notification
from .enums import NotificationType, TripStatus

CURRENCY_PREFIX = "S/"
DEFAULT_CANCELLATION_BODY = "The trip has been cancelled"


def format_fare(fare: Optional[float]) -> str:
    """``12.5 -> "S/ 12.50"``; a missing fare counts as zero."""
    return f"{CURRENCY_PREFIX} {float(fare or 0):.2f}"


def _driver(trip: Any) -> str:
    return trip.driver_name or "Your driver"


def _accepted(trip: Any) -> Notification:
    return Notification(
        "Driver assigned!",
        f"{_driver(trip)} accepted your trip and is on the way",
        NotificationType.TRIP_ACCEPTED,
    )


def _arrived(trip: Any) -> Notification:
    return Notification(
        "Your driver has arrived!",
        f"{_driver(trip)} is waiting at the pickup point",
        NotificationType.DRIVER_ARRIVED,
    )


def _started(trip: Any) -> Notification:
    destination = trip.destination_address or "your destination"
    return Notification(
        "Trip started",
        f"En route to {destination}",
        NotificationType.TRIP_STARTED,
    )


def _completed(trip: Any) -> Notification:
    return Notification(
        "Trip completed!",
        f"You arrived. Amount: {format_fare(trip.fare)}",
        NotificationType.TRIP_COMPLETED,
    )


def _cancelled(trip: Any) -> Notification:
    reason = trip.cancellation_reason
    if not reason or not reason.strip():
        reason = DEFAULT_CANCELLATION_BODY
    return Notification("Trip cancelled", reason, NotificationType.TRIP_CANCELLED)


_PASSENGER_MESSAGES: dict[TripStatus, Callable[[Any], Notification]] = {
    TripStatus.ACCEPTED: _accepted,
    TripStatus.ARRIVED: _arrived,
    TripStatus.IN_PROGRESS: _started,
    TripStatus.COMPLETED: _completed,
    TripStatus.CANCELLED: _cancelled,
}


def compose(previous_status: Optional[str], trip: Any) -> Optional[Notification]:
    """Build the passenger notification for *trip*'s current status.

    Returns ``None`` when the status did not change, or when the new status
    (``pending`` or anything unknown) has no passenger message.
    """
    if previous_status == trip.status:
        return None
    try:
        status = TripStatus(trip.status)
    except ValueError:
        return None
    builder = _PASSENGER_MESSAGES.get(status)
    return builder(trip) if builder else None


def compose_new_trip_request(trip: Any) -> Notification:
    """Driver-facing message for a trip that just entered ``pending``."""
    passenger = trip.passenger_name or "A passenger"
    pickup = trip.pickup_address or "an unknown location"
    return Notification(
        "New trip request",
        f"{passenger} requests a trip from {pickup}",
        NotificationType.NEW_TRIP_REQUEST,
    )
