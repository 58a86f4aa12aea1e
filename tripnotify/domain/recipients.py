"""
Driver availability filter
==========================

A driver is *busy* while it is the ``driver_id`` of a trip in one of the
``ACTIVE_TRIP_STATUSES``.  An *available* driver is active, not busy, and
has a push handle.

The busy set is rebuilt from scratch for every pending trip; nothing here is
cached between calls.

Complexity: O(D + T) for D active drivers and T active trips.
"""

from __future__ import annotations

from typing import Iterable, Protocol


class _HasDriver(Protocol):
    driver_id: str | None


class _HasPushToken(Protocol):
    id: str
    push_token: str | None


def busy_driver_ids(active_trips: Iterable[_HasDriver]) -> set[str]:
    """Collect the drivers committed to a trip, ignoring unassigned trips."""
    return {t.driver_id for t in active_trips if t.driver_id}


def available_driver_handles(
    active_drivers: Iterable[_HasPushToken],
    active_trips: Iterable[_HasDriver],
) -> list[str]:
    """Return push handles of drivers that are free to take a new trip.

    Order follows ``active_drivers``.  Handles are not deduplicated: two
    drivers registered on the same device both count.
    """
    busy = busy_driver_ids(active_trips)
    return [
        d.push_token
        for d in active_drivers
        if d.push_token and d.id not in busy
    ]
