"""
Change classification
=====================

Turns a batch of freshly read trips plus their last observed statuses into
discrete change events:

* ``PENDING_TRIP_ADDED``  -- the trip is ``pending`` now and was not
  ``pending`` (or was never seen) before.
* ``TRIP_STATUS_CHANGED`` -- the trip was seen before with a different
  status.

A trip seen for the first time in a non-pending status produces nothing; it
only becomes the baseline for later comparisons.  A trip re-read with the
same status also produces nothing, which makes repeated polling harmless.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional

from .entities import ChangeEvent
from .enums import ChangeKind, TripStatus


def detect_changes(
    trips: Iterable[Any], last_seen: Mapping[str, Optional[str]]
) -> list[ChangeEvent]:
    events: list[ChangeEvent] = []
    for trip in trips:
        previous = last_seen.get(trip.id)
        if previous == trip.status:
            continue
        if trip.status == TripStatus.PENDING.value:
            events.append(
                ChangeEvent(ChangeKind.PENDING_TRIP_ADDED, trip, previous)
            )
        if previous is not None:
            events.append(
                ChangeEvent(ChangeKind.TRIP_STATUS_CHANGED, trip, previous)
            )
    return events
