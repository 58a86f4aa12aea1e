"""Domain enumerations for trips, users and notifications."""

import enum


class TripStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    ARRIVED = "arrived"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# A driver assigned to a trip in one of these statuses is busy
ACTIVE_TRIP_STATUSES: frozenset[TripStatus] = frozenset(
    {TripStatus.ACCEPTED, TripStatus.ARRIVED, TripStatus.IN_PROGRESS}
)

# No further transitions; the watcher stops tracking these
TERMINAL_TRIP_STATUSES: frozenset[TripStatus] = frozenset(
    {TripStatus.COMPLETED, TripStatus.CANCELLED}
)


class UserRole(str, enum.Enum):
    DRIVER = "driver"
    PASSENGER = "passenger"


class DriverStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class NotificationType(str, enum.Enum):
    NEW_TRIP_REQUEST = "new_trip_request"
    TRIP_ACCEPTED = "trip_accepted"
    DRIVER_ARRIVED = "driver_arrived"
    TRIP_STARTED = "trip_started"
    TRIP_COMPLETED = "trip_completed"
    TRIP_CANCELLED = "trip_cancelled"


class ChangeKind(str, enum.Enum):
    PENDING_TRIP_ADDED = "pending_trip_added"
    TRIP_STATUS_CHANGED = "trip_status_changed"
