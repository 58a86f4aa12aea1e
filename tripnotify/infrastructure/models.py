"""
SQLAlchemy ORM models for the trip-tracking store.

Tables
------
* ``users`` -- drivers and passengers, each with one push handle
* ``trips`` -- ride requests and their lifecycle status

Both tables are written by the ride-matching system.  Identifiers are the
string document ids that system assigns.

Indexes
-------
* ``trips.status`` for the pending / active-trip filters.
* ``trips (updated_at, id)`` for the watcher's keyset cursor.
* ``users (role, driver_status)`` for the active-driver query.
"""

from sqlalchemy import Column, DateTime, Float, Index, String, Text, func

from .database import Base


class UserModel(Base):
    __tablename__ = "users"

    id = Column(String(64), primary_key=True)
    name = Column(String(120), nullable=True)
    role = Column(String(20), nullable=False)
    driver_status = Column(String(20), nullable=True)
    # FCM registration token or OneSignal player id
    push_token = Column(String(512), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        Index("idx_users_role_driver_status", "role", "driver_status"),
    )


class TripModel(Base):
    __tablename__ = "trips"

    id = Column(String(64), primary_key=True)
    status = Column(String(20), nullable=False, default="pending")
    passenger_id = Column(String(64), nullable=True)
    driver_id = Column(String(64), nullable=True)
    passenger_name = Column(String(120), nullable=True)
    driver_name = Column(String(120), nullable=True)
    pickup_address = Column(String(255), nullable=True)
    destination_address = Column(String(255), nullable=True)
    fare = Column(Float, nullable=True)
    cancellation_reason = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    __table_args__ = (
        Index("idx_trips_status", "status"),
        Index("idx_trips_cursor", "updated_at", "id"),
        Index("idx_trips_driver", "driver_id"),
    )
