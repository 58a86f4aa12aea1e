"""
Domain entities and value objects.

``Trip`` and ``User`` mirror the columns of the ORM models attribute for
attribute, so the pure domain functions accept either one.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from .enums import ChangeKind, NotificationType, UserRole


# ── Entities ──────────────────────────────────────────────────────────


@dataclass
class Trip:
    id: str = ""
    status: str = "pending"
    passenger_id: Optional[str] = None
    driver_id: Optional[str] = None
    passenger_name: Optional[str] = None
    pickup_address: Optional[str] = None
    destination_address: Optional[str] = None
    driver_name: Optional[str] = None
    fare: Optional[float] = None
    cancellation_reason: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class User:
    id: str = ""
    role: str = UserRole.PASSENGER.value
    driver_status: Optional[str] = None
    push_token: Optional[str] = None
    name: Optional[str] = None


# ── Value Objects ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class Notification:
    title: str
    body: str
    type: NotificationType

    def payload(self, trip_id: str) -> dict[str, str]:
        """Key-value data delivered alongside the visible notification."""
        return {"tripId": str(trip_id), "type": self.type.value}


@dataclass(frozen=True)
class ChangeEvent:
    kind: ChangeKind
    trip: Trip
    previous_status: Optional[str] = None


@dataclass(frozen=True)
class DeliveryResult:
    handle: str
    success: bool
    error: Optional[str] = None


@dataclass
class DispatchReport:
    results: list[DeliveryResult] = field(default_factory=list)

    @property
    def success_count(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def failure_count(self) -> int:
        return sum(1 for r in self.results if not r.success)

    @property
    def failures(self) -> list[DeliveryResult]:
        return [r for r in self.results if not r.success]
