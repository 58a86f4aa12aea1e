"""
Seed script -- populates the trip store with sample data for local runs.

Run after migrations:
    python seed.py

Creates:
  - 4 drivers (3 active, one of them busy; 1 inactive)
  - 3 passengers
  - 3 trips (one pending, one accepted, one completed)

With the service running, the pending trip produces a "New trip request"
push to the two free drivers.
"""

import asyncio

from sqlalchemy import text

from tripnotify.domain.enums import DriverStatus, TripStatus, UserRole
from tripnotify.infrastructure.database import async_session_factory, engine
from tripnotify.infrastructure.models import TripModel, UserModel


DRIVERS = [
    {"id": "drv-luis", "name": "Luis Quispe", "status": DriverStatus.ACTIVE, "token": "fcm-token-luis"},
    {"id": "drv-carla", "name": "Carla Rojas", "status": DriverStatus.ACTIVE, "token": "fcm-token-carla"},
    {"id": "drv-jorge", "name": "Jorge Huaman", "status": DriverStatus.ACTIVE, "token": "fcm-token-jorge"},
    {"id": "drv-rosa", "name": "Rosa Flores", "status": DriverStatus.INACTIVE, "token": "fcm-token-rosa"},
]

PASSENGERS = [
    {"id": "pax-ana", "name": "Ana Torres", "token": "fcm-token-ana"},
    {"id": "pax-pedro", "name": "Pedro Salas", "token": "fcm-token-pedro"},
    {"id": "pax-maria", "name": "Maria Vega", "token": None},
]

TRIPS = [
    {
        "id": "trip-001",
        "status": TripStatus.PENDING,
        "passenger_id": "pax-ana",
        "passenger_name": "Ana",
        "pickup_address": "Av. Sol 123",
        "destination_address": "Plaza de Armas",
    },
    {
        "id": "trip-002",
        "status": TripStatus.ACCEPTED,
        "passenger_id": "pax-pedro",
        "passenger_name": "Pedro",
        "driver_id": "drv-jorge",
        "driver_name": "Jorge",
        "pickup_address": "Jr. Lima 450",
        "destination_address": "Aeropuerto",
        "fare": 25.0,
    },
    {
        "id": "trip-003",
        "status": TripStatus.COMPLETED,
        "passenger_id": "pax-maria",
        "passenger_name": "Maria",
        "driver_id": "drv-luis",
        "driver_name": "Luis",
        "pickup_address": "Av. Grau 78",
        "destination_address": "Mercado Central",
        "fare": 7.0,
    },
]


async def seed():
    async with async_session_factory() as session:
        result = await session.execute(text("SELECT count(*) FROM users"))
        if result.scalar() > 0:
            print("Database already seeded. Skipping.")
            return

        # ── Users ─────────────────────────────────────────────────────
        for d in DRIVERS:
            session.add(
                UserModel(
                    id=d["id"],
                    name=d["name"],
                    role=UserRole.DRIVER.value,
                    driver_status=d["status"].value,
                    push_token=d["token"],
                )
            )
        for p in PASSENGERS:
            session.add(
                UserModel(
                    id=p["id"],
                    name=p["name"],
                    role=UserRole.PASSENGER.value,
                    push_token=p["token"],
                )
            )
        await session.flush()
        print(f"  Created {len(DRIVERS)} drivers, {len(PASSENGERS)} passengers")

        # ── Trips ─────────────────────────────────────────────────────
        for t in TRIPS:
            session.add(TripModel(**{**t, "status": t["status"].value}))
        await session.flush()
        print(f"  Created {len(TRIPS)} trips")

        await session.commit()
        print("\nSeed complete!")


async def main():
    print("Seeding database...")
    await seed()
    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
