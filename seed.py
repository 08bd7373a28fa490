"""
Seed script -- populates the database with sample vehicles for reviewers.

Run after migrations:
    python seed.py

Creates:
  - 5 sample vehicles around Butwal (bus, others, taxi, bike)
  - their current positions for the ETA / nearest-vehicle endpoints
"""

import asyncio
from datetime import datetime, timezone

from sqlalchemy import text

from ridetrack.domain.entities import VEHICLE_TYPES, Location, VehicleCapacity
from ridetrack.domain.enums import VehicleType
from ridetrack.infrastructure.database import async_session_factory, dispose_engine
from ridetrack.infrastructure.repositories import VehicleRepository


VEHICLES = [
    {"id": "bus-001", "name": "Lu 1 Pa 2345", "type": VehicleType.BUS, "lat": 27.6921, "lng": 83.4615},
    {"id": "bus-002", "name": "Lu 1 Pa 5678", "type": VehicleType.OTHERS, "lat": 27.7000, "lng": 83.4500},
    {"id": "bus-003", "name": "Lu 2 Ta 9101", "type": VehicleType.TAXI, "lat": 27.6800, "lng": 83.4700},
    {"id": "bus-004", "name": "Lu 3 Pa 2222", "type": VehicleType.BIKE, "lat": 27.7100, "lng": 83.4400},
    {"id": "bus-005", "name": "Lu 1 Pa 3456", "type": VehicleType.BUS, "lat": 27.6588, "lng": 83.4534},
]


async def seed():
    async with async_session_factory() as session:
        # Check if already seeded
        result = await session.execute(text("SELECT count(*) FROM vehicles"))
        if result.scalar() > 0:
            print("Database already seeded. Skipping.")
            return

        repo = VehicleRepository(session)
        now = datetime.now(timezone.utc)
        for v in VEHICLES:
            await repo.add(
                VehicleCapacity(
                    id=v["id"],
                    capacity=VEHICLE_TYPES[v["type"]].capacity,
                    vehicle_type=v["type"],
                    last_seat_update=now,
                ),
                name=v["name"],
            )
            await repo.update_location(v["id"], Location(v["lat"], v["lng"]))
        print(f"  Created {len(VEHICLES)} vehicles")

        await session.commit()
        print("\nSeed complete!")


async def main():
    print("Seeding database...")
    await seed()
    await dispose_engine()


if __name__ == "__main__":
    asyncio.run(main())
