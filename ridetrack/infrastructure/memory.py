"""
In-memory stores.

Same compare-and-swap semantics as the SQL repositories, without a
database.  ``latency`` simulates the round trip between the read and the
conditional write so concurrent callers genuinely interleave.
"""

from __future__ import annotations

import asyncio
import uuid
from dataclasses import replace
from typing import Any, Optional

from ridetrack.domain.entities import Booking, Location, VehicleCapacity
from ridetrack.domain.enums import BookingStatus
from ridetrack.domain.errors import NotFoundError
from ridetrack.domain.stores import BookingStore, CapacityStore, UpdateFn


class InMemoryCapacityStore(CapacityStore):
    def __init__(self, latency: float = 0.0):
        self.latency = latency
        self.writes = 0
        self._vehicles: dict[str, VehicleCapacity] = {}
        self._locations: dict[str, Location] = {}

    async def get(self, vehicle_id: str) -> Optional[VehicleCapacity]:
        return self._vehicles.get(vehicle_id)

    async def add(self, vehicle: VehicleCapacity) -> VehicleCapacity:
        self._vehicles[vehicle.id] = vehicle
        return vehicle

    async def atomic_update(
        self, vehicle_id: str, update_fn: UpdateFn
    ) -> tuple[bool, VehicleCapacity]:
        current = self._vehicles.get(vehicle_id)
        if current is None:
            raise NotFoundError(f"Vehicle {vehicle_id} not found")

        updated = update_fn(current)
        if updated is None:
            return True, current

        await asyncio.sleep(self.latency)

        # No await between the version check and the write.
        latest = self._vehicles[vehicle_id]
        if latest.version != current.version:
            return False, latest

        committed = replace(updated, version=current.version + 1)
        self._vehicles[vehicle_id] = committed
        self.writes += 1
        return True, committed

    async def set_active(self, vehicle_id: str, is_active: bool) -> None:
        current = self._vehicles.get(vehicle_id)
        if current is None:
            raise NotFoundError(f"Vehicle {vehicle_id} not found")
        self._vehicles[vehicle_id] = replace(
            current, is_active=is_active, version=current.version + 1
        )

    async def update_location(self, vehicle_id: str, location: Location) -> None:
        if vehicle_id not in self._vehicles:
            raise NotFoundError(f"Vehicle {vehicle_id} not found")
        self._locations[vehicle_id] = location

    async def get_location(self, vehicle_id: str) -> Optional[Location]:
        return self._locations.get(vehicle_id)

    async def active_locations(self) -> list[tuple[str, Location]]:
        return [
            (vehicle_id, location)
            for vehicle_id, location in self._locations.items()
            if self._vehicles[vehicle_id].is_active
        ]


class InMemoryBookingStore(BookingStore):
    def __init__(self):
        self._bookings: dict[str, Booking] = {}

    async def create(self, booking: Booking) -> Booking:
        stored = replace(booking, id=booking.id or uuid.uuid4().hex)
        self._bookings[stored.id] = stored
        return replace(stored)

    async def get(self, booking_id: str) -> Optional[Booking]:
        booking = self._bookings.get(booking_id)
        return replace(booking) if booking else None

    async def update(
        self,
        booking_id: str,
        fields: dict[str, Any],
        expected_status: Optional[BookingStatus] = None,
    ) -> bool:
        current = self._bookings.get(booking_id)
        if current is None:
            raise NotFoundError(f"Booking {booking_id} not found")
        if expected_status is not None and current.status != expected_status:
            return False
        self._bookings[booking_id] = replace(current, **fields)
        return True

    async def query(self, vehicle_id: str, status: BookingStatus) -> list[Booking]:
        return [
            replace(b)
            for b in self._bookings.values()
            if b.vehicle_id == vehicle_id and b.status == status
        ]

    async def pending_vehicle_ids(self) -> list[str]:
        return sorted(
            {
                b.vehicle_id
                for b in self._bookings.values()
                if b.status == BookingStatus.PENDING
            }
        )
