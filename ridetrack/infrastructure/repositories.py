"""
Repository Pattern -- SQL implementations of the domain store contracts.

Each repository receives an ``AsyncSession`` (unit-of-work) and returns
domain entities, never ORM objects, so the ledger and reservation manager
stay DB-agnostic.  The caller owns the transaction: within one HTTP
request the seat update and the booking insert commit or roll back
together.

Optimistic concurrency
----------------------
``VehicleRepository.atomic_update`` is a compare-and-swap::

    UPDATE vehicles SET ..., version = :v + 1
    WHERE id = :id AND version = :v

Zero affected rows means a concurrent writer committed first.  Under
PostgreSQL READ COMMITTED the losing UPDATE waits for the winner's row
lock, then re-evaluates its WHERE clause and matches nothing.  Reads use
``populate_existing`` so a retry never sees a stale identity-map copy.
"""

from __future__ import annotations

import uuid
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from .models import BookingModel, VehicleModel
from ridetrack.domain.entities import Booking, Location, VehicleCapacity
from ridetrack.domain.enums import BookingStatus
from ridetrack.domain.errors import NotFoundError
from ridetrack.domain.stores import BookingStore, CapacityStore, UpdateFn


def _aware(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands back naive datetimes; everything we store is UTC.
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _to_vehicle(m: VehicleModel) -> VehicleCapacity:
    return VehicleCapacity(
        id=m.id,
        capacity=m.capacity,
        online_booked_seats=m.online_booked_seats,
        offline_occupied_seats=m.offline_occupied_seats,
        is_active=m.is_active,
        vehicle_type=m.vehicle_type,
        last_seat_update=_aware(m.last_seat_update),
        version=m.version,
    )


def _to_booking(m: BookingModel) -> Booking:
    return Booking(
        id=m.id,
        vehicle_id=m.vehicle_id,
        passenger_id=m.passenger_id,
        number_of_passengers=m.number_of_passengers,
        status=m.status,
        fare=m.fare,
        reservation_expires_at=_aware(m.reservation_expires_at),
        is_expired=m.is_expired,
        pickup=Location(m.pickup_lat, m.pickup_lng),
        dropoff=Location(m.dropoff_lat, m.dropoff_lng),
        passenger_name=m.passenger_name,
        phone_number=m.phone_number,
        email=m.email,
        notes=m.notes,
        payment_method=m.payment_method,
        created_at=_aware(m.created_at),
    )


class VehicleRepository(CapacityStore):
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, vehicle_id: str) -> Optional[VehicleCapacity]:
        result = await self.session.execute(
            select(VehicleModel)
            .where(VehicleModel.id == vehicle_id)
            .execution_options(populate_existing=True)
        )
        model = result.scalar_one_or_none()
        return _to_vehicle(model) if model else None

    async def add(self, vehicle: VehicleCapacity, name: str = "") -> VehicleCapacity:
        self.session.add(
            VehicleModel(
                id=vehicle.id,
                name=name,
                vehicle_type=vehicle.vehicle_type,
                capacity=vehicle.capacity,
                online_booked_seats=vehicle.online_booked_seats,
                offline_occupied_seats=vehicle.offline_occupied_seats,
                available_seats=vehicle.available_seats,
                is_active=vehicle.is_active,
                last_seat_update=vehicle.last_seat_update,
                version=vehicle.version,
            )
        )
        await self.session.flush()
        return vehicle

    async def atomic_update(
        self, vehicle_id: str, update_fn: UpdateFn
    ) -> tuple[bool, VehicleCapacity]:
        current = await self.get(vehicle_id)
        if current is None:
            raise NotFoundError(f"Vehicle {vehicle_id} not found")

        updated = update_fn(current)
        if updated is None:
            return True, current

        result = await self.session.execute(
            update(VehicleModel)
            .where(
                VehicleModel.id == vehicle_id,
                VehicleModel.version == current.version,
            )
            .values(
                online_booked_seats=updated.online_booked_seats,
                offline_occupied_seats=updated.offline_occupied_seats,
                available_seats=updated.available_seats,
                last_seat_update=updated.last_seat_update,
                version=current.version + 1,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            latest = await self.get(vehicle_id)
            return False, latest or current
        return True, replace(updated, version=current.version + 1)

    async def set_active(self, vehicle_id: str, is_active: bool) -> None:
        result = await self.session.execute(
            update(VehicleModel)
            .where(VehicleModel.id == vehicle_id)
            .values(is_active=is_active, version=VehicleModel.version + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise NotFoundError(f"Vehicle {vehicle_id} not found")

    async def update_location(self, vehicle_id: str, location: Location) -> None:
        result = await self.session.execute(
            update(VehicleModel)
            .where(VehicleModel.id == vehicle_id)
            .values(
                current_lat=location.latitude,
                current_lng=location.longitude,
                last_location_update=func.now(),
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise NotFoundError(f"Vehicle {vehicle_id} not found")

    async def get_location(self, vehicle_id: str) -> Optional[Location]:
        result = await self.session.execute(
            select(VehicleModel.current_lat, VehicleModel.current_lng).where(
                VehicleModel.id == vehicle_id
            )
        )
        row = result.one_or_none()
        if row is None or row.current_lat is None:
            return None
        return Location(row.current_lat, row.current_lng)

    async def active_locations(self) -> list[tuple[str, Location]]:
        result = await self.session.execute(
            select(
                VehicleModel.id, VehicleModel.current_lat, VehicleModel.current_lng
            ).where(
                VehicleModel.is_active.is_(True),
                VehicleModel.current_lat.is_not(None),
            )
        )
        return [
            (row.id, Location(row.current_lat, row.current_lng))
            for row in result.all()
        ]


class BookingRepository(BookingStore):
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, booking: Booking) -> Booking:
        booking_id = booking.id or str(uuid.uuid4())
        self.session.add(
            BookingModel(
                id=booking_id,
                vehicle_id=booking.vehicle_id,
                passenger_id=booking.passenger_id,
                passenger_name=booking.passenger_name,
                phone_number=booking.phone_number,
                email=booking.email,
                number_of_passengers=booking.number_of_passengers,
                pickup_lat=booking.pickup.latitude,
                pickup_lng=booking.pickup.longitude,
                dropoff_lat=booking.dropoff.latitude,
                dropoff_lng=booking.dropoff.longitude,
                fare=booking.fare,
                status=booking.status,
                payment_method=booking.payment_method,
                notes=booking.notes,
                reservation_expires_at=booking.reservation_expires_at,
                is_expired=booking.is_expired,
                created_at=booking.created_at,
            )
        )
        await self.session.flush()
        return replace(booking, id=booking_id)

    async def get(self, booking_id: str) -> Optional[Booking]:
        result = await self.session.execute(
            select(BookingModel)
            .where(BookingModel.id == booking_id)
            .execution_options(populate_existing=True)
        )
        model = result.scalar_one_or_none()
        return _to_booking(model) if model else None

    async def update(
        self,
        booking_id: str,
        fields: dict[str, Any],
        expected_status: Optional[BookingStatus] = None,
    ) -> bool:
        """*fields* are column names, e.g. ``{"status": ..., "is_expired": ...}``."""
        stmt = update(BookingModel).where(BookingModel.id == booking_id)
        if expected_status is not None:
            stmt = stmt.where(BookingModel.status == expected_status)
        result = await self.session.execute(
            stmt.values(**fields).execution_options(synchronize_session=False)
        )
        if result.rowcount == 1:
            return True

        exists = await self.session.execute(
            select(BookingModel.id).where(BookingModel.id == booking_id)
        )
        if exists.scalar_one_or_none() is None:
            raise NotFoundError(f"Booking {booking_id} not found")
        return False

    async def query(self, vehicle_id: str, status: BookingStatus) -> list[Booking]:
        result = await self.session.execute(
            select(BookingModel)
            .where(
                BookingModel.vehicle_id == vehicle_id,
                BookingModel.status == status,
            )
            .order_by(BookingModel.reservation_expires_at)
            .execution_options(populate_existing=True)
        )
        return [_to_booking(m) for m in result.scalars().all()]

    async def pending_vehicle_ids(self) -> list[str]:
        result = await self.session.execute(
            select(BookingModel.vehicle_id)
            .where(BookingModel.status == BookingStatus.PENDING)
            .distinct()
        )
        return sorted(result.scalars().all())
