"""
Capacity Ledger
===============

Single source of truth for how many seats on a vehicle are free.

Seats are split into *online* (reserved through the app) and *offline*
(walk-up passengers counted by the driver).  Invariant after every
committed mutation::

    0 <= online_booked_seats + offline_occupied_seats <= capacity

Concurrency safety
------------------
Every mutation is a single ``CapacityStore.atomic_update`` call: the new
counters are computed from the record as read and committed only if no
other writer got there first.  A lost race is retried with exponential
backoff; after ``max_retries`` retries a ``ConflictError`` is raised.
``last_seat_update`` is written in the same update as the counters.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from .entities import VehicleCapacity
from .errors import (
    CapacityExceededError,
    ConflictError,
    InsufficientCapacityError,
    NotFoundError,
    VehicleOfflineError,
)
from .stores import CapacityStore, UpdateFn

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CapacityLedger:
    def __init__(
        self,
        store: CapacityStore,
        *,
        clock: Clock = utcnow,
        max_retries: int = 3,
        backoff_seconds: float = 0.05,
    ):
        self.store = store
        self.clock = clock
        self.max_retries = max_retries
        self.backoff_seconds = backoff_seconds

    # ── Pure queries ──────────────────────────────────────────────────

    @staticmethod
    def get_available(vehicle: VehicleCapacity) -> int:
        return vehicle.available_seats

    @staticmethod
    def can_accommodate(vehicle: VehicleCapacity, seats: int) -> bool:
        return vehicle.can_accommodate(seats)

    async def get(self, vehicle_id: str) -> VehicleCapacity:
        vehicle = await self.store.get(vehicle_id)
        if vehicle is None:
            raise NotFoundError(f"Vehicle {vehicle_id} not found")
        return vehicle

    # ── Mutations ─────────────────────────────────────────────────────

    async def set_online(self, vehicle_id: str, count: int) -> VehicleCapacity:
        online = max(0, count)

        def apply(v: VehicleCapacity) -> VehicleCapacity:
            _check_fits(v, online, v.offline_occupied_seats)
            return v.with_counts(online=online, updated_at=self.clock())

        return await self._mutate(vehicle_id, apply)

    async def set_offline(self, vehicle_id: str, count: int) -> VehicleCapacity:
        offline = max(0, count)

        def apply(v: VehicleCapacity) -> VehicleCapacity:
            _check_fits(v, v.online_booked_seats, offline)
            return v.with_counts(offline=offline, updated_at=self.clock())

        return await self._mutate(vehicle_id, apply)

    async def add_offline_passenger(self, vehicle_id: str) -> VehicleCapacity:
        def apply(v: VehicleCapacity) -> VehicleCapacity:
            if v.occupied_seats >= v.capacity:
                raise CapacityExceededError(f"Vehicle {v.id} is at full capacity")
            return v.with_counts(
                offline=v.offline_occupied_seats + 1, updated_at=self.clock()
            )

        return await self._mutate(vehicle_id, apply)

    async def remove_offline_passenger(self, vehicle_id: str) -> VehicleCapacity:
        def apply(v: VehicleCapacity) -> Optional[VehicleCapacity]:
            if v.offline_occupied_seats <= 0:
                return None
            return v.with_counts(
                offline=v.offline_occupied_seats - 1, updated_at=self.clock()
            )

        return await self._mutate(vehicle_id, apply)

    async def reserve(self, vehicle_id: str, seats: int) -> VehicleCapacity:
        """Check-and-increment ``online_booked_seats`` as one atomic step."""

        def apply(v: VehicleCapacity) -> VehicleCapacity:
            if not v.is_active:
                raise VehicleOfflineError(
                    f"Vehicle {v.id} is currently offline. Please choose another vehicle."
                )
            if not v.can_accommodate(seats):
                raise InsufficientCapacityError(seats, v.available_seats)
            return v.with_counts(
                online=v.online_booked_seats + seats, updated_at=self.clock()
            )

        return await self._mutate(vehicle_id, apply)

    async def release(self, vehicle_id: str, seats: int) -> VehicleCapacity:
        def apply(v: VehicleCapacity) -> Optional[VehicleCapacity]:
            if seats <= 0:
                return None
            return v.with_counts(
                online=max(0, v.online_booked_seats - seats), updated_at=self.clock()
            )

        return await self._mutate(vehicle_id, apply)

    # ── Internals ─────────────────────────────────────────────────────

    async def _mutate(self, vehicle_id: str, update_fn: UpdateFn) -> VehicleCapacity:
        for attempt in range(self.max_retries + 1):
            committed, record = await self.store.atomic_update(vehicle_id, update_fn)
            if committed:
                return record

            if attempt < self.max_retries:
                delay = self.backoff_seconds * (2 ** attempt)
                logger.warning(
                    "Seat update on vehicle %s lost a race (attempt %d), retrying in %.3fs",
                    vehicle_id,
                    attempt + 1,
                    delay,
                )
                await asyncio.sleep(delay)

        raise ConflictError(
            f"Seat update on vehicle {vehicle_id} conflicted "
            f"{self.max_retries + 1} times; try again"
        )


def _check_fits(vehicle: VehicleCapacity, online: int, offline: int) -> None:
    if online + offline > vehicle.capacity:
        raise CapacityExceededError(
            f"Vehicle {vehicle.id}: {online} online + {offline} offline "
            f"exceeds capacity {vehicle.capacity}"
        )
