"""
Store contracts consumed by the capacity ledger and reservation manager.

``CapacityStore.atomic_update`` is the only way seat counters change.  It
reads the current record, applies ``update_fn`` and commits only if no
concurrent writer bumped ``version`` in between (optimistic concurrency).
``update_fn`` may raise a domain error to abort with no effect, or return
``None`` to signal "nothing to write".  An unknown vehicle raises
``NotFoundError``.

Implementations live in ``ridetrack.infrastructure``: SQLAlchemy
repositories for production, in-memory fakes for tests.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable, Optional

from .entities import Booking, Location, VehicleCapacity
from .enums import BookingStatus

UpdateFn = Callable[[VehicleCapacity], Optional[VehicleCapacity]]


class CapacityStore(ABC):
    @abstractmethod
    async def get(self, vehicle_id: str) -> Optional[VehicleCapacity]: ...

    @abstractmethod
    async def atomic_update(
        self, vehicle_id: str, update_fn: UpdateFn
    ) -> tuple[bool, VehicleCapacity]: ...

    @abstractmethod
    async def add(self, vehicle: VehicleCapacity) -> VehicleCapacity: ...

    @abstractmethod
    async def set_active(self, vehicle_id: str, is_active: bool) -> None: ...

    @abstractmethod
    async def update_location(self, vehicle_id: str, location: Location) -> None: ...

    @abstractmethod
    async def get_location(self, vehicle_id: str) -> Optional[Location]: ...

    @abstractmethod
    async def active_locations(self) -> list[tuple[str, Location]]: ...


class BookingStore(ABC):
    @abstractmethod
    async def create(self, booking: Booking) -> Booking: ...

    @abstractmethod
    async def get(self, booking_id: str) -> Optional[Booking]: ...

    @abstractmethod
    async def update(
        self,
        booking_id: str,
        fields: dict[str, Any],
        expected_status: Optional[BookingStatus] = None,
    ) -> bool:
        """Apply *fields*; with *expected_status* only if the status still matches."""

    @abstractmethod
    async def query(self, vehicle_id: str, status: BookingStatus) -> list[Booking]: ...

    @abstractmethod
    async def pending_vehicle_ids(self) -> list[str]: ...
