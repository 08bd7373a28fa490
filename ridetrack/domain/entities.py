"""
Domain entities with business logic.

Patterns used
-------------
- **State Pattern** on ``Booking``: enforces valid lifecycle transitions
  (pending -> confirmed -> completed, with cancelled / expired exits).
- ``VehicleCapacity`` is an immutable snapshot of a vehicle's seat
  counters.  Mutations produce a new snapshot which the store commits
  with a compare-and-swap on ``version``.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Optional

from .enums import (
    BOOKING_TRANSITIONS,
    BookingStatus,
    PaymentMethod,
    VehicleType,
)
from .errors import InvalidStateTransition


# ── Value Objects ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class Location:
    latitude: float
    longitude: float


@dataclass(frozen=True)
class VehicleTypeInfo:
    name: str
    capacity: int
    fare_multiplier: float


VEHICLE_TYPES: dict[VehicleType, VehicleTypeInfo] = {
    VehicleType.BUS: VehicleTypeInfo("Bus", 40, 1.0),
    VehicleType.OTHERS: VehicleTypeInfo("Others", 15, 1.2),
    VehicleType.TAXI: VehicleTypeInfo("Taxi", 4, 2.5),
    VehicleType.BIKE: VehicleTypeInfo("Bike", 2, 0.8),
}


# ── Entities ──────────────────────────────────────────────────────────


@dataclass(frozen=True)
class VehicleCapacity:
    id: str
    capacity: int
    online_booked_seats: int = 0
    offline_occupied_seats: int = 0
    is_active: bool = True
    vehicle_type: VehicleType = VehicleType.BUS
    last_seat_update: Optional[datetime] = None
    version: int = 0

    @property
    def occupied_seats(self) -> int:
        return self.online_booked_seats + self.offline_occupied_seats

    @property
    def available_seats(self) -> int:
        return max(0, self.capacity - self.occupied_seats)

    def can_accommodate(self, seats: int) -> bool:
        return self.available_seats >= seats

    def with_counts(
        self,
        *,
        online: Optional[int] = None,
        offline: Optional[int] = None,
        updated_at: datetime,
    ) -> VehicleCapacity:
        """Return a copy with new counters and a fresh ``last_seat_update``."""
        return replace(
            self,
            online_booked_seats=(
                self.online_booked_seats if online is None else online
            ),
            offline_occupied_seats=(
                self.offline_occupied_seats if offline is None else offline
            ),
            last_seat_update=updated_at,
        )


@dataclass
class Booking:
    id: Optional[str] = None
    vehicle_id: str = ""
    passenger_id: str = ""
    number_of_passengers: int = 1
    status: BookingStatus = BookingStatus.PENDING
    fare: float = 0.0
    reservation_expires_at: Optional[datetime] = None
    is_expired: bool = False
    pickup: Location = field(default_factory=lambda: Location(0, 0))
    dropoff: Location = field(default_factory=lambda: Location(0, 0))
    passenger_name: str = ""
    phone_number: str = ""
    email: Optional[str] = None
    notes: Optional[str] = None
    payment_method: PaymentMethod = PaymentMethod.CASH
    created_at: Optional[datetime] = None

    def is_stale(self, now: datetime) -> bool:
        """A pending reservation whose expiry has already passed."""
        return (
            self.status == BookingStatus.PENDING
            and self.reservation_expires_at is not None
            and self.reservation_expires_at < now
        )

    def transition_to(self, new_status: BookingStatus) -> None:
        """Move to *new_status* if the transition is legal, else raise."""
        self.check_transition(new_status)
        self.status = new_status
        if new_status == BookingStatus.EXPIRED:
            self.is_expired = True

    def check_transition(self, new_status: BookingStatus) -> None:
        allowed = BOOKING_TRANSITIONS.get(self.status, set())
        if new_status not in allowed:
            raise InvalidStateTransition(
                f"Cannot transition from {self.status.value} to {new_status.value}"
            )
