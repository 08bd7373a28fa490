"""
Reservation Manager
===================

Admission-control gate for new bookings and expiry of abandoned ones.

Booking creation
----------------
1. Read the vehicle (``NotFoundError`` / ``VehicleOfflineError``).
2. Optionally sweep stale reservations on that vehicle first, so seats
   held by abandoned bookings are available to this one.
3. Quote the fare.  A failing fare calculation falls back to ``0.0``
   rather than blocking the booking.
4. ``CapacityLedger.reserve`` re-checks availability and increments the
   online counter in one atomic step.
5. Persist the ``pending`` booking.  If that fails, the seats are
   released again so no decrement outlives a missing booking.

Expiry
------
The reservation timeout is enforced by ``expire_stale_bookings``, a sweep
that only touches bookings whose expiry already passed.  Each booking is
moved ``pending -> expired`` with a conditional update, so concurrent
sweeps expire and release every booking exactly once.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Optional, Union

from .entities import Booking, Location, VehicleCapacity
from .enums import SEAT_HOLDING_STATUSES, BookingStatus, PaymentMethod, VehicleType
from .errors import (
    AlreadyCancelledError,
    BookingExpiredError,
    ConflictError,
    NotFoundError,
    VehicleOfflineError,
)
from .ledger import CapacityLedger
from .pricing import FareCalculator
from .stores import BookingStore

logger = logging.getLogger(__name__)


class ReservationManager:
    def __init__(
        self,
        ledger: CapacityLedger,
        bookings: BookingStore,
        fares: Optional[FareCalculator] = None,
        *,
        timeout_minutes: int = 10,
        sweep_before_booking: bool = True,
    ):
        self.ledger = ledger
        self.bookings = bookings
        self.fares = fares or FareCalculator()
        self.timeout = timedelta(minutes=timeout_minutes)
        self.sweep_before_booking = sweep_before_booking

    @property
    def clock(self):
        return self.ledger.clock

    # ── Queries ───────────────────────────────────────────────────────

    async def get_booking(self, booking_id: str) -> Booking:
        booking = await self.bookings.get(booking_id)
        if booking is None:
            raise NotFoundError(f"Booking {booking_id} not found")
        return booking

    async def vehicle_seats(self, vehicle_id: str) -> VehicleCapacity:
        """Availability snapshot after lazily expiring stale reservations."""
        await self.ledger.get(vehicle_id)
        await self.expire_stale_bookings(vehicle_id)
        return await self.ledger.get(vehicle_id)

    # ── Commands ──────────────────────────────────────────────────────

    async def create_booking(
        self,
        vehicle_id: str,
        passenger_id: str,
        number_of_passengers: int,
        pickup: Location,
        dropoff: Location,
        *,
        vehicle_type: Union[str, VehicleType, None] = None,
        passenger_name: str = "",
        phone_number: str = "",
        email: Optional[str] = None,
        notes: Optional[str] = None,
        payment_method: PaymentMethod = PaymentMethod.CASH,
    ) -> Booking:
        if number_of_passengers < 1:
            raise ValueError("number_of_passengers must be >= 1")

        vehicle = await self.ledger.get(vehicle_id)
        if not vehicle.is_active:
            raise VehicleOfflineError(
                f"Vehicle {vehicle_id} is currently offline. Please choose another vehicle."
            )

        if self.sweep_before_booking:
            await self.expire_stale_bookings(vehicle_id)

        fare = self._quote(
            pickup, dropoff, vehicle_type or vehicle.vehicle_type, number_of_passengers
        )

        await self.ledger.reserve(vehicle_id, number_of_passengers)

        now = self.clock()
        booking = Booking(
            vehicle_id=vehicle_id,
            passenger_id=passenger_id,
            number_of_passengers=number_of_passengers,
            status=BookingStatus.PENDING,
            fare=fare,
            reservation_expires_at=now + self.timeout,
            is_expired=False,
            pickup=pickup,
            dropoff=dropoff,
            passenger_name=passenger_name,
            phone_number=phone_number,
            email=email,
            notes=notes,
            payment_method=PaymentMethod(payment_method),
            created_at=now,
        )
        try:
            created = await self.bookings.create(booking)
        except Exception:
            logger.error(
                "Persisting booking on vehicle %s failed; releasing %d seat(s)",
                vehicle_id,
                number_of_passengers,
            )
            await self.ledger.release(vehicle_id, number_of_passengers)
            raise

        logger.info(
            "Booking %s: %d seat(s) on vehicle %s, fare %.2f",
            created.id,
            number_of_passengers,
            vehicle_id,
            fare,
        )
        return created

    async def cancel_booking(self, booking_id: str, requester_id: str) -> Booking:
        booking, previous = await self._transition(
            booking_id, BookingStatus.CANCELLED, requester_id=requester_id
        )
        if previous not in SEAT_HOLDING_STATUSES:
            return booking

        try:
            await self.ledger.release(booking.vehicle_id, booking.number_of_passengers)
        except Exception:
            logger.exception(
                "Releasing seats for cancelled booking %s failed; restoring %s",
                booking_id,
                previous.value,
            )
            await self.bookings.update(
                booking_id, {"status": previous}, expected_status=BookingStatus.CANCELLED
            )
            raise

        logger.info(
            "Booking %s cancelled; released %d seat(s) on vehicle %s",
            booking_id,
            booking.number_of_passengers,
            booking.vehicle_id,
        )
        return booking

    async def confirm_booking(self, booking_id: str) -> Booking:
        booking = await self.get_booking(booking_id)
        if booking.status == BookingStatus.EXPIRED or booking.is_stale(self.clock()):
            await self.expire_stale_bookings(booking.vehicle_id)
            raise BookingExpiredError(f"Booking {booking_id} has expired")

        booking, _ = await self._transition(booking_id, BookingStatus.CONFIRMED)
        return booking

    async def complete_booking(self, booking_id: str) -> Booking:
        """Trip finished.  Seat counters are left to the driver / next trip."""
        booking, _ = await self._transition(booking_id, BookingStatus.COMPLETED)
        return booking

    async def expire_stale_bookings(self, vehicle_id: str) -> int:
        """Expire overdue pending bookings and release their seats in one update."""
        now = self.clock()
        pending = await self.bookings.query(vehicle_id, BookingStatus.PENDING)

        expired: list[Booking] = []
        for booking in pending:
            if not booking.is_stale(now):
                continue
            won = await self.bookings.update(
                booking.id,
                {"status": BookingStatus.EXPIRED, "is_expired": True},
                expected_status=BookingStatus.PENDING,
            )
            if won:
                expired.append(booking)

        seats = sum(b.number_of_passengers for b in expired)
        if seats:
            try:
                await self.ledger.release(vehicle_id, seats)
            except Exception:
                logger.exception(
                    "Releasing %d seat(s) on vehicle %s failed; restoring %d booking(s) to pending",
                    seats,
                    vehicle_id,
                    len(expired),
                )
                for booking in expired:
                    await self.bookings.update(
                        booking.id,
                        {"status": BookingStatus.PENDING, "is_expired": False},
                        expected_status=BookingStatus.EXPIRED,
                    )
                raise
            logger.info(
                "Expired %d booking(s) on vehicle %s, released %d seat(s)",
                len(expired),
                vehicle_id,
                seats,
            )
        return len(expired)

    # ── Internals ─────────────────────────────────────────────────────

    def _quote(
        self,
        pickup: Location,
        dropoff: Location,
        vehicle_type: Union[str, VehicleType],
        passengers: int,
    ) -> float:
        try:
            return self.fares.calculate_fare_from_locations(
                pickup, dropoff, vehicle_type, passengers
            )
        except Exception as exc:
            logger.warning("Fare calculation failed (%s); using fare 0", exc)
            return 0.0

    async def _transition(
        self,
        booking_id: str,
        new_status: BookingStatus,
        *,
        requester_id: Optional[str] = None,
    ) -> tuple[Booking, BookingStatus]:
        """
        Conditionally move a booking to *new_status*.

        Returns the updated booking and the status it left.  The write only
        lands if the status is still the one we read; otherwise re-read and
        re-validate, bounded by the ledger's retry budget.
        """
        for _ in range(self.ledger.max_retries + 1):
            booking = await self.bookings.get(booking_id)
            if booking is None or (
                requester_id is not None and booking.passenger_id != requester_id
            ):
                raise NotFoundError(f"Booking {booking_id} not found")
            if (
                new_status == BookingStatus.CANCELLED
                and booking.status == BookingStatus.CANCELLED
            ):
                raise AlreadyCancelledError(f"Booking {booking_id} already cancelled")

            previous = booking.status
            booking.transition_to(new_status)
            if await self.bookings.update(
                booking_id,
                {"status": booking.status, "is_expired": booking.is_expired},
                expected_status=previous,
            ):
                return booking, previous

        raise ConflictError(f"Booking {booking_id} kept changing; try again")
