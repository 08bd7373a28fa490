"""Builds the ledger / reservation manager over a database session."""

from sqlalchemy.ext.asyncio import AsyncSession

from .repositories import BookingRepository, VehicleRepository
from ridetrack.config import settings
from ridetrack.domain.ledger import CapacityLedger
from ridetrack.domain.pricing import FareCalculator
from ridetrack.domain.reservations import ReservationManager


def fare_calculator() -> FareCalculator:
    return FareCalculator(
        rate_per_km=settings.fare_per_km,
        minimum_fare=settings.minimum_fare,
        rounding=settings.fare_rounding,
    )


def reservation_manager(session: AsyncSession) -> ReservationManager:
    ledger = CapacityLedger(
        VehicleRepository(session),
        max_retries=settings.atomic_update_max_retries,
        backoff_seconds=settings.atomic_update_backoff_seconds,
    )
    return ReservationManager(
        ledger,
        BookingRepository(session),
        fare_calculator(),
        timeout_minutes=settings.reservation_timeout_minutes,
        sweep_before_booking=settings.sweep_before_booking,
    )
