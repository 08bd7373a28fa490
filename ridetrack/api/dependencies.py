"""FastAPI dependency injection helpers."""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ridetrack.domain.errors import BookingExpiredError
from ridetrack.domain.reservations import ReservationManager
from ridetrack.infrastructure.database import async_session_factory
from ridetrack.infrastructure.wiring import reservation_manager


async def get_db() -> AsyncSession:  # type: ignore[misc]
    """
    Yield an async DB session; commit on success, rollback on error.

    ``BookingExpiredError`` is the exception: the sweep that detected the
    expiry has already moved the booking to ``expired`` and released its
    seats, and those writes must land even though the request is rejected.
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except BookingExpiredError:
            await session.commit()
            raise
        except Exception:
            await session.rollback()
            raise


async def get_reservations(
    db: AsyncSession = Depends(get_db),
) -> ReservationManager:
    """One manager per request, sharing the request's transaction."""
    return reservation_manager(db)
