"""
FastAPI application factory.

* Registers routes for bookings, vehicles and admin.
* Starts / stops the background expiry sweeper via lifespan events.
* Translates domain errors into ``{"detail", "code"}`` responses.
* Applies rate-limiting middleware.
* Swagger / OpenAPI UI available at ``/docs``.
"""

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from ridetrack.api.middleware import limiter
from ridetrack.api.routes import admin, bookings, vehicles
from ridetrack.domain.errors import (
    ConflictError,
    InvalidVehicleType,
    NotFoundError,
    SeatBookingError,
)
from ridetrack.infrastructure.database import dispose_engine
from ridetrack.infrastructure.redis_client import close_redis
from ridetrack.workers import expiry_sweeper as _sweeper

logging.basicConfig(level=logging.INFO)

logger = logging.getLogger(__name__)

# Everything else (offline vehicle, no seats, already cancelled, ...) is 409.
_ERROR_STATUS = {
    NotFoundError: 404,
    InvalidVehicleType: 422,
    ConflictError: 503,
}


def error_status(exc: SeatBookingError) -> int:
    for error_cls, status in _ERROR_STATUS.items():
        if isinstance(exc, error_cls):
            return status
    return 409


async def seat_booking_error_handler(request: Request, exc: SeatBookingError):
    status = error_status(exc)
    if status == 503:
        logger.warning("%s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status,
        content={"detail": str(exc), "code": exc.code},
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start the expiry sweeper on startup; stop it and close pools on shutdown."""
    await _sweeper.start_expiry_loop()
    yield
    await _sweeper.stop_expiry_loop()
    await close_redis()
    await dispose_engine()


def create_app() -> FastAPI:
    app = FastAPI(
        title="RideTrack Seat Reservations API",
        description=(
            "Seat reservations for tracked buses and shared rides.  Bookings "
            "reserve seats atomically, unconfirmed reservations expire after "
            "a timeout, and drivers report walk-up passengers against the "
            "same capacity counter."
        ),
        version="1.0.0",
        lifespan=lifespan,
    )

    # Rate limiter
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # Domain errors
    app.add_exception_handler(SeatBookingError, seat_booking_error_handler)

    # Routers
    app.include_router(bookings.router, prefix="/api/v1")
    app.include_router(vehicles.router, prefix="/api/v1")
    app.include_router(admin.router, prefix="/api/v1")

    return app
