"""
Booking endpoints
=================

POST  /api/v1/bookings                   -- reserve seats (201, status "pending")
POST  /api/v1/bookings/calculate-fare    -- fare quote, no reservation
GET   /api/v1/bookings/{booking_id}      -- booking status and fare
PATCH /api/v1/bookings/{booking_id}/cancel   -- passenger cancels, seats released
PATCH /api/v1/bookings/{booking_id}/confirm  -- payment / driver acknowledgement
PATCH /api/v1/bookings/{booking_id}/complete -- trip finished

Domain errors are translated to HTTP responses by the handler registered
in ``ridetrack.api.app``.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from ridetrack.api.dependencies import get_reservations
from ridetrack.api.middleware import limiter
from ridetrack.api.schemas import (
    BookingCreateRequest,
    BookingResponse,
    CancelRequest,
    ErrorResponse,
    FareQuoteRequest,
    FareQuoteResponse,
)
from ridetrack.config import settings
from ridetrack.domain.distance import haversine_m, is_within_service_area
from ridetrack.domain.entities import Location
from ridetrack.domain.reservations import ReservationManager
from ridetrack.infrastructure.wiring import fare_calculator

router = APIRouter(prefix="/bookings", tags=["bookings"])

_REJECTIONS = {
    404: {"model": ErrorResponse, "description": "Vehicle or booking not found"},
    409: {"model": ErrorResponse, "description": "Rejected: see ``code``"},
    503: {"model": ErrorResponse, "description": "Concurrent update, retry"},
}


@router.post(
    "",
    status_code=201,
    response_model=BookingResponse,
    summary="Reserve seats on a vehicle",
    description=(
        "Atomically checks availability and reserves the seats.  The booking "
        "stays ``pending`` for the reservation window and is expired by the "
        "sweeper if not confirmed."
    ),
    responses=_REJECTIONS,
)
@limiter.limit("100/minute")
async def create_booking(
    request: Request,
    body: BookingCreateRequest,
    reservations: ReservationManager = Depends(get_reservations),
):
    return await reservations.create_booking(
        body.vehicle_id,
        body.passenger_id,
        body.number_of_passengers,
        body.pickup_location.to_domain(),
        body.dropoff_location.to_domain(),
        vehicle_type=body.vehicle_type,
        passenger_name=body.passenger_name,
        phone_number=body.phone_number,
        email=body.email,
        notes=body.notes,
        payment_method=body.payment_method,
    )


@router.post(
    "/calculate-fare",
    response_model=FareQuoteResponse,
    summary="Quote a fare without reserving",
)
@limiter.limit("100/minute")
async def calculate_fare(request: Request, body: FareQuoteRequest):
    pickup = body.pickup_location.to_domain()
    dropoff = body.dropoff_location.to_domain()
    center = Location(settings.service_center_lat, settings.service_center_lng)

    return FareQuoteResponse(
        fare=fare_calculator().calculate_fare_from_locations(
            pickup, dropoff, body.vehicle_type, body.number_of_passengers
        ),
        distance_km=round(haversine_m(pickup, dropoff) / 1000, 3),
        vehicle_type=body.vehicle_type,
        within_service_area=(
            is_within_service_area(pickup, center, settings.service_radius_km)
            and is_within_service_area(dropoff, center, settings.service_radius_km)
        ),
    )


@router.get(
    "/{booking_id}",
    response_model=BookingResponse,
    summary="Get booking status and fare",
    responses={404: _REJECTIONS[404]},
)
@limiter.limit("100/minute")
async def get_booking(
    request: Request,
    booking_id: str,
    reservations: ReservationManager = Depends(get_reservations),
):
    return await reservations.get_booking(booking_id)


@router.patch(
    "/{booking_id}/cancel",
    response_model=BookingResponse,
    summary="Cancel a booking",
    description=(
        "Transitions a pending or confirmed booking to cancelled and releases "
        "its seats.  Cancelling twice is rejected with ``already_cancelled``."
    ),
    responses=_REJECTIONS,
)
@limiter.limit("100/minute")
async def cancel_booking(
    request: Request,
    booking_id: str,
    body: CancelRequest,
    reservations: ReservationManager = Depends(get_reservations),
):
    return await reservations.cancel_booking(booking_id, body.requester_id)


@router.patch(
    "/{booking_id}/confirm",
    response_model=BookingResponse,
    summary="Confirm a pending booking",
    responses=_REJECTIONS,
)
@limiter.limit("100/minute")
async def confirm_booking(
    request: Request,
    booking_id: str,
    reservations: ReservationManager = Depends(get_reservations),
):
    return await reservations.confirm_booking(booking_id)


@router.patch(
    "/{booking_id}/complete",
    response_model=BookingResponse,
    summary="Mark a confirmed booking as completed",
    responses=_REJECTIONS,
)
@limiter.limit("100/minute")
async def complete_booking(
    request: Request,
    booking_id: str,
    reservations: ReservationManager = Depends(get_reservations),
):
    return await reservations.complete_booking(booking_id)
