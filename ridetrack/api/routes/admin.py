"""
Admin / operations endpoints
============================

POST /api/v1/admin/vehicles/{vehicle_id}/expire -- run the expiry sweep now
GET  /api/v1/admin/health                       -- simple health check
"""

from fastapi import APIRouter, Depends, Request

from ridetrack.api.dependencies import get_reservations
from ridetrack.api.middleware import limiter
from ridetrack.api.schemas import ExpireResponse, HealthResponse
from ridetrack.domain.reservations import ReservationManager

router = APIRouter(prefix="/admin", tags=["admin"])


@router.post(
    "/vehicles/{vehicle_id}/expire",
    response_model=ExpireResponse,
    summary="Expire stale pending bookings on a vehicle",
)
@limiter.limit("100/minute")
async def expire_vehicle_bookings(
    request: Request,
    vehicle_id: str,
    reservations: ReservationManager = Depends(get_reservations),
):
    await reservations.ledger.get(vehicle_id)
    expired = await reservations.expire_stale_bookings(vehicle_id)
    return ExpireResponse(vehicle_id=vehicle_id, expired=expired)


@router.get("/health", response_model=HealthResponse, summary="Health check")
async def health():
    return HealthResponse()
