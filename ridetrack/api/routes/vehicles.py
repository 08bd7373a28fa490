"""
Vehicle endpoints
=================

GET   /api/v1/vehicles/nearest?lat=&lng=        -- closest active vehicle
GET   /api/v1/vehicles/{vehicle_id}/seats       -- live seat availability
POST  /api/v1/vehicles/{vehicle_id}/offline-count -- driver adds / removes a walk-up
PATCH /api/v1/vehicles/{vehicle_id}/active      -- driver goes online / offline
POST  /api/v1/vehicles/{vehicle_id}/location    -- location-update feed
GET   /api/v1/vehicles/{vehicle_id}/eta?lat=&lng= -- ETA to a pickup point
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from ridetrack.api.dependencies import get_reservations
from ridetrack.api.middleware import limiter
from ridetrack.api.schemas import (
    ActiveStatusRequest,
    EtaResponse,
    LocationIn,
    LocationOut,
    NearestVehicleResponse,
    OfflineCountRequest,
    SeatsResponse,
)
from ridetrack.config import settings
from ridetrack.domain.distance import check_proximity, find_nearest_vehicle
from ridetrack.domain.entities import Location, VehicleCapacity
from ridetrack.domain.eta import calculate_eta, format_distance, format_eta, format_time_ago
from ridetrack.domain.reservations import ReservationManager

router = APIRouter(prefix="/vehicles", tags=["vehicles"])


def _seats(vehicle: VehicleCapacity, now) -> SeatsResponse:
    return SeatsResponse(
        vehicle_id=vehicle.id,
        capacity=vehicle.capacity,
        online_booked_seats=vehicle.online_booked_seats,
        offline_occupied_seats=vehicle.offline_occupied_seats,
        available_seats=vehicle.available_seats,
        is_active=vehicle.is_active,
        last_seat_update=vehicle.last_seat_update,
        last_updated_ago=(
            format_time_ago(vehicle.last_seat_update, now)
            if vehicle.last_seat_update
            else None
        ),
    )


@router.get(
    "/nearest",
    response_model=NearestVehicleResponse,
    summary="Find the nearest active vehicle",
)
@limiter.limit("100/minute")
async def nearest_vehicle(
    request: Request,
    lat: float = Query(..., ge=-90, le=90),
    lng: float = Query(..., ge=-180, le=180),
    reservations: ReservationManager = Depends(get_reservations),
):
    vehicles = await reservations.ledger.store.active_locations()
    nearest = find_nearest_vehicle(Location(lat, lng), vehicles)
    if nearest is None:
        raise HTTPException(status_code=404, detail="No active vehicles")
    return NearestVehicleResponse(vehicle_id=nearest[0], distance_km=round(nearest[1], 3))


@router.get(
    "/{vehicle_id}/seats",
    response_model=SeatsResponse,
    summary="Seat availability (expires stale reservations first)",
)
@limiter.limit("100/minute")
async def get_seats(
    request: Request,
    vehicle_id: str,
    reservations: ReservationManager = Depends(get_reservations),
):
    vehicle = await reservations.vehicle_seats(vehicle_id)
    return _seats(vehicle, reservations.clock())


@router.post(
    "/{vehicle_id}/offline-count",
    response_model=SeatsResponse,
    summary="Add or remove a walk-up passenger",
    description=(
        "``add`` is rejected with ``capacity_exceeded`` when the vehicle is "
        "full; ``remove`` at zero is a no-op."
    ),
)
@limiter.limit("100/minute")
async def update_offline_count(
    request: Request,
    vehicle_id: str,
    body: OfflineCountRequest,
    reservations: ReservationManager = Depends(get_reservations),
):
    ledger = reservations.ledger
    if body.action == "add":
        vehicle = await ledger.add_offline_passenger(vehicle_id)
    else:
        vehicle = await ledger.remove_offline_passenger(vehicle_id)
    return _seats(vehicle, ledger.clock())


@router.patch(
    "/{vehicle_id}/active",
    response_model=SeatsResponse,
    summary="Take a vehicle online or offline",
)
@limiter.limit("100/minute")
async def set_active(
    request: Request,
    vehicle_id: str,
    body: ActiveStatusRequest,
    reservations: ReservationManager = Depends(get_reservations),
):
    ledger = reservations.ledger
    await ledger.store.set_active(vehicle_id, body.is_active)
    return _seats(await ledger.get(vehicle_id), ledger.clock())


@router.post(
    "/{vehicle_id}/location",
    response_model=LocationOut,
    summary="Report the vehicle's current position",
)
@limiter.limit("600/minute")
async def update_location(
    request: Request,
    vehicle_id: str,
    body: LocationIn,
    reservations: ReservationManager = Depends(get_reservations),
):
    location = body.to_domain()
    await reservations.ledger.store.update_location(vehicle_id, location)
    return location


@router.get(
    "/{vehicle_id}/eta",
    response_model=EtaResponse,
    summary="ETA and proximity to a pickup point",
)
@limiter.limit("100/minute")
async def get_eta(
    request: Request,
    vehicle_id: str,
    lat: float = Query(..., ge=-90, le=90),
    lng: float = Query(..., ge=-180, le=180),
    reservations: ReservationManager = Depends(get_reservations),
):
    await reservations.ledger.get(vehicle_id)
    position = await reservations.ledger.store.get_location(vehicle_id)
    pickup = Location(lat, lng)

    eta = calculate_eta(position, pickup, settings.average_speed_kmh)
    return EtaResponse(
        vehicle_id=vehicle_id,
        eta_minutes=eta,
        eta_text=format_eta(eta),
        distance_text=format_distance(position, pickup),
        proximity=check_proximity(position, pickup),
    )
