"""Pydantic request / response schemas for the REST API."""

from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field

from ridetrack.domain.entities import Location
from ridetrack.domain.enums import (
    BookingStatus,
    PaymentMethod,
    ProximityLevel,
    VehicleType,
)


# ── Requests ──────────────────────────────────────────────────────────


class LocationIn(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)

    def to_domain(self) -> Location:
        return Location(self.lat, self.lng)


class BookingCreateRequest(BaseModel):
    vehicle_id: str = Field(..., min_length=1, max_length=64)
    passenger_id: str = Field(..., min_length=1, max_length=128)
    passenger_name: str = Field(..., min_length=1, max_length=120)
    phone_number: str = Field(..., min_length=1, max_length=32)
    email: Optional[str] = Field(None, max_length=255)
    pickup_location: LocationIn
    dropoff_location: LocationIn
    number_of_passengers: int = Field(1, ge=1, le=50)
    notes: Optional[str] = Field(None, max_length=500)
    payment_method: PaymentMethod = PaymentMethod.CASH
    vehicle_type: Optional[str] = Field(
        None,
        description="Overrides the vehicle's own type for the fare quote.",
    )


class CancelRequest(BaseModel):
    requester_id: str = Field(..., min_length=1, max_length=128)


class FareQuoteRequest(BaseModel):
    pickup_location: LocationIn
    dropoff_location: LocationIn
    vehicle_type: VehicleType
    number_of_passengers: int = Field(1, ge=1, le=50)


class OfflineCountRequest(BaseModel):
    action: Literal["add", "remove"]


class ActiveStatusRequest(BaseModel):
    is_active: bool


# ── Responses ─────────────────────────────────────────────────────────


class LocationOut(BaseModel):
    latitude: float
    longitude: float

    model_config = {"from_attributes": True}


class BookingResponse(BaseModel):
    id: str
    vehicle_id: str
    passenger_id: str
    passenger_name: str
    number_of_passengers: int
    status: BookingStatus
    fare: float
    reservation_expires_at: Optional[datetime] = None
    is_expired: bool
    pickup: LocationOut
    dropoff: LocationOut
    payment_method: PaymentMethod
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class SeatsResponse(BaseModel):
    vehicle_id: str
    capacity: int
    online_booked_seats: int
    offline_occupied_seats: int
    available_seats: int
    is_active: bool
    last_seat_update: Optional[datetime] = None
    last_updated_ago: Optional[str] = None


class FareQuoteResponse(BaseModel):
    fare: float
    distance_km: float
    vehicle_type: VehicleType
    within_service_area: bool


class EtaResponse(BaseModel):
    vehicle_id: str
    eta_minutes: Optional[int] = None
    eta_text: str
    distance_text: str
    proximity: Optional[ProximityLevel] = None


class NearestVehicleResponse(BaseModel):
    vehicle_id: str
    distance_km: float


class ExpireResponse(BaseModel):
    vehicle_id: str
    expired: int


class HealthResponse(BaseModel):
    status: str = "ok"


class ErrorResponse(BaseModel):
    detail: str
    code: str
