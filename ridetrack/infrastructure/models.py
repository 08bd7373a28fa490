"""
SQLAlchemy ORM models  (maps to PostgreSQL).

Tables
------
* ``vehicles``  -- seat counters, live position and the optimistic
  concurrency ``version`` column
* ``bookings``  -- seat reservations against a vehicle

Indexes
-------
* **B-Tree** on ``(vehicle_id, status)`` for the expiry sweep and on
  ``passenger_id`` for passenger look-ups; ``is_active`` for the
  nearest-vehicle search.
"""

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
)

from .database import Base
from ridetrack.domain.enums import BookingStatus, PaymentMethod, VehicleType


def _enum(enum_cls, name: str) -> Enum:
    # Persist the lowercase values ("pending"), not the member names.
    return Enum(
        enum_cls, name=name, values_callable=lambda e: [m.value for m in e]
    )


class VehicleModel(Base):
    __tablename__ = "vehicles"

    id = Column(String(64), primary_key=True)
    name = Column(String(120), nullable=False, default="")
    vehicle_type = Column(
        _enum(VehicleType, "vehicletype"), default=VehicleType.BUS, nullable=False
    )
    capacity = Column(Integer, nullable=False)
    online_booked_seats = Column(Integer, default=0, nullable=False)
    offline_occupied_seats = Column(Integer, default=0, nullable=False)
    available_seats = Column(Integer, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    last_seat_update = Column(DateTime(timezone=True), nullable=True)
    version = Column(Integer, default=0, nullable=False)

    # Live position from the location feed; deliberately not versioned
    current_lat = Column(Float, nullable=True)
    current_lng = Column(Float, nullable=True)
    last_location_update = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        CheckConstraint(
            "online_booked_seats >= 0 AND offline_occupied_seats >= 0 "
            "AND online_booked_seats + offline_occupied_seats <= capacity",
            name="ck_vehicles_seat_bounds",
        ),
        Index("idx_vehicles_active", "is_active"),
    )


class BookingModel(Base):
    __tablename__ = "bookings"

    id = Column(String(36), primary_key=True)
    vehicle_id = Column(String(64), ForeignKey("vehicles.id"), nullable=False)
    passenger_id = Column(String(128), nullable=False)
    passenger_name = Column(String(120), nullable=False, default="")
    phone_number = Column(String(32), nullable=False, default="")
    email = Column(String(255), nullable=True)

    number_of_passengers = Column(Integer, default=1, nullable=False)
    pickup_lat = Column(Float, nullable=False)
    pickup_lng = Column(Float, nullable=False)
    dropoff_lat = Column(Float, nullable=False)
    dropoff_lng = Column(Float, nullable=False)

    fare = Column(Float, default=0.0, nullable=False)
    status = Column(
        _enum(BookingStatus, "bookingstatus"),
        default=BookingStatus.PENDING,
        nullable=False,
    )
    payment_method = Column(
        _enum(PaymentMethod, "paymentmethod"), default=PaymentMethod.CASH, nullable=False
    )
    notes = Column(Text, nullable=True)
    reservation_expires_at = Column(DateTime(timezone=True), nullable=False)
    is_expired = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        Index("idx_bookings_vehicle_status", "vehicle_id", "status"),
        Index("idx_bookings_passenger", "passenger_id"),
    )
