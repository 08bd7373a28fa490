"""Domain enumerations and state-transition rules."""

import enum


class BookingStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"
    EXPIRED = "expired"


# State machine: maps current status -> set of valid next statuses
BOOKING_TRANSITIONS: dict[BookingStatus, set[BookingStatus]] = {
    BookingStatus.PENDING: {
        BookingStatus.CONFIRMED,
        BookingStatus.CANCELLED,
        BookingStatus.EXPIRED,
    },
    BookingStatus.CONFIRMED: {BookingStatus.CANCELLED, BookingStatus.COMPLETED},
    BookingStatus.CANCELLED: set(),
    BookingStatus.COMPLETED: set(),
    BookingStatus.EXPIRED: set(),
}

# Bookings in these statuses hold seats in ``online_booked_seats``
SEAT_HOLDING_STATUSES = frozenset({BookingStatus.PENDING, BookingStatus.CONFIRMED})


class VehicleType(str, enum.Enum):
    BUS = "bus"
    OTHERS = "others"
    TAXI = "taxi"
    BIKE = "bike"


class PaymentMethod(str, enum.Enum):
    CASH = "cash"
    DIGITAL = "digital"


class ProximityLevel(str, enum.Enum):
    FAR = "far"
    APPROACHING = "approaching"
    NEARBY = "nearby"
    ARRIVED = "arrived"
