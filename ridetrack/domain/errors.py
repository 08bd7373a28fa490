"""
Domain errors.

Every error carries a machine-readable ``code`` so the API layer can tell
the caller *why* a booking was rejected ("not enough seats", "vehicle
offline", ...) instead of returning a generic failure.
"""


class SeatBookingError(Exception):
    code = "seat_booking_error"


class NotFoundError(SeatBookingError):
    """Referenced vehicle or booking does not exist."""

    code = "not_found"


class VehicleOfflineError(SeatBookingError):
    code = "vehicle_offline"


class InsufficientCapacityError(SeatBookingError):
    """Not enough free seats at commit time."""

    code = "insufficient_capacity"

    def __init__(self, requested: int, available: int):
        self.requested = requested
        self.available = available
        super().__init__(
            f"Not enough seats available. Requested {requested}, "
            f"only {available} left."
        )


class CapacityExceededError(SeatBookingError):
    """A seat counter change would push occupancy past capacity."""

    code = "capacity_exceeded"


class AlreadyCancelledError(SeatBookingError):
    code = "already_cancelled"


class InvalidStateTransition(SeatBookingError):
    """Raised when a booking status change violates the state machine."""

    code = "invalid_state_transition"


class BookingExpiredError(InvalidStateTransition):
    """The reservation window closed before the booking was confirmed."""

    code = "booking_expired"


class ConflictError(SeatBookingError):
    """An atomic update kept losing races and ran out of retries."""

    code = "conflict"


class InvalidVehicleType(SeatBookingError, ValueError):
    code = "invalid_vehicle_type"
