

class CinemaBookingError(Exception):
    """
    Base exception for all domain-level errors
    inside the cinema booking core.
    """

    kind = "internal"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(CinemaBookingError):
    """Raised when a request is malformed or incomplete."""

    kind = "validation"


class NotFoundError(CinemaBookingError):
    """Raised when a referenced entity does not exist."""

    kind = "not_found"


class ConflictError(CinemaBookingError):
    """Raised when a write collides with existing data."""

    kind = "conflict"


class SeatConflictError(ConflictError):
    """Raised when a requested seat is already held by an active booking."""

    def __init__(self, seat_label: str):
        self.seat_label = seat_label
        super().__init__(f"seat {seat_label} is already booked")


class InvalidStateError(CinemaBookingError):
    """Raised when an entity is not in a state that allows the operation."""

    kind = "invalid_state"


class InvalidStateTransitionError(InvalidStateError):
    """
    Raised when an illegal booking state transition is attempted.
    """

    def __init__(self, from_state: str, to_state: str):
        self.from_state = from_state
        self.to_state = to_state

        message = (
            f"booking status is {from_state}, "
            f"cannot move to {to_state}"
        )
        super().__init__(message)


class UnauthorizedError(CinemaBookingError):
    """Raised when the caller does not own the resource it is acting on."""

    kind = "unauthorized"


class InternalError(CinemaBookingError):
    """Raised when the store fails underneath an operation."""

    kind = "internal"
