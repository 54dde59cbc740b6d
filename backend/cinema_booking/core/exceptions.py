"""
Booking engine errors.

Every error carries a machine-readable code and the HTTP status the API
layer answers with. Only BusyError is safe to retry.
"""

from typing import Any, Dict, Optional


class BookingServiceError(Exception):
    """Base exception for the booking service"""

    def __init__(
        self,
        message: str,
        code: str,
        status_code: int = 400,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class NotFoundError(BookingServiceError):
    def __init__(self, resource: str, identifier: Any = None):
        message = f"{resource} not found"
        if identifier is not None:
            message = f"{resource} {identifier} not found"
        super().__init__(
            message=message,
            code="NOT_FOUND",
            status_code=404,
            details={"resource": resource},
        )


class InvalidInputError(BookingServiceError):
    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(
            message=message,
            code="INVALID_INPUT",
            status_code=400,
            details={"field": field} if field else {},
        )


class InsufficientCapacityError(BookingServiceError):
    def __init__(self, requested: int, available: int):
        super().__init__(
            message=f"Not enough available seats. Requested: {requested}, Available: {available}",
            code="INSUFFICIENT_CAPACITY",
            status_code=409,
            details={"requested": requested, "available": available},
        )


class SeatConflictError(BookingServiceError):
    """A requested seat is already held by an active booking."""

    def __init__(self, seat: str):
        self.seat = seat
        super().__init__(
            message=f"Seat {seat} is already booked",
            code="SEAT_CONFLICT",
            status_code=409,
            details={"seat": seat},
        )


class ForbiddenError(BookingServiceError):
    def __init__(self, message: str = "You can only cancel your own bookings"):
        super().__init__(message=message, code="FORBIDDEN", status_code=403)


class AlreadyCancelledError(BookingServiceError):
    def __init__(self, booking_id: str):
        super().__init__(
            message="Booking is already cancelled",
            code="ALREADY_CANCELLED",
            status_code=400,
            details={"booking_id": booking_id},
        )


class InvalidAdjustmentError(BookingServiceError):
    """Inventory change would leave available_count outside [0, total_capacity]."""

    def __init__(self, message: str, showtime_id: Optional[str] = None):
        super().__init__(
            message=message,
            code="INVALID_ADJUSTMENT",
            status_code=500,
            details={"showtime_id": showtime_id} if showtime_id else {},
        )


class CapacityUpdateFailedError(BookingServiceError):
    def __init__(self, reason: str):
        super().__init__(
            message=f"Failed to update seat availability: {reason}",
            code="CAPACITY_UPDATE_FAILED",
            status_code=500,
        )


class BusyError(BookingServiceError):
    """Showtime lock could not be acquired in time. The caller may retry."""

    def __init__(self, showtime_id: str, retry_after: int = 1):
        self.retry_after = retry_after
        super().__init__(
            message="Showtime is busy, please retry",
            code="BUSY",
            status_code=503,
            details={"showtime_id": showtime_id, "retry_after": retry_after},
        )
