"""
Typed booking errors.

Each error is an HTTPException subclass so FastAPI renders it as
``{"detail": reason}`` with the matching status code, while services and
tests can still catch the specific kind.
"""

from fastapi import HTTPException, status


class BookingError(HTTPException):
    """Base class for every business-rule rejection raised by the core."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    kind = "error"

    def __init__(self, detail: str):
        super().__init__(status_code=type(self).status_code, detail=detail)


class NotFoundError(BookingError):
    """A referenced hotel, room, user, room type, hold or reservation does not exist."""

    status_code = status.HTTP_404_NOT_FOUND
    kind = "not_found"


class ConflictError(BookingError):
    """Overlap, duplicate cancellation or illegal state transition."""

    status_code = status.HTTP_409_CONFLICT
    kind = "conflict"


class InvalidInputError(BookingError):
    """Malformed date range, past dates, capacity exceeded, expiry in the past."""

    status_code = status.HTTP_400_BAD_REQUEST
    kind = "invalid"


class UnavailableError(BookingError):
    """Room gate could not be acquired in time, or storage is down."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    kind = "unavailable"
