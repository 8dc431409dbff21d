import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger("booking_service")


class BookingServiceError(Exception):
    """Base class for every error the booking core reports to callers."""

    code = "booking_error"

    def __init__(self, message: str, status_code: int = status.HTTP_400_BAD_REQUEST) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class ListingNotFoundError(BookingServiceError):
    code = "listing_not_found"

    def __init__(self, listing_id: str) -> None:
        self.listing_id = listing_id
        super().__init__(f"Listing {listing_id} not found.", status.HTTP_404_NOT_FOUND)


class ListingExistsError(BookingServiceError):
    code = "listing_exists"

    def __init__(self, listing_id: str) -> None:
        self.listing_id = listing_id
        super().__init__(f"Listing {listing_id} already exists.", status.HTTP_409_CONFLICT)


class BookingNotFoundError(BookingServiceError):
    code = "booking_not_found"

    def __init__(self, booking_id: str) -> None:
        super().__init__(f"Booking {booking_id} not found.", status.HTTP_404_NOT_FOUND)


class ClientNotFoundError(BookingServiceError):
    code = "client_not_found"

    def __init__(self, client_id: str) -> None:
        super().__init__(f"Client {client_id} not found.", status.HTTP_404_NOT_FOUND)


class InvalidDateRangeError(BookingServiceError):
    code = "invalid_date_range"

    def __init__(self, message: str = "Departure date must be after arrival date.") -> None:
        super().__init__(message, status.HTTP_400_BAD_REQUEST)


class CapacityExceededError(BookingServiceError):
    code = "capacity_exceeded"

    def __init__(self, message: str) -> None:
        super().__init__(message, status.HTTP_400_BAD_REQUEST)


class DateConflictError(BookingServiceError):
    code = "date_conflict"

    def __init__(self, message: str = "This property is not available for the selected dates.") -> None:
        super().__init__(message, status.HTTP_409_CONFLICT)


class WriteConflictError(BookingServiceError):
    """The listing changed between the availability check and the write."""

    code = "write_conflict"

    def __init__(self, listing_id: str) -> None:
        self.listing_id = listing_id
        super().__init__(f"Listing {listing_id} was modified concurrently.", status.HTTP_409_CONFLICT)


class PersistenceError(BookingServiceError):
    code = "persistence_failure"

    def __init__(self, message: str = "The booking store is unavailable.") -> None:
        super().__init__(message, status.HTTP_503_SERVICE_UNAVAILABLE)


async def booking_error_handler(request: Request, exc: Exception) -> JSONResponse:
    error = exc if isinstance(exc, BookingServiceError) else BookingServiceError(str(exc))
    if error.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {error.message}")
    return JSONResponse(
        status_code=error.status_code,
        content={"detail": error.message, "code": error.code},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(BookingServiceError, booking_error_handler)
