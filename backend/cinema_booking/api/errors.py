"""
Maps booking engine errors to JSON responses.
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from cinema_booking.core.exceptions import BookingServiceError, BusyError
from cinema_booking.core.logging import get_logger

logger = get_logger(__name__)


async def booking_error_handler(request: Request, exc: BookingServiceError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("request_error", code=exc.code, message=exc.message)

    headers = {}
    if isinstance(exc, BusyError):
        headers["Retry-After"] = str(exc.retry_after)

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "error": {
                "code": exc.code,
                "message": exc.message,
                "details": exc.details,
            },
        },
        headers=headers,
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(BookingServiceError, booking_error_handler)
