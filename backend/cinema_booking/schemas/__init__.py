from cinema_booking.schemas.seat import Seat, SeatRequest, SeatStatus, SeatMapResponse, TheatreInfo
from cinema_booking.schemas.booking import BookingCreate, BookingResponse
from cinema_booking.schemas.showtime import (
    TheatreCreate, TheatreResponse,
    ShowtimeCreate, ShowtimeResponse, ShowtimeListResponse,
)

__all__ = [
    "Seat", "SeatRequest", "SeatStatus", "SeatMapResponse", "TheatreInfo",
    "BookingCreate", "BookingResponse",
    "TheatreCreate", "TheatreResponse",
    "ShowtimeCreate", "ShowtimeResponse", "ShowtimeListResponse",
]
