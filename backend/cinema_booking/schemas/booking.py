"""
Pydantic schemas for booking-related request/response validation.
"""

from datetime import datetime
from pydantic import BaseModel, Field

from cinema_booking.schemas.seat import Seat, SeatRequest


class BookingCreate(BaseModel):
    showtime_id: str = Field(..., min_length=1)
    seats: list[SeatRequest] = Field(..., min_length=1)
    total_amount: float = Field(..., gt=0)


class BookingResponse(BaseModel):
    id: str
    user_id: str
    showtime_id: str
    seats: list[Seat]
    seat_count: int
    total_amount: float
    status: str
    created_at: datetime

    model_config = {"from_attributes": True}
