"""
Pydantic schemas for seat identity and seat maps.
"""

from enum import Enum

from pydantic import BaseModel, Field


class SeatStatus(str, Enum):
    AVAILABLE = "AVAILABLE"
    SELECTED = "SELECTED"  # reserved for cart holds, never produced by the engine
    BOOKED = "BOOKED"


class SeatRequest(BaseModel):
    row: str = Field(..., pattern=r"^[A-Z]$")
    number: int = Field(..., gt=0)

    @property
    def identifier(self) -> str:
        return f"{self.row}{self.number}"


class Seat(BaseModel):
    row: str
    number: int
    status: SeatStatus = SeatStatus.AVAILABLE

    @property
    def identifier(self) -> str:
        return f"{self.row}{self.number}"


class TheatreInfo(BaseModel):
    id: str
    name: str
    location: str
    rows: int
    seats_per_row: int
    total_seats: int

    model_config = {"from_attributes": True}


class SeatMapResponse(BaseModel):
    showtime_id: str
    theatre: TheatreInfo
    available_seats: int
    seats: list[Seat]
