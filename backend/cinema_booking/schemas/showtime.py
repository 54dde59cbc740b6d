"""
Pydantic schemas for theatre and showtime catalog requests/responses.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


class TheatreCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    location: str = Field(..., min_length=1, max_length=255)
    rows: int = Field(..., gt=0, le=26)
    seats_per_row: int = Field(..., gt=0, le=100)


class TheatreResponse(BaseModel):
    id: str
    name: str
    location: str
    rows: int
    seats_per_row: int
    total_seats: int
    created_at: datetime

    model_config = {"from_attributes": True}


class ShowtimeCreate(BaseModel):
    movie_id: str = Field(..., min_length=1, max_length=64)
    theatre_id: str
    show_date: datetime
    price: float = Field(..., gt=0)


class ShowtimeResponse(BaseModel):
    id: str
    movie_id: str
    theatre_id: str
    show_date: datetime
    price: float
    total_capacity: int
    available_seats: int
    created_at: datetime


class ShowtimeListResponse(BaseModel):
    showtimes: list[ShowtimeResponse]
    total: int
    cached: bool = False
