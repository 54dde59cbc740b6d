"""
Showtime endpoints: scheduling, listings (Redis cached) and seat maps.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from cinema_booking.db.session import get_db
from cinema_booking.schemas.seat import SeatMapResponse
from cinema_booking.schemas.showtime import ShowtimeCreate, ShowtimeResponse, ShowtimeListResponse
from cinema_booking.services.showtime_service import (
    create_showtime,
    get_showtime,
    list_showtimes,
    to_showtime_response,
)
from cinema_booking.services.seat_map_service import get_seat_map
from cinema_booking.services.cache_service import (
    get_cached_showtimes,
    set_cached_showtimes,
    invalidate_showtime_cache,
)
from cinema_booking.core.security import get_current_user_id
from cinema_booking.core.logging import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/showtimes", tags=["Showtimes"])


@router.post("/", response_model=ShowtimeResponse, status_code=status.HTTP_201_CREATED)
async def create_showtime_endpoint(
    showtime_data: ShowtimeCreate,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Schedule a showtime. Every seat of the theatre starts available."""
    showtime = await create_showtime(db, showtime_data)
    await invalidate_showtime_cache()
    return to_showtime_response(showtime)


@router.get("/", response_model=ShowtimeListResponse)
async def list_showtimes_endpoint(
    movie_id: Optional[str] = Query(None),
    theatre_id: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    """
    List showtimes, optionally filtered by movie and theatre.
    Cached in Redis; invalidated whenever seats are booked or released.
    """
    cached = await get_cached_showtimes(movie_id, theatre_id)
    if cached:
        logger.info("showtimes_list_cache_hit", movie_id=movie_id, theatre_id=theatre_id)
        cached["cached"] = True
        return ShowtimeListResponse(**cached)

    showtimes = await list_showtimes(db, movie_id=movie_id, theatre_id=theatre_id)

    response_data = {
        "showtimes": [to_showtime_response(s).model_dump() for s in showtimes],
        "total": len(showtimes),
        "cached": False,
    }
    await set_cached_showtimes(movie_id, theatre_id, response_data)

    return ShowtimeListResponse(**response_data)


@router.get("/{showtime_id}", response_model=ShowtimeResponse)
async def get_showtime_endpoint(
    showtime_id: str,
    db: AsyncSession = Depends(get_db),
):
    """Get a single showtime. Not cached (carries the live seat count)."""
    showtime = await get_showtime(db, showtime_id)
    return to_showtime_response(showtime)


@router.get("/{showtime_id}/seats", response_model=SeatMapResponse)
async def get_seat_map_endpoint(
    showtime_id: str,
    db: AsyncSession = Depends(get_db),
):
    """Full seat grid of the showtime with BOOKED/AVAILABLE per seat."""
    return await get_seat_map(db, showtime_id)
