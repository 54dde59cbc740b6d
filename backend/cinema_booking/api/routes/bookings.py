"""
Booking endpoints with concurrency-safe seat reservation.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from cinema_booking.db.session import get_db
from cinema_booking.schemas.booking import BookingCreate, BookingResponse
from cinema_booking.services.booking_service import (
    create_booking,
    cancel_booking,
    get_user_booking,
    get_user_bookings,
)
from cinema_booking.services.cache_service import invalidate_showtime_cache
from cinema_booking.core.security import get_current_user_id

router = APIRouter(prefix="/bookings", tags=["Bookings"])


@router.post("/", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def create_booking_endpoint(
    booking_data: BookingCreate,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """
    Book specific seats for a showtime.

    Bookings for the same showtime are serialized, so a seat can never be
    sold twice. Answers 409 if a seat is taken or capacity is short, and
    503 with Retry-After if the showtime stayed busy past the lock timeout.
    """
    booking = await create_booking(
        db,
        showtime_id=booking_data.showtime_id,
        user_id=user_id,
        seats=booking_data.seats,
        total_amount=booking_data.total_amount,
    )
    # Listings carry available_seats
    await invalidate_showtime_cache()
    return booking


@router.get("/", response_model=list[BookingResponse])
async def list_user_bookings(
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Get all bookings for the authenticated user, active and cancelled."""
    return await get_user_bookings(db, user_id)


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking_endpoint(
    booking_id: str,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Get one of the authenticated user's bookings."""
    return await get_user_booking(db, booking_id, user_id)


@router.delete("/{booking_id}", response_model=BookingResponse)
async def cancel_booking_endpoint(
    booking_id: str,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Cancel a booking and release its seats back to the showtime."""
    booking = await cancel_booking(db, booking_id, user_id)
    await invalidate_showtime_cache()
    return booking
