"""
Catalog service for theatres and showtimes.

Scheduling a showtime is the only place a ShowtimeInventory is created.
"""

import uuid
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cinema_booking.models.theatre import Theatre
from cinema_booking.models.showtime import Showtime
from cinema_booking.models.inventory import ShowtimeInventory
from cinema_booking.schemas.showtime import TheatreCreate, ShowtimeCreate, ShowtimeResponse
from cinema_booking.core.exceptions import NotFoundError
from cinema_booking.core.logging import get_logger

logger = get_logger(__name__)


async def create_theatre(db: AsyncSession, theatre_data: TheatreCreate) -> Theatre:
    theatre = Theatre(
        id=str(uuid.uuid4()),
        name=theatre_data.name,
        location=theatre_data.location,
        rows=theatre_data.rows,
        seats_per_row=theatre_data.seats_per_row,
        total_seats=theatre_data.rows * theatre_data.seats_per_row,
    )
    db.add(theatre)
    await db.commit()

    logger.info("theatre_created", theatre_id=theatre.id, seats=theatre.total_seats)
    return theatre


async def get_theatre(db: AsyncSession, theatre_id: str) -> Theatre:
    result = await db.execute(select(Theatre).where(Theatre.id == theatre_id))
    theatre = result.scalar_one_or_none()

    if not theatre:
        raise NotFoundError("Theatre", theatre_id)
    return theatre


async def list_theatres(db: AsyncSession) -> list[Theatre]:
    result = await db.execute(select(Theatre).order_by(Theatre.name.asc(), Theatre.created_at.asc()))
    return list(result.scalars().all())


async def create_showtime(db: AsyncSession, showtime_data: ShowtimeCreate) -> Showtime:
    """Schedule a showtime with every seat of its theatre available."""
    theatre = await get_theatre(db, showtime_data.theatre_id)

    showtime = Showtime(
        id=str(uuid.uuid4()),
        movie_id=showtime_data.movie_id,
        theatre_id=theatre.id,
        show_date=showtime_data.show_date,
        price=showtime_data.price,
    )
    db.add(showtime)
    await db.flush()

    db.add(
        ShowtimeInventory(
            showtime_id=showtime.id,
            theatre_id=theatre.id,
            total_capacity=theatre.total_seats,
            available_count=theatre.total_seats,
            version=1,
        )
    )
    await db.commit()

    logger.info(
        "showtime_created",
        showtime_id=showtime.id,
        movie_id=showtime.movie_id,
        theatre_id=theatre.id,
        capacity=theatre.total_seats,
    )
    return await get_showtime(db, showtime.id)


async def get_showtime(db: AsyncSession, showtime_id: str) -> Showtime:
    """Get a single showtime with its theatre and current inventory."""
    result = await db.execute(
        select(Showtime)
        .where(Showtime.id == showtime_id)
        .execution_options(populate_existing=True)
    )
    showtime = result.unique().scalar_one_or_none()

    if not showtime:
        raise NotFoundError("Showtime", showtime_id)
    return showtime


async def list_showtimes(
    db: AsyncSession,
    movie_id: Optional[str] = None,
    theatre_id: Optional[str] = None,
) -> list[Showtime]:
    """List showtimes, optionally filtered by movie and/or theatre, soonest first."""
    query = select(Showtime)
    if movie_id is not None:
        query = query.where(Showtime.movie_id == movie_id)
    if theatre_id is not None:
        query = query.where(Showtime.theatre_id == theatre_id)

    result = await db.execute(
        query.order_by(Showtime.show_date.asc()).execution_options(populate_existing=True)
    )
    return list(result.unique().scalars().all())


def to_showtime_response(showtime: Showtime) -> ShowtimeResponse:
    inventory = showtime.inventory
    return ShowtimeResponse(
        id=showtime.id,
        movie_id=showtime.movie_id,
        theatre_id=showtime.theatre_id,
        show_date=showtime.show_date,
        price=showtime.price,
        total_capacity=inventory.total_capacity,
        available_seats=inventory.available_count,
        created_at=showtime.created_at,
    )
