"""
Seat map projection (read path).

The grid is derived from the theatre layout and the showtime's seat claims.
It never takes the showtime lock: claims are read with one statement, which
is a consistent snapshot on its own.
"""

import string
from typing import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cinema_booking.models.seat_claim import SeatClaim
from cinema_booking.schemas.seat import Seat, SeatMapResponse, SeatStatus, TheatreInfo
from cinema_booking.services.conflict_detector import SeatKey
from cinema_booking.services.showtime_service import get_showtime
from cinema_booking.core.logging import get_logger

logger = get_logger(__name__)

ROW_LABELS = string.ascii_uppercase


def row_labels(rows: int) -> list[str]:
    if rows < 1 or rows > len(ROW_LABELS):
        raise ValueError(f"Theatre rows must be between 1 and {len(ROW_LABELS)}, got {rows}")
    return list(ROW_LABELS[:rows])


def build_seat_grid(rows: int, seats_per_row: int, committed: Iterable[SeatKey]) -> list[Seat]:
    """Row-major seat grid, BOOKED where a seat is committed, AVAILABLE elsewhere."""
    booked = set(committed)
    grid = []
    for row in row_labels(rows):
        for number in range(1, seats_per_row + 1):
            status = SeatStatus.BOOKED if (row, number) in booked else SeatStatus.AVAILABLE
            grid.append(Seat(row=row, number=number, status=status))
    return grid


def seat_in_layout(rows: int, seats_per_row: int, row: str, number: int) -> bool:
    return row in row_labels(rows) and 1 <= number <= seats_per_row


async def load_committed_seats(db: AsyncSession, showtime_id: str) -> set[SeatKey]:
    """All seats currently held by confirmed bookings of a showtime."""
    result = await db.execute(
        select(SeatClaim.row, SeatClaim.number).where(SeatClaim.showtime_id == showtime_id)
    )
    return {(row, number) for row, number in result.all()}


async def get_seat_map(db: AsyncSession, showtime_id: str) -> SeatMapResponse:
    showtime = await get_showtime(db, showtime_id)
    theatre = showtime.theatre

    committed = await load_committed_seats(db, showtime_id)
    seats = build_seat_grid(theatre.rows, theatre.seats_per_row, committed)

    logger.debug("seat_map_built", showtime_id=showtime_id, booked=len(committed))
    return SeatMapResponse(
        showtime_id=showtime_id,
        theatre=TheatreInfo.model_validate(theatre),
        available_seats=theatre.total_seats - len(committed),
        seats=seats,
    )
