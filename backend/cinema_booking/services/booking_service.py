"""
Booking service with concurrency-safe seat reservation.

CONCURRENCY STRATEGY: Per-showtime lock + transactional seat index
=================================================================

Problem:
  Two users request seat A1 of the same showtime simultaneously.
  Both read the committed seats before either writes, both pass the
  conflict check, both commit. Result: a double-booked seat, and an
  available counter decremented twice from the same stale value.

Solution:
  Every mutation of a showtime (booking or cancellation) runs inside that
  showtime's lock, held from the first read until commit:

  1. Acquire lock(showtime_id)            -> BusyError on timeout
  2. Read inventory, check capacity        -> InsufficientCapacityError
  3. Read committed seats (seat_claims)    -> SeatConflictError
  4. INSERT booking + one seat_claim per seat
  5. UPDATE inventory (version compare-and-swap)
  6. COMMIT, release lock

  If step 5 fails, the booking from step 4 is rolled back before the lock
  is released, so no seat is ever left half-committed.

  Storage backstops for writers that bypass the lock:
  - seat_claims primary key (showtime_id, row, number)
  - inventory version check and CHECK constraints

  Locks are per showtime: bookings for different showtimes never wait on
  each other. Read paths (seat maps, booking lookups) take no lock.
"""

import uuid
from typing import Optional, Sequence

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from cinema_booking.models.booking import Booking, BOOKING_CONFIRMED, BOOKING_CANCELLED
from cinema_booking.models.seat_claim import SeatClaim
from cinema_booking.schemas.seat import SeatStatus
from cinema_booking.services import inventory_service
from cinema_booking.services.conflict_detector import (
    SeatLike,
    find_conflict,
    find_duplicate,
    seat_identifier,
)
from cinema_booking.services.interfaces.showtime_lock import ShowtimeLock
from cinema_booking.services.seat_map_service import load_committed_seats, seat_in_layout
from cinema_booking.services.showtime_service import get_showtime
from cinema_booking.services.strategy_factory import get_showtime_lock
from cinema_booking.core.config import get_settings
from cinema_booking.core.exceptions import (
    AlreadyCancelledError,
    BookingServiceError,
    BusyError,
    CapacityUpdateFailedError,
    ForbiddenError,
    InsufficientCapacityError,
    InvalidInputError,
    NotFoundError,
    SeatConflictError,
)
from cinema_booking.core.metrics import (
    booking_compensations,
    booking_latency,
    record_booking_attempt,
    record_cancellation,
)
from cinema_booking.db.base import utc_now
from cinema_booking.core.logging import get_logger

logger = get_logger(__name__)
settings = get_settings()


def validate_booking_request(seats: Sequence[SeatLike], total_amount: float) -> None:
    """Checks that need no database access."""
    if not seats:
        raise InvalidInputError("At least one seat is required", field="seats")

    if len(seats) > settings.MAX_SEATS_PER_BOOKING:
        raise InvalidInputError(
            f"At most {settings.MAX_SEATS_PER_BOOKING} seats can be booked at once",
            field="seats",
        )

    for seat in seats:
        if not seat.row or seat.number is None or seat.number <= 0:
            raise InvalidInputError(f"Invalid seat {seat.row!r}/{seat.number!r}", field="seats")

    duplicate = find_duplicate(seats)
    if duplicate:
        raise InvalidInputError(
            f"Seat {seat_identifier(*duplicate)} is requested more than once",
            field="seats",
        )

    if total_amount is None or total_amount <= 0:
        raise InvalidInputError("Total amount must be positive", field="total_amount")


async def create_booking(
    db: AsyncSession,
    showtime_id: str,
    user_id: str,
    seats: Sequence[SeatLike],
    total_amount: float,
    lock: Optional[ShowtimeLock] = None,
) -> Booking:
    """
    Reserve `seats` of a showtime for a user.
    All-or-nothing: either every seat is booked or nothing changes.
    """
    lock = lock or get_showtime_lock()

    with booking_latency.time():
        try:
            validate_booking_request(seats, total_amount)

            async with lock.hold(showtime_id):
                try:
                    booking = await _create_locked(db, showtime_id, user_id, seats, total_amount)
                except Exception:
                    await db.rollback()
                    raise

        except BookingServiceError as exc:
            record_booking_attempt(exc.code.lower())
            raise

    record_booking_attempt("success")
    return booking


async def _create_locked(
    db: AsyncSession,
    showtime_id: str,
    user_id: str,
    seats: Sequence[SeatLike],
    total_amount: float,
) -> Booking:
    showtime = await get_showtime(db, showtime_id)
    theatre = showtime.theatre

    for seat in seats:
        if not seat_in_layout(theatre.rows, theatre.seats_per_row, seat.row, seat.number):
            raise InvalidInputError(
                f"Seat {seat_identifier(seat.row, seat.number)} does not exist in theatre {theatre.name}",
                field="seats",
            )

    # Step 1: capacity
    inventory = await inventory_service.load_inventory(db, showtime_id)
    if inventory.available_count < len(seats):
        logger.warning(
            "booking_rejected_insufficient_capacity",
            showtime_id=showtime_id,
            requested=len(seats),
            available=inventory.available_count,
        )
        raise InsufficientCapacityError(len(seats), inventory.available_count)

    # Step 2-3: seat conflicts
    committed = await load_committed_seats(db, showtime_id)
    conflict = find_conflict(seats, committed)
    if conflict:
        seat = seat_identifier(*conflict)
        logger.warning("booking_rejected_seat_conflict", showtime_id=showtime_id, seat=seat)
        raise SeatConflictError(seat)

    # Step 4-5: booking record and seat claims
    booking = Booking(
        id=str(uuid.uuid4()),
        user_id=user_id,
        showtime_id=showtime_id,
        seats=[
            {"row": s.row, "number": s.number, "status": SeatStatus.BOOKED.value}
            for s in seats
        ],
        seat_count=len(seats),
        total_amount=float(total_amount),
        status=BOOKING_CONFIRMED,
        created_at=utc_now(),
    )
    db.add(booking)
    db.add_all(
        SeatClaim(showtime_id=showtime_id, row=s.row, number=s.number, booking_id=booking.id)
        for s in seats
    )

    try:
        await db.flush()
    except IntegrityError:
        # Someone wrote claims without holding the lock
        await db.rollback()
        committed = await load_committed_seats(db, showtime_id)
        conflict = find_conflict(seats, committed)
        logger.error("seat_claim_integrity_violation", showtime_id=showtime_id)
        if conflict:
            raise SeatConflictError(seat_identifier(*conflict))
        raise BusyError(showtime_id)

    # Step 6: capacity counter
    try:
        await inventory_service.decrement(db, inventory, len(seats))
    except Exception as exc:
        await _compensate(db, booking, exc)
        raise CapacityUpdateFailedError(str(exc)) from exc

    await db.commit()

    logger.info(
        "booking_created",
        booking_id=booking.id,
        user_id=user_id,
        showtime_id=showtime_id,
        seats=[seat_identifier(s.row, s.number) for s in seats],
        total_amount=booking.total_amount,
    )
    return booking


async def _compensate(db: AsyncSession, booking: Booking, cause: Exception) -> None:
    """
    Undo a booking whose inventory update failed.

    Booking, seat claims and inventory share one transaction, so the
    compensation is rolling that transaction back before the lock is released.
    """
    booking_id, showtime_id = booking.id, booking.showtime_id
    await db.rollback()
    booking_compensations.inc()
    logger.error(
        "booking_compensated",
        booking_id=booking_id,
        showtime_id=showtime_id,
        reason=str(cause),
    )


async def cancel_booking(
    db: AsyncSession,
    booking_id: str,
    user_id: str,
    lock: Optional[ShowtimeLock] = None,
) -> Booking:
    """
    Cancel a booking and release its seats back to the showtime.
    The seats are bookable again as soon as this returns.
    """
    lock = lock or get_showtime_lock()

    try:
        booking = await get_booking(db, booking_id)
        _check_cancellable(booking, user_id)

        async with lock.hold(booking.showtime_id):
            try:
                booking = await _cancel_locked(db, booking_id, user_id)
            except Exception:
                await db.rollback()
                raise

    except BookingServiceError as exc:
        record_cancellation(exc.code.lower())
        raise

    record_cancellation("success")
    return booking


def _check_cancellable(booking: Booking, user_id: str) -> None:
    if booking.user_id != user_id:
        logger.warning("cancel_forbidden", booking_id=booking.id, user_id=user_id)
        raise ForbiddenError()

    if booking.is_cancelled:
        raise AlreadyCancelledError(booking.id)


async def _cancel_locked(db: AsyncSession, booking_id: str, user_id: str) -> Booking:
    # Re-read under the lock: a concurrent cancel may have won the race
    booking = await get_booking(db, booking_id)
    _check_cancellable(booking, user_id)

    booking.status = BOOKING_CANCELLED
    await db.execute(delete(SeatClaim).where(SeatClaim.booking_id == booking.id))

    inventory = await inventory_service.load_inventory(db, booking.showtime_id)
    restore = min(booking.seat_count, inventory.total_capacity - inventory.available_count)
    if restore < booking.seat_count:
        logger.warning(
            "inventory_restore_clamped",
            booking_id=booking.id,
            showtime_id=booking.showtime_id,
            seat_count=booking.seat_count,
            restored=restore,
        )
    if restore > 0:
        await inventory_service.increment(db, inventory, restore)

    await db.commit()

    logger.info(
        "booking_cancelled",
        booking_id=booking.id,
        user_id=user_id,
        showtime_id=booking.showtime_id,
        seats_restored=restore,
    )
    return booking


async def get_booking(db: AsyncSession, booking_id: str) -> Booking:
    result = await db.execute(
        select(Booking)
        .where(Booking.id == booking_id)
        .execution_options(populate_existing=True)
    )
    booking = result.scalar_one_or_none()

    if not booking:
        raise NotFoundError("Booking", booking_id)
    return booking


async def get_user_bookings(db: AsyncSession, user_id: str) -> list[Booking]:
    """Get all bookings for a user, newest first."""
    result = await db.execute(
        select(Booking)
        .where(Booking.user_id == user_id)
        .order_by(Booking.created_at.desc())
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


async def get_user_booking(db: AsyncSession, booking_id: str, user_id: str) -> Booking:
    """Get a booking on behalf of its owner."""
    booking = await get_booking(db, booking_id)
    if booking.user_id != user_id:
        logger.warning("booking_view_forbidden", booking_id=booking_id, user_id=user_id)
        raise ForbiddenError("You can only view your own bookings")
    return booking
