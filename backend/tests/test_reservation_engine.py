"""
Reservation engine under concurrency.

Each simulated user gets its own session, like separate API requests.
Requests for the same showtime are serialized by the showtime lock.
"""

import asyncio
from types import SimpleNamespace

import pytest
from sqlalchemy import update

from cinema_booking.core.exceptions import (
    AlreadyCancelledError,
    CapacityUpdateFailedError,
    InsufficientCapacityError,
    InvalidAdjustmentError,
    InvalidInputError,
    SeatConflictError,
)
from cinema_booking.models import ShowtimeInventory
from cinema_booking.schemas.seat import SeatRequest
from cinema_booking.services import booking_service, inventory_service, strategy_factory
from cinema_booking.services.seat_map_service import load_committed_seats
from conftest import assert_invariants, available_count, make_showtime


def seat(identifier: str) -> SeatRequest:
    return SeatRequest(row=identifier[0], number=int(identifier[1:]))


async def attempt(session_factory, showtime_id: str, user_id: str, *identifiers: str):
    async with session_factory() as session:
        try:
            return await booking_service.create_booking(
                session,
                showtime_id=showtime_id,
                user_id=user_id,
                seats=[seat(i) for i in identifiers],
                total_amount=10.0 * len(identifiers),
            )
        except (SeatConflictError, InsufficientCapacityError) as e:
            return e


@pytest.mark.asyncio
async def test_concurrent_distinct_seats_no_lost_updates(db_session, session_factory):
    """10 users, 10 different seats, capacity 10: all succeed, counter reaches 0."""
    showtime = await make_showtime(db_session, rows=1, seats_per_row=10)

    results = await asyncio.gather(*[
        attempt(session_factory, showtime.id, f"user-{n}", f"A{n}")
        for n in range(1, 11)
    ])

    assert all(not isinstance(r, Exception) for r in results)
    assert await available_count(session_factory, showtime.id) == 0
    await assert_invariants(session_factory, showtime.id)


@pytest.mark.asyncio
async def test_concurrent_requests_exceeding_capacity(db_session, session_factory):
    """10 users want 1 seat each, only 4 exist: exactly 4 succeed."""
    showtime = await make_showtime(db_session, rows=2, seats_per_row=2)
    all_seats = ["A1", "A2", "B1", "B2"]

    results = await asyncio.gather(*[
        attempt(session_factory, showtime.id, f"user-{n}", all_seats[n % 4])
        for n in range(10)
    ])

    successes = [r for r in results if not isinstance(r, Exception)]
    failures = [r for r in results if isinstance(r, Exception)]
    assert len(successes) == 4
    assert len(failures) == 6
    assert await available_count(session_factory, showtime.id) == 0
    await assert_invariants(session_factory, showtime.id)


@pytest.mark.asyncio
async def test_concurrent_same_seat_single_winner(db_session, session_factory):
    showtime = await make_showtime(db_session, rows=2, seats_per_row=5)

    results = await asyncio.gather(*[
        attempt(session_factory, showtime.id, f"user-{n}", "A1")
        for n in range(8)
    ])

    successes = [r for r in results if not isinstance(r, Exception)]
    conflicts = [r for r in results if isinstance(r, SeatConflictError)]
    assert len(successes) == 1
    assert len(conflicts) == 7
    assert all(c.seat == "A1" for c in conflicts)
    assert await available_count(session_factory, showtime.id) == 9
    await assert_invariants(session_factory, showtime.id)


@pytest.mark.asyncio
async def test_concurrent_overlapping_multi_seat_requests(db_session, session_factory):
    """Overlapping seat sets: every seat goes to at most one booking."""
    showtime = await make_showtime(db_session, rows=1, seats_per_row=6)
    requests = [("A1", "A2"), ("A2", "A3"), ("A3", "A4"), ("A4", "A5"), ("A5", "A6"), ("A6", "A1")]

    results = await asyncio.gather(*[
        attempt(session_factory, showtime.id, f"user-{n}", *pair)
        for n, pair in enumerate(requests)
    ])

    successes = [r for r in results if not isinstance(r, Exception)]
    assert successes
    booked = [(s["row"], s["number"]) for b in successes for s in b.seats]
    assert len(booked) == len(set(booked))
    assert await available_count(session_factory, showtime.id) == 6 - len(booked)
    await assert_invariants(session_factory, showtime.id)


@pytest.mark.asyncio
async def test_held_showtime_does_not_block_other_showtimes(db_session, session_factory):
    first = await make_showtime(db_session, rows=1, seats_per_row=3)
    second = await make_showtime(db_session, rows=1, seats_per_row=3, movie_id="movie-2")

    lock = strategy_factory.get_showtime_lock()
    async with lock.hold(first.id):
        booking = await asyncio.wait_for(
            attempt(session_factory, second.id, "user-2", "A1"), timeout=1.0
        )

    assert not isinstance(booking, Exception)
    assert await available_count(session_factory, first.id) == 3
    assert await available_count(session_factory, second.id) == 2


@pytest.mark.asyncio
async def test_failed_inventory_update_rolls_back_booking(db_session, session_factory, monkeypatch):
    """If the counter cannot be updated, no booking and no seat claim survive."""
    showtime = await make_showtime(db_session)

    async def failing_decrement(db, inventory, n):
        raise InvalidAdjustmentError("Inventory was modified concurrently", inventory.showtime_id)

    monkeypatch.setattr(inventory_service, "decrement", failing_decrement)

    async with session_factory() as session:
        with pytest.raises(CapacityUpdateFailedError):
            await booking_service.create_booking(
                session, showtime.id, "user-1", [seat("A1"), seat("A2")], 20.0
            )

    monkeypatch.undo()

    async with session_factory() as session:
        assert await load_committed_seats(session, showtime.id) == set()
        assert await booking_service.get_user_bookings(session, "user-1") == []
    assert await available_count(session_factory, showtime.id) == 4

    retry = await attempt(session_factory, showtime.id, "user-1", "A1", "A2")
    assert not isinstance(retry, Exception)
    await assert_invariants(session_factory, showtime.id)


@pytest.mark.asyncio
async def test_cancel_restore_is_clamped_to_capacity(db_session, session_factory):
    showtime = await make_showtime(db_session)
    booking = await attempt(session_factory, showtime.id, "user-1", "A1", "A2")

    # Counter drifted back to full behind the engine's back
    async with session_factory() as session:
        await session.execute(
            update(ShowtimeInventory)
            .where(ShowtimeInventory.showtime_id == showtime.id)
            .values(available_count=3)
        )
        await session.commit()

    async with session_factory() as session:
        cancelled = await booking_service.cancel_booking(session, booking.id, "user-1")
        assert cancelled.is_cancelled

    assert await available_count(session_factory, showtime.id) == 4


@pytest.mark.asyncio
async def test_concurrent_double_cancel(db_session, session_factory):
    """Two cancels of one booking: one wins, seats restored exactly once."""
    showtime = await make_showtime(db_session)
    booking = await attempt(session_factory, showtime.id, "user-1", "A1", "B2")

    async def cancel():
        async with session_factory() as session:
            try:
                return await booking_service.cancel_booking(session, booking.id, "user-1")
            except AlreadyCancelledError as e:
                return e

    results = await asyncio.gather(cancel(), cancel())

    assert sum(isinstance(r, AlreadyCancelledError) for r in results) == 1
    assert await available_count(session_factory, showtime.id) == 4
    await assert_invariants(session_factory, showtime.id)


@pytest.mark.asyncio
async def test_mixed_bookings_and_cancellations(db_session, session_factory):
    showtime = await make_showtime(db_session, rows=2, seats_per_row=3)
    first = await attempt(session_factory, showtime.id, "user-1", "A1", "A2")
    second = await attempt(session_factory, showtime.id, "user-2", "B1")

    async def cancel(booking_id, user_id):
        async with session_factory() as session:
            return await booking_service.cancel_booking(session, booking_id, user_id)

    await asyncio.gather(
        cancel(first.id, "user-1"),
        attempt(session_factory, showtime.id, "user-3", "A3"),
        attempt(session_factory, showtime.id, "user-4", "B2", "B3"),
        cancel(second.id, "user-2"),
        attempt(session_factory, showtime.id, "user-5", "A1"),
    )

    await assert_invariants(session_factory, showtime.id)


@pytest.mark.asyncio
@pytest.mark.parametrize("row", ["AB", "ABC", "BC", "a"])
async def test_rows_outside_layout_leave_inventory_untouched(db_session, session_factory, row):
    """Callers that skip request validation still cannot book a seat the grid lacks."""
    showtime = await make_showtime(db_session, rows=3, seats_per_row=3)

    async with session_factory() as session:
        with pytest.raises(InvalidInputError):
            await booking_service.create_booking(
                session, showtime.id, "user-1", [SimpleNamespace(row=row, number=1)], 10.0
            )

    assert await available_count(session_factory, showtime.id) == 9
    async with session_factory() as session:
        assert await load_committed_seats(session, showtime.id) == set()
    await assert_invariants(session_factory, showtime.id)
