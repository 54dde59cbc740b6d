"""
Pytest fixtures for test database, client, and authentication.

Each test gets its own SQLite file (through aiosqlite) so concurrent
sessions behave like separate connections to a real database.
"""

import os
from datetime import datetime, timezone, timedelta
from typing import AsyncGenerator

# Settings are read once; configure them before the app is imported
os.environ["ENVIRONMENT"] = "testing"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["REDIS_ENABLED"] = "false"
os.environ["LOCK_STRATEGY"] = "local"
os.environ["SECRET_KEY"] = "test-secret-key"

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker

from cinema_booking.main import app
from cinema_booking.db.base import Base
from cinema_booking.db.session import get_db
from cinema_booking.core.security import create_access_token
from cinema_booking.models import Booking, SeatClaim, Showtime, ShowtimeInventory
from cinema_booking.models.booking import BOOKING_CONFIRMED
from cinema_booking.schemas.showtime import TheatreCreate, ShowtimeCreate
from cinema_booking.services.showtime_service import create_theatre, create_showtime
from cinema_booking.services.strategy_factory import reset_showtime_lock

TEST_USER_ID = "user-1"
OTHER_USER_ID = "user-2"


@pytest_asyncio.fixture(scope="function")
async def engine(tmp_path):
    """Fresh schema per test in a throwaway SQLite file."""
    test_engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'booking_test.db'}")
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield test_engine

    await test_engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture(scope="function")
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture(autouse=True)
def fresh_showtime_lock():
    """Locks are bound to an event loop; never share one between tests."""
    reset_showtime_lock()
    yield
    reset_showtime_lock()


@pytest_asyncio.fixture(scope="function")
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client whose requests each get their own session on the test database."""

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


def bearer(user_id: str) -> dict:
    return {"Authorization": f"Bearer {create_access_token(data={'sub': user_id})}"}


@pytest.fixture
def auth_headers() -> dict:
    return bearer(TEST_USER_ID)


@pytest.fixture
def other_auth_headers() -> dict:
    return bearer(OTHER_USER_ID)


async def make_showtime(
    session: AsyncSession,
    rows: int = 2,
    seats_per_row: int = 2,
    movie_id: str = "movie-1",
) -> Showtime:
    theatre = await create_theatre(
        session,
        TheatreCreate(
            name="Test Cinema",
            location="Main Street 1",
            rows=rows,
            seats_per_row=seats_per_row,
        ),
    )
    return await create_showtime(
        session,
        ShowtimeCreate(
            movie_id=movie_id,
            theatre_id=theatre.id,
            show_date=datetime.now(timezone.utc) + timedelta(days=7),
            price=10.0,
        ),
    )


@pytest_asyncio.fixture
async def test_showtime(db_session: AsyncSession) -> Showtime:
    """Showtime in a 2 rows x 2 seats theatre (capacity 4)."""
    return await make_showtime(db_session)


async def available_count(session_factory, showtime_id: str) -> int:
    async with session_factory() as session:
        result = await session.execute(
            select(ShowtimeInventory.available_count).where(
                ShowtimeInventory.showtime_id == showtime_id
            )
        )
        return result.scalar_one()


async def assert_invariants(session_factory, showtime_id: str) -> None:
    """Disjointness and capacity conservation for one showtime."""
    async with session_factory() as session:
        inventory = (
            await session.execute(
                select(ShowtimeInventory).where(ShowtimeInventory.showtime_id == showtime_id)
            )
        ).scalar_one()
        confirmed = (
            await session.execute(
                select(Booking).where(
                    Booking.showtime_id == showtime_id,
                    Booking.status == BOOKING_CONFIRMED,
                )
            )
        ).scalars().all()
        claim_count = (
            await session.execute(
                select(func.count()).select_from(SeatClaim).where(SeatClaim.showtime_id == showtime_id)
            )
        ).scalar_one()

    seats = [(s["row"], s["number"]) for b in confirmed for s in b.seats]
    assert len(seats) == len(set(seats)), f"double-booked seats: {seats}"
    assert inventory.available_count + sum(b.seat_count for b in confirmed) == inventory.total_capacity
    assert claim_count == len(seats)
    assert 0 <= inventory.available_count <= inventory.total_capacity
