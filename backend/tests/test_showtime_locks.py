"""
Tests for the showtime lock strategies.

The Redis lock runs against a small in-memory stand-in that answers the two
commands the lock uses (SET NX PX and EVAL of the release script).
"""

import asyncio

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from cinema_booking.core.exceptions import BusyError
from cinema_booking.services import strategy_factory
from cinema_booking.services.interfaces.local_showtime_lock import LocalShowtimeLock
from cinema_booking.services.redis_lock_service import RedisShowtimeLock, lock_key


class FakeRedis:
    def __init__(self):
        self.data = {}
        self.set_calls = []

    async def set(self, key, value, nx=False, px=None):
        self.set_calls.append((key, nx, px))
        if nx and key in self.data:
            return None
        self.data[key] = value
        return True

    async def eval(self, script, numkeys, key, token):
        if self.data.get(key) == token:
            del self.data[key]
            return 1
        return 0


class BrokenRedis:
    async def set(self, *args, **kwargs):
        raise RedisConnectionError("connection refused")

    async def eval(self, *args, **kwargs):
        raise RedisConnectionError("connection refused")


@pytest.mark.asyncio
async def test_local_lock_times_out_as_busy():
    lock = LocalShowtimeLock(timeout=0.01)
    token = await lock.acquire("showtime-1")

    with pytest.raises(BusyError) as exc_info:
        await lock.acquire("showtime-1")
    assert exc_info.value.status_code == 503
    assert exc_info.value.retry_after == 1

    await lock.release("showtime-1", token)
    assert not lock.is_locked("showtime-1")


@pytest.mark.asyncio
async def test_local_lock_is_per_showtime():
    lock = LocalShowtimeLock(timeout=0.01)
    await lock.acquire("showtime-1")

    token = await lock.acquire("showtime-2")
    assert lock.is_locked("showtime-1")
    assert lock.is_locked("showtime-2")
    await lock.release("showtime-2", token)


@pytest.mark.asyncio
async def test_local_lock_hold_releases_on_error():
    lock = LocalShowtimeLock(timeout=0.01)

    with pytest.raises(RuntimeError):
        async with lock.hold("showtime-1"):
            assert lock.is_locked("showtime-1")
            raise RuntimeError("boom")

    assert not lock.is_locked("showtime-1")


@pytest.mark.asyncio
async def test_local_lock_serializes_holders():
    lock = LocalShowtimeLock(timeout=1.0)
    order = []

    async def worker(name):
        async with lock.hold("showtime-1"):
            order.append(f"{name}-in")
            await asyncio.sleep(0.01)
            order.append(f"{name}-out")

    await asyncio.gather(worker("a"), worker("b"))
    assert order in (["a-in", "a-out", "b-in", "b-out"], ["b-in", "b-out", "a-in", "a-out"])


@pytest.mark.asyncio
async def test_redis_lock_acquire_and_release():
    client = FakeRedis()
    lock = RedisShowtimeLock(timeout=0.1, ttl_seconds=10, retry_interval=0.01, client=client)

    async with lock.hold("showtime-1"):
        assert lock_key("showtime-1") in client.data

    assert client.data == {}
    assert client.set_calls[0] == ("lock:showtime:showtime-1", True, 10000)


@pytest.mark.asyncio
async def test_redis_lock_busy_when_held():
    client = FakeRedis()
    lock = RedisShowtimeLock(timeout=0.05, ttl_seconds=10, retry_interval=0.01, client=client)
    await lock.acquire("showtime-1")

    with pytest.raises(BusyError):
        await lock.acquire("showtime-1")
    assert len(client.set_calls) > 2


@pytest.mark.asyncio
async def test_redis_lock_release_keeps_foreign_token():
    """An expired holder must not delete the lock someone else now owns."""
    client = FakeRedis()
    lock = RedisShowtimeLock(timeout=0.05, ttl_seconds=10, retry_interval=0.01, client=client)
    client.data[lock_key("showtime-1")] = "someone-else"

    await lock.release("showtime-1", "my-old-token")
    assert client.data[lock_key("showtime-1")] == "someone-else"


@pytest.mark.asyncio
async def test_redis_lock_fails_closed():
    lock = RedisShowtimeLock(timeout=0.05, ttl_seconds=10, retry_interval=0.01, client=BrokenRedis())

    with pytest.raises(BusyError):
        await lock.acquire("showtime-1")


def test_factory_selects_local_by_default():
    lock = strategy_factory.get_showtime_lock()
    assert isinstance(lock, LocalShowtimeLock)
    assert strategy_factory.get_showtime_lock() is lock


def test_factory_selects_redis(monkeypatch):
    settings = strategy_factory.get_settings().model_copy(update={"LOCK_STRATEGY": "redis"})
    monkeypatch.setattr(strategy_factory, "get_settings", lambda: settings)
    monkeypatch.setattr(
        "cinema_booking.services.redis_lock_service.get_redis_client", lambda: FakeRedis()
    )

    lock = strategy_factory.get_showtime_lock_strategy()
    assert isinstance(lock, RedisShowtimeLock)
    assert lock.timeout == settings.LOCK_TIMEOUT_SECONDS


@pytest.mark.asyncio
async def test_local_lock_forgets_idle_showtimes():
    lock = LocalShowtimeLock(timeout=0.01)

    for n in range(5):
        async with lock.hold(f"showtime-{n}"):
            pass
    assert lock.tracked_showtimes() == 0

    token = await lock.acquire("showtime-1")
    with pytest.raises(BusyError):
        await lock.acquire("showtime-1")
    assert lock.tracked_showtimes() == 1

    await lock.release("showtime-1", token)
    assert lock.tracked_showtimes() == 0


@pytest.mark.asyncio
async def test_local_lock_keeps_entry_while_waiters_remain():
    lock = LocalShowtimeLock(timeout=1.0)
    token = await lock.acquire("showtime-1")

    waiter = asyncio.create_task(lock.acquire("showtime-1"))
    await asyncio.sleep(0.01)
    await lock.release("showtime-1", token)

    second = await waiter
    assert lock.is_locked("showtime-1")
    assert lock.tracked_showtimes() == 1

    await lock.release("showtime-1", second)
    assert lock.tracked_showtimes() == 0
