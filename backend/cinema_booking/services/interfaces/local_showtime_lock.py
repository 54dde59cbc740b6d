"""
In-process showtime lock backed by asyncio.Lock.
"""

import asyncio
import time
import uuid

from cinema_booking.core.exceptions import BusyError
from cinema_booking.core.logging import get_logger
from cinema_booking.core.metrics import record_lock_wait, record_lock_timeout
from cinema_booking.services.interfaces.showtime_lock import ShowtimeLock

logger = get_logger(__name__)


class LocalShowtimeLock(ShowtimeLock):
    """
    One asyncio.Lock per showtime, created on first use.

    Entries are dropped once no task holds or waits for them, so the map
    only ever contains showtimes with bookings in flight.

    Use when:
    - A single worker process serves bookings
    - Tests and local development
    """

    def __init__(self, timeout: float):
        super().__init__(timeout)
        self._locks: dict[str, asyncio.Lock] = {}
        self._users: dict[str, int] = {}

    def _lock_for(self, showtime_id: str) -> asyncio.Lock:
        # No await between lookup and insert, so two tasks cannot race here.
        lock = self._locks.get(showtime_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[showtime_id] = lock
        self._users[showtime_id] = self._users.get(showtime_id, 0) + 1
        return lock

    def _forget(self, showtime_id: str) -> None:
        remaining = self._users.get(showtime_id, 0) - 1
        if remaining > 0:
            self._users[showtime_id] = remaining
        else:
            self._users.pop(showtime_id, None)
            self._locks.pop(showtime_id, None)

    async def acquire(self, showtime_id: str) -> str:
        lock = self._lock_for(showtime_id)
        start = time.perf_counter()
        try:
            await asyncio.wait_for(lock.acquire(), timeout=self.timeout)
        except asyncio.TimeoutError:
            self._forget(showtime_id)
            record_lock_timeout()
            logger.warning("showtime_lock_timeout", showtime_id=showtime_id, timeout=self.timeout)
            raise BusyError(showtime_id)
        except BaseException:
            self._forget(showtime_id)
            raise

        record_lock_wait(time.perf_counter() - start)
        return str(uuid.uuid4())

    async def release(self, showtime_id: str, token: str) -> None:
        lock = self._locks.get(showtime_id)
        if lock is not None and lock.locked():
            lock.release()
            self._forget(showtime_id)

    def is_locked(self, showtime_id: str) -> bool:
        lock = self._locks.get(showtime_id)
        return lock is not None and lock.locked()

    def tracked_showtimes(self) -> int:
        """Number of showtimes with a holder or waiter."""
        return len(self._locks)
