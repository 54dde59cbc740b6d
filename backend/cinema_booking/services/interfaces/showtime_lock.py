"""
Per-showtime lock interface.
Allows swapping between in-process and distributed serialization.
"""

from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from typing import AsyncIterator


class ShowtimeLock(ABC):
    """
    Interface for per-showtime mutual exclusion.

    Implementations:
    - LocalShowtimeLock: asyncio locks, one process
    - RedisShowtimeLock: SET NX lock shared by every process

    Locks are keyed by showtime, so work on different showtimes never
    waits. Acquisition is bounded by `timeout` and raises BusyError
    when it runs out.
    """

    def __init__(self, timeout: float):
        self.timeout = timeout

    @abstractmethod
    async def acquire(self, showtime_id: str) -> str:
        """
        Block until the showtime is ours or the timeout expires.

        Returns:
            Token identifying this holder, passed back to release()

        Raises:
            BusyError: lock not acquired within the timeout
        """

    @abstractmethod
    async def release(self, showtime_id: str, token: str) -> None:
        """Release a lock previously returned by acquire()."""

    @asynccontextmanager
    async def hold(self, showtime_id: str) -> AsyncIterator[None]:
        token = await self.acquire(showtime_id)
        try:
            yield
        finally:
            await self.release(showtime_id, token)
