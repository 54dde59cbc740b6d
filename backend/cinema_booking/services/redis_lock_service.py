"""
Distributed showtime lock for multi-process deployments.
Implements ShowtimeLock using Redis.

Acquire: SET lock:showtime:{id} <token> NX PX <ttl>, polled until the
timeout. Release: a Lua script deletes the key only if it still holds our
token, so an expired holder can never release somebody else's lock.

Unlike a cache, a lock cannot fail open: if Redis errors, the request
gets BusyError and the caller retries. The database keeps its own backstops
(inventory version check, seat claim primary key) either way.
"""

import asyncio
import time
import uuid
from typing import Optional

import redis.asyncio as redis

from cinema_booking.core.exceptions import BusyError
from cinema_booking.core.logging import get_logger
from cinema_booking.core.metrics import (
    record_lock_wait,
    record_lock_timeout,
    redis_connection_errors,
)
from cinema_booking.infrastructure.redis_client import get_redis_client
from cinema_booking.services.interfaces.showtime_lock import ShowtimeLock

logger = get_logger(__name__)

RELEASE_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
else
    return 0
end
"""


def lock_key(showtime_id: str) -> str:
    return f"lock:showtime:{showtime_id}"


class RedisShowtimeLock(ShowtimeLock):
    """
    Redis-based showtime lock.

    Use when:
    - Several API workers or hosts book the same showtimes
    - Lock must survive no single process
    """

    def __init__(
        self,
        timeout: float,
        ttl_seconds: int,
        retry_interval: float,
        client: Optional[redis.Redis] = None,
    ):
        super().__init__(timeout)
        self.ttl_ms = int(ttl_seconds * 1000)
        self.retry_interval = retry_interval
        self.redis = client or get_redis_client()

    async def acquire(self, showtime_id: str) -> str:
        key = lock_key(showtime_id)
        token = str(uuid.uuid4())
        start = time.perf_counter()
        deadline = start + self.timeout

        while True:
            try:
                acquired = await self.redis.set(key, token, nx=True, px=self.ttl_ms)
            except Exception as e:
                redis_connection_errors.inc()
                logger.error("showtime_lock_redis_error", showtime_id=showtime_id, error=str(e))
                raise BusyError(showtime_id)

            if acquired:
                record_lock_wait(time.perf_counter() - start)
                logger.debug("showtime_lock_acquired", showtime_id=showtime_id)
                return token

            if time.perf_counter() >= deadline:
                record_lock_timeout()
                logger.warning("showtime_lock_timeout", showtime_id=showtime_id, timeout=self.timeout)
                raise BusyError(showtime_id)

            await asyncio.sleep(self.retry_interval)

    async def release(self, showtime_id: str, token: str) -> None:
        key = lock_key(showtime_id)
        try:
            released = await self.redis.eval(RELEASE_SCRIPT, 1, key, token)
        except Exception as e:
            # Key expires on its own after ttl
            redis_connection_errors.inc()
            logger.error("showtime_lock_release_failed", showtime_id=showtime_id, error=str(e))
            return

        if not released:
            logger.warning("showtime_lock_release_mismatch", showtime_id=showtime_id)
