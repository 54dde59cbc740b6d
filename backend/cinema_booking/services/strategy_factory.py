"""
Showtime lock factory.
Configures which serialization strategy guards booking and cancellation.
"""

from typing import Optional

from cinema_booking.services.interfaces.showtime_lock import ShowtimeLock
from cinema_booking.services.interfaces.local_showtime_lock import LocalShowtimeLock
from cinema_booking.services.redis_lock_service import RedisShowtimeLock
from cinema_booking.core.config import get_settings


def get_showtime_lock_strategy() -> ShowtimeLock:
    """
    Build the configured lock.

    Strategy selection:
    - local: asyncio locks, correct for a single worker process
    - redis: distributed lock, required once several workers run

    Selected via the LOCK_STRATEGY env var.
    """
    settings = get_settings()

    if settings.LOCK_STRATEGY == 'redis':
        return RedisShowtimeLock(
            timeout=settings.LOCK_TIMEOUT_SECONDS,
            ttl_seconds=settings.LOCK_TTL_SECONDS,
            retry_interval=settings.LOCK_RETRY_INTERVAL_SECONDS,
        )
    return LocalShowtimeLock(timeout=settings.LOCK_TIMEOUT_SECONDS)


# Singleton instance
_lock: Optional[ShowtimeLock] = None


def get_showtime_lock() -> ShowtimeLock:
    """Get showtime lock singleton."""
    global _lock
    if _lock is None:
        _lock = get_showtime_lock_strategy()
    return _lock


def reset_showtime_lock() -> None:
    """Drop the singleton so the next call rebuilds it from settings."""
    global _lock
    _lock = None
