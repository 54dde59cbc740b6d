"""
Service interfaces for dependency inversion.
Allows swapping implementations without changing business logic.
"""

from .showtime_lock import ShowtimeLock
from .local_showtime_lock import LocalShowtimeLock

__all__ = ['ShowtimeLock', 'LocalShowtimeLock']
