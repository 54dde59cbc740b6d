"""
Seat conflict detection.

Pure functions over a requested seat list and the set of seats already
committed for a showtime. Seats are compared by (row, number) only; their
status is ignored. Results follow the caller's seat order so that the
reported seat is reproducible.
"""

from typing import Iterable, Optional, Protocol, Sequence


class SeatLike(Protocol):
    row: str
    number: int


SeatKey = tuple[str, int]


def seat_key(seat: SeatLike) -> SeatKey:
    return (seat.row, seat.number)


def seat_identifier(row: str, number: int) -> str:
    """Human-readable seat id, e.g. A1."""
    return f"{row}{number}"


def find_duplicate(requested: Sequence[SeatLike]) -> Optional[SeatKey]:
    """Return the first seat that appears twice in one request."""
    seen: set[SeatKey] = set()
    for seat in requested:
        key = seat_key(seat)
        if key in seen:
            return key
        seen.add(key)
    return None


def find_conflict(requested: Sequence[SeatLike], committed: Iterable[SeatKey]) -> Optional[SeatKey]:
    """
    Return the first requested seat already present in `committed`,
    or None if the whole request can be accepted.
    """
    committed_set = committed if isinstance(committed, (set, frozenset)) else set(committed)
    for seat in requested:
        key = seat_key(seat)
        if key in committed_set:
            return key
    return None
