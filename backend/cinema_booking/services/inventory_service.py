"""
Showtime inventory: the authoritative remaining-capacity counter.

CONCURRENCY STRATEGY: Versioned compare-and-swap
================================================

Callers already hold the showtime lock (see booking_service), so in the
normal case nobody else touches the row. The version check is the backstop
for writers that bypass the lock:

  UPDATE showtime_inventory
     SET available_count = :new, version = version + 1
   WHERE showtime_id = :id AND version = :seen_version

  rows_affected == 0 -> the row changed since we read it -> InvalidAdjustment

Range checks happen here first, and CHECK constraints on the table are the
final safety net (0 <= available_count <= total_capacity).
"""

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from cinema_booking.models.inventory import ShowtimeInventory
from cinema_booking.core.exceptions import InvalidAdjustmentError, NotFoundError
from cinema_booking.core.logging import get_logger

logger = get_logger(__name__)


async def load_inventory(db: AsyncSession, showtime_id: str) -> ShowtimeInventory:
    """Read the current counter, bypassing any stale copy in the session."""
    result = await db.execute(
        select(ShowtimeInventory)
        .where(ShowtimeInventory.showtime_id == showtime_id)
        .execution_options(populate_existing=True)
    )
    inventory = result.scalar_one_or_none()
    if inventory is None:
        raise NotFoundError("Showtime inventory", showtime_id)
    return inventory


async def _apply(db: AsyncSession, inventory: ShowtimeInventory, delta: int) -> ShowtimeInventory:
    new_count = inventory.available_count + delta
    if new_count < 0 or new_count > inventory.total_capacity:
        raise InvalidAdjustmentError(
            f"Adjustment {delta:+d} would leave {new_count} of "
            f"{inventory.total_capacity} seats available",
            showtime_id=inventory.showtime_id,
        )

    seen_version = inventory.version
    result = await db.execute(
        update(ShowtimeInventory)
        .where(
            ShowtimeInventory.showtime_id == inventory.showtime_id,
            ShowtimeInventory.version == seen_version,
        )
        .values(
            available_count=new_count,
            version=ShowtimeInventory.version + 1,
        )
        .execution_options(synchronize_session=False)
    )

    if result.rowcount == 0:
        logger.warning(
            "inventory_version_conflict",
            showtime_id=inventory.showtime_id,
            version=seen_version,
        )
        raise InvalidAdjustmentError(
            "Inventory was modified concurrently",
            showtime_id=inventory.showtime_id,
        )

    inventory = await load_inventory(db, inventory.showtime_id)
    logger.debug(
        "inventory_adjusted",
        showtime_id=inventory.showtime_id,
        delta=delta,
        available=inventory.available_count,
        version=inventory.version,
    )
    return inventory


async def decrement(db: AsyncSession, inventory: ShowtimeInventory, n: int) -> ShowtimeInventory:
    """Take `n` seats out of the available count."""
    if n <= 0:
        raise InvalidAdjustmentError(f"Seat count must be positive, got {n}", inventory.showtime_id)
    return await _apply(db, inventory, -n)


async def increment(db: AsyncSession, inventory: ShowtimeInventory, n: int) -> ShowtimeInventory:
    """Return `n` seats to the available count."""
    if n <= 0:
        raise InvalidAdjustmentError(f"Seat count must be positive, got {n}", inventory.showtime_id)
    return await _apply(db, inventory, n)
