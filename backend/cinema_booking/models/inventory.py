"""
Per-showtime capacity record.

Key design decisions:
- Separate from Showtime so the catalog row stays immutable
- `version` column enables compare-and-swap updates
- CHECK constraints keep available_count inside [0, total_capacity] even if
  a writer bypasses the service layer
"""

from sqlalchemy import Column, Integer, String, ForeignKey, CheckConstraint

from cinema_booking.db.base import Base, TimestampMixin


class ShowtimeInventory(Base, TimestampMixin):
    __tablename__ = "showtime_inventory"

    showtime_id = Column(String(36), ForeignKey("showtimes.id"), primary_key=True)
    theatre_id = Column(String(36), ForeignKey("theatres.id"), nullable=False)
    total_capacity = Column(Integer, nullable=False)
    available_count = Column(Integer, nullable=False)

    # Optimistic locking version counter
    version = Column(Integer, nullable=False, default=1)

    __table_args__ = (
        CheckConstraint("total_capacity > 0", name="check_inventory_capacity_positive"),
        CheckConstraint("available_count >= 0", name="check_inventory_available_non_negative"),
        CheckConstraint("available_count <= total_capacity", name="check_inventory_available_lte_total"),
    )

    def __repr__(self) -> str:
        return (
            f"<ShowtimeInventory(showtime={self.showtime_id}, "
            f"available={self.available_count}/{self.total_capacity}, v={self.version})>"
        )
