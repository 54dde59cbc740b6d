"""
Booking model representing a user's seat reservation for a showtime.

Key design decisions:
- `seats` keeps the caller's ordered seat list as JSON, even after cancellation
- Status field allows cancellation without deleting records
- Which seats are currently held is answered by SeatClaim, not by scanning bookings
"""

from sqlalchemy import Column, Integer, String, Float, JSON, ForeignKey, Index, CheckConstraint

from cinema_booking.db.base import Base, TimestampMixin

BOOKING_CONFIRMED = "confirmed"
BOOKING_CANCELLED = "cancelled"


class Booking(Base, TimestampMixin):
    __tablename__ = "bookings"

    id = Column(String(36), primary_key=True)
    user_id = Column(String(64), nullable=False, index=True)
    showtime_id = Column(String(36), ForeignKey("showtimes.id"), nullable=False, index=True)
    seats = Column(JSON, nullable=False)
    seat_count = Column(Integer, nullable=False)
    total_amount = Column(Float, nullable=False)
    status = Column(String(20), nullable=False, default=BOOKING_CONFIRMED)

    __table_args__ = (
        CheckConstraint("seat_count > 0", name="check_booking_seat_count_positive"),
        CheckConstraint("total_amount > 0", name="check_booking_total_amount_positive"),
        CheckConstraint("status IN ('confirmed', 'cancelled')", name="check_booking_status"),
        Index("ix_bookings_showtime_status", "showtime_id", "status"),
    )

    @property
    def is_cancelled(self) -> bool:
        return self.status == BOOKING_CANCELLED

    def __repr__(self) -> str:
        return f"<Booking(id={self.id}, user={self.user_id}, showtime={self.showtime_id}, status={self.status})>"
