"""
Committed-seat index.

One row per seat held by a confirmed booking. The composite primary key
(showtime_id, row, number) means the database itself refuses a second
active holder of a seat. Rows are deleted when their booking is cancelled.
"""

from sqlalchemy import Column, Integer, String, ForeignKey

from cinema_booking.db.base import Base


class SeatClaim(Base):
    __tablename__ = "seat_claims"

    showtime_id = Column(String(36), ForeignKey("showtimes.id"), primary_key=True)
    row = Column(String(5), primary_key=True)
    number = Column(Integer, primary_key=True)
    booking_id = Column(String(36), ForeignKey("bookings.id"), nullable=False, index=True)

    def __repr__(self) -> str:
        return f"<SeatClaim(showtime={self.showtime_id}, seat={self.row}{self.number}, booking={self.booking_id})>"
