"""
Theatre model with its seat layout.

Rows are labelled A, B, C, ... and seats are numbered from 1 within a row,
so the layout is fully described by `rows` x `seats_per_row`.
"""

from sqlalchemy import Column, Integer, String, CheckConstraint

from cinema_booking.db.base import Base, TimestampMixin


class Theatre(Base, TimestampMixin):
    __tablename__ = "theatres"

    id = Column(String(36), primary_key=True)
    name = Column(String(255), nullable=False)
    location = Column(String(255), nullable=False)
    rows = Column(Integer, nullable=False)
    seats_per_row = Column(Integer, nullable=False)
    total_seats = Column(Integer, nullable=False)


    __table_args__ = (
        CheckConstraint("rows > 0 AND rows <= 26", name="check_theatre_rows_range"),
        CheckConstraint("seats_per_row > 0", name="check_theatre_seats_per_row_positive"),
        CheckConstraint("total_seats = rows * seats_per_row", name="check_theatre_total_seats"),
    )

    def __repr__(self) -> str:
        return f"<Theatre(id={self.id}, name={self.name}, layout={self.rows}x{self.seats_per_row})>"
