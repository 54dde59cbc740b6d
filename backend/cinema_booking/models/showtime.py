"""
Showtime model: one screening of a movie at a theatre.

Showtimes are immutable catalog facts once scheduled. Remaining capacity
lives in ShowtimeInventory, never on this row.
"""

from sqlalchemy import Column, String, Float, DateTime, ForeignKey, Index, CheckConstraint
from sqlalchemy.orm import relationship

from cinema_booking.db.base import Base, TimestampMixin


class Showtime(Base, TimestampMixin):
    __tablename__ = "showtimes"

    id = Column(String(36), primary_key=True)
    movie_id = Column(String(64), nullable=False)
    theatre_id = Column(String(36), ForeignKey("theatres.id"), nullable=False)
    show_date = Column(DateTime(timezone=True), nullable=False)
    price = Column(Float, nullable=False)

    theatre = relationship("Theatre", lazy="joined")
    inventory = relationship("ShowtimeInventory", uselist=False, lazy="joined")

    __table_args__ = (
        CheckConstraint("price > 0", name="check_showtime_price_positive"),
        Index("ix_showtimes_movie_id", "movie_id"),
        Index("ix_showtimes_theatre_id", "theatre_id"),
    )

    def __repr__(self) -> str:
        return f"<Showtime(id={self.id}, movie={self.movie_id}, theatre={self.theatre_id})>"
