"""Initial schema: theatres, showtimes, inventory, bookings and seat claims.

Revision ID: 001
Revises: None
Create Date: 2026-10-17
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    op.create_table(
        "theatres",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("location", sa.String(255), nullable=False),
        sa.Column("rows", sa.Integer(), nullable=False),
        sa.Column("seats_per_row", sa.Integer(), nullable=False),
        sa.Column("total_seats", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint("rows > 0 AND rows <= 26", name="check_theatre_rows_range"),
        sa.CheckConstraint("seats_per_row > 0", name="check_theatre_seats_per_row_positive"),
        sa.CheckConstraint("total_seats = rows * seats_per_row", name="check_theatre_total_seats"),
    )

    op.create_table(
        "showtimes",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("movie_id", sa.String(64), nullable=False),
        sa.Column("theatre_id", sa.String(36), sa.ForeignKey("theatres.id"), nullable=False),
        sa.Column("show_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("price", sa.Float(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint("price > 0", name="check_showtime_price_positive"),
    )
    op.create_index("ix_showtimes_movie_id", "showtimes", ["movie_id"])
    op.create_index("ix_showtimes_theatre_id", "showtimes", ["theatre_id"])

    # One capacity counter per showtime, versioned for compare-and-swap updates.
    # The CHECK constraints are the last line of defence against overbooking.
    op.create_table(
        "showtime_inventory",
        sa.Column("showtime_id", sa.String(36), sa.ForeignKey("showtimes.id"), primary_key=True),
        sa.Column("theatre_id", sa.String(36), sa.ForeignKey("theatres.id"), nullable=False),
        sa.Column("total_capacity", sa.Integer(), nullable=False),
        sa.Column("available_count", sa.Integer(), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False, server_default=sa.text("1")),
        *_timestamps(),
        sa.CheckConstraint("total_capacity > 0", name="check_inventory_capacity_positive"),
        sa.CheckConstraint("available_count >= 0", name="check_inventory_available_non_negative"),
        sa.CheckConstraint("available_count <= total_capacity", name="check_inventory_available_lte_total"),
    )

    op.create_table(
        "bookings",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("showtime_id", sa.String(36), sa.ForeignKey("showtimes.id"), nullable=False),
        sa.Column("seats", sa.JSON(), nullable=False),
        sa.Column("seat_count", sa.Integer(), nullable=False),
        sa.Column("total_amount", sa.Float(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'confirmed'")),
        *_timestamps(),
        sa.CheckConstraint("seat_count > 0", name="check_booking_seat_count_positive"),
        sa.CheckConstraint("total_amount > 0", name="check_booking_total_amount_positive"),
        sa.CheckConstraint("status IN ('confirmed', 'cancelled')", name="check_booking_status"),
    )
    op.create_index("ix_bookings_user_id", "bookings", ["user_id"])
    op.create_index("ix_bookings_showtime_id", "bookings", ["showtime_id"])
    op.create_index("ix_bookings_showtime_status", "bookings", ["showtime_id", "status"])

    # Committed-seat index. The primary key rejects a second active holder
    # of the same seat even if a writer skips the showtime lock.
    op.create_table(
        "seat_claims",
        sa.Column("showtime_id", sa.String(36), sa.ForeignKey("showtimes.id"), primary_key=True),
        sa.Column("row", sa.String(5), primary_key=True),
        sa.Column("number", sa.Integer(), primary_key=True),
        sa.Column("booking_id", sa.String(36), sa.ForeignKey("bookings.id"), nullable=False),
    )
    op.create_index("ix_seat_claims_booking_id", "seat_claims", ["booking_id"])


def downgrade() -> None:
    op.drop_table("seat_claims")
    op.drop_table("bookings")
    op.drop_table("showtime_inventory")
    op.drop_table("showtimes")
    op.drop_table("theatres")
