"""Initial schema

Revision ID: 001
Revises:
Create Date: 2026-10-19

Creates all tables:
- trips
- destinations
- transports, accommodations
- trip_shares
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    """Create all tables."""
    # trips table
    op.create_table(
        "trips",
        sa.Column("trip_id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=True),
        sa.Column("departure_city", sa.Text(), nullable=False),
        sa.Column("return_city", sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index("idx_trips_user", "trips", ["user_id", "created_at"])

    # destinations table
    op.create_table(
        "destinations",
        sa.Column("destination_id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("trip_id", sa.Integer(), nullable=False),
        sa.Column("city", sa.Text(), nullable=False),
        sa.Column("duration", sa.Integer(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("budget", sa.Float(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["trip_id"], ["trips.trip_id"], ondelete="CASCADE"),
        sa.CheckConstraint("duration >= 1", name="ck_destinations_duration"),
        sa.CheckConstraint("position >= 0", name="ck_destinations_position"),
    )
    op.create_index("idx_destinations_trip_position", "destinations", ["trip_id", "position"])

    # transports table
    op.create_table(
        "transports",
        sa.Column("transport_id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("destination_id", sa.Integer(), nullable=True),
        sa.Column("trip_id", sa.Integer(), nullable=True),
        sa.Column("transport_role", sa.Text(), nullable=False),
        sa.Column("transport_type", sa.Text(), server_default="plane", nullable=False),
        sa.Column("leave_accommodation_time", sa.Text(), nullable=True),
        sa.Column("terminal", sa.Text(), nullable=True),
        sa.Column("company", sa.Text(), nullable=True),
        sa.Column("booking_number", sa.Text(), nullable=True),
        sa.Column("booking_code", sa.Text(), nullable=True),
        sa.Column("departure_time", sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["destination_id"], ["destinations.destination_id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["trip_id"], ["trips.trip_id"], ondelete="CASCADE"),
        sa.CheckConstraint(
            "(destination_id IS NOT NULL AND trip_id IS NULL AND transport_role = 'destination')"
            " OR (destination_id IS NULL AND trip_id IS NOT NULL"
            " AND transport_role IN ('departure', 'return'))",
            name="ck_transports_parent_role",
        ),
        sa.CheckConstraint("transport_type IN ('plane', 'train', 'bus')", name="ck_transports_type"),
    )
    op.create_index("idx_transports_destination", "transports", ["destination_id", "transport_role"])
    op.create_index("idx_transports_trip", "transports", ["trip_id", "transport_role"])

    # accommodations table
    op.create_table(
        "accommodations",
        sa.Column("accommodation_id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("destination_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.Text(), nullable=True),
        sa.Column("check_in", sa.Text(), nullable=True),
        sa.Column("check_out", sa.Text(), nullable=True),
        sa.Column("booking_link", sa.Text(), nullable=True),
        sa.Column("booking_code", sa.Text(), nullable=True),
        sa.Column("address", sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["destination_id"], ["destinations.destination_id"], ondelete="CASCADE"),
        sa.UniqueConstraint("destination_id", name="uq_accommodations_destination"),
    )

    # trip_shares table
    op.create_table(
        "trip_shares",
        sa.Column("share_id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("trip_id", sa.Integer(), nullable=False),
        sa.Column("share_token", sa.Text(), nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["trip_id"], ["trips.trip_id"], ondelete="CASCADE"),
        sa.UniqueConstraint("share_token", name="uq_trip_shares_token"),
    )
    op.create_index("idx_trip_shares_trip", "trip_shares", ["trip_id"])


def downgrade() -> None:
    """Drop all tables."""
    op.drop_index("idx_trip_shares_trip", table_name="trip_shares")
    op.drop_table("trip_shares")
    op.drop_table("accommodations")
    op.drop_index("idx_transports_trip", table_name="transports")
    op.drop_index("idx_transports_destination", table_name="transports")
    op.drop_table("transports")
    op.drop_index("idx_destinations_trip_position", table_name="destinations")
    op.drop_table("destinations")
    op.drop_index("idx_trips_user", table_name="trips")
    op.drop_table("trips")
