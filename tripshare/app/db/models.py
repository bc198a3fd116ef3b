"""SQLAlchemy ORM models for trips, destinations, sub-entities and share links."""

from datetime import date, datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy.sql import func


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


class Trip(Base):
    """Trip table - owned by exactly one user."""

    __tablename__ = "trips"
    __table_args__ = (Index("idx_trips_user", "user_id", "created_at"),)

    trip_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    departure_city: Mapped[str] = mapped_column(Text, nullable=False)
    return_city: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    # Relationships
    destinations: Mapped[list["Destination"]] = relationship(
        "Destination", back_populates="trip", passive_deletes=True
    )
    shares: Mapped[list["TripShare"]] = relationship(
        "TripShare", back_populates="trip", passive_deletes=True
    )


class Destination(Base):
    """Destination table - one ordered stop of a trip."""

    __tablename__ = "destinations"
    __table_args__ = (
        Index("idx_destinations_trip_position", "trip_id", "position"),
        CheckConstraint("duration >= 1", name="ck_destinations_duration"),
        CheckConstraint("position >= 0", name="ck_destinations_position"),
    )

    destination_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    trip_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("trips.trip_id", ondelete="CASCADE"), nullable=False
    )
    city: Mapped[str] = mapped_column(Text, nullable=False)
    duration: Mapped[int] = mapped_column(Integer, nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    budget: Mapped[float | None] = mapped_column(Float, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    # Relationships
    trip: Mapped["Trip"] = relationship("Trip", back_populates="destinations")


class Transport(Base):
    """Transport table - attached to a destination or to a trip's departure/return leg."""

    __tablename__ = "transports"
    __table_args__ = (
        CheckConstraint(
            "(destination_id IS NOT NULL AND trip_id IS NULL AND transport_role = 'destination')"
            " OR (destination_id IS NULL AND trip_id IS NOT NULL"
            " AND transport_role IN ('departure', 'return'))",
            name="ck_transports_parent_role",
        ),
        CheckConstraint(
            "transport_type IN ('plane', 'train', 'bus')", name="ck_transports_type"
        ),
        Index("idx_transports_destination", "destination_id", "transport_role"),
        Index("idx_transports_trip", "trip_id", "transport_role"),
    )

    transport_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    destination_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("destinations.destination_id", ondelete="CASCADE"), nullable=True
    )
    trip_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("trips.trip_id", ondelete="CASCADE"), nullable=True
    )
    transport_role: Mapped[str] = mapped_column(Text, nullable=False)
    transport_type: Mapped[str] = mapped_column(Text, nullable=False, default="plane")
    leave_accommodation_time: Mapped[str | None] = mapped_column(Text, nullable=True)
    terminal: Mapped[str | None] = mapped_column(Text, nullable=True)
    company: Mapped[str | None] = mapped_column(Text, nullable=True)
    booking_number: Mapped[str | None] = mapped_column(Text, nullable=True)
    booking_code: Mapped[str | None] = mapped_column(Text, nullable=True)
    departure_time: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )


class Accommodation(Base):
    """Accommodation table - at most one per destination."""

    __tablename__ = "accommodations"
    __table_args__ = (
        UniqueConstraint("destination_id", name="uq_accommodations_destination"),
    )

    accommodation_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    destination_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("destinations.destination_id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str | None] = mapped_column(Text, nullable=True)
    check_in: Mapped[str | None] = mapped_column(Text, nullable=True)
    check_out: Mapped[str | None] = mapped_column(Text, nullable=True)
    booking_link: Mapped[str | None] = mapped_column(Text, nullable=True)
    booking_code: Mapped[str | None] = mapped_column(Text, nullable=True)
    address: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )


class TripShare(Base):
    """Share link table - append-only, deactivated by soft update."""

    __tablename__ = "trip_shares"
    __table_args__ = (
        UniqueConstraint("share_token", name="uq_trip_shares_token"),
        Index("idx_trip_shares_trip", "trip_id"),
    )

    share_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    trip_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("trips.trip_id", ondelete="CASCADE"), nullable=False
    )
    share_token: Mapped[str] = mapped_column(Text, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    # Relationships
    trip: Mapped["Trip"] = relationship("Trip", back_populates="shares")
