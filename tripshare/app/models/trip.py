"""Trip models - stored rows and the aggregated read model."""

from datetime import date, datetime

from pydantic import BaseModel, Field

from tripshare.app.models.common import (
    DestinationLeg,
    TransportParent,
    TransportRole,
    TransportType,
    TripLeg,
)


class Trip(BaseModel):
    """A user's trip."""

    trip_id: int
    user_id: int
    title: str
    start_date: date | None = None
    departure_city: str
    return_city: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class Destination(BaseModel):
    """One ordered stop of a trip."""

    destination_id: int
    trip_id: int
    city: str
    duration: int = Field(..., ge=1)
    position: int = Field(..., ge=0)
    notes: str | None = None
    budget: float | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class Transport(BaseModel):
    """Transport attached to a destination or to a trip leg."""

    transport_id: int
    destination_id: int | None = None
    trip_id: int | None = None
    transport_role: TransportRole
    transport_type: TransportType = TransportType.plane
    leave_accommodation_time: str | None = None
    terminal: str | None = None
    company: str | None = None
    booking_number: str | None = None
    booking_code: str | None = None
    departure_time: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def parent(self) -> TransportParent:
        """Parent as a tagged union instead of nullable sibling ids."""
        if self.transport_role == "destination":
            assert self.destination_id is not None
            return DestinationLeg(destination_id=self.destination_id)
        assert self.trip_id is not None
        return TripLeg(trip_id=self.trip_id, kind=self.transport_role)


class Accommodation(BaseModel):
    """Lodging attached to a destination."""

    accommodation_id: int
    destination_id: int
    name: str | None = None
    check_in: str | None = None
    check_out: str | None = None
    booking_link: str | None = None
    booking_code: str | None = None
    address: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ShareLink(BaseModel):
    """Token-addressable read-only view of a trip."""

    share_id: int
    trip_id: int
    share_token: str
    is_active: bool = True
    expires_at: datetime | None = None
    created_at: datetime | None = None


class DestinationDetail(Destination):
    """Destination with its optional transport and accommodation."""

    transport: Transport | None = None
    accommodation: Accommodation | None = None


class TripDetail(Trip):
    """Trip read model consumed by the UI, share links and export."""

    destinations: list[DestinationDetail] = Field(default_factory=list)
    departure_transport: Transport | None = None
    return_transport: Transport | None = None

    @property
    def total_days(self) -> int:
        """Sum of destination durations."""
        return sum(d.duration or 0 for d in self.destinations)


class TripSummary(BaseModel):
    """Trip list entry with destination stats."""

    trip: Trip
    destination_count: int
    total_days: int
