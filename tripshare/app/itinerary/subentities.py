"""Upsert-or-skip rule for optional transport and accommodation records.

A sub-entity row is written only when the submitted candidate carries a
meaningful value, or when a row already exists for the same parent. Rows are
never deleted by an upsert, and fields absent from the candidate are left
untouched on update.
"""

import logging
from typing import Any

from pydantic import BaseModel, Field, field_validator

from tripshare.app.db.repositories import Table, TableStore
from tripshare.app.errors import NotFoundError, ValidationError
from tripshare.app.itinerary.positions import DestinationService
from tripshare.app.models.common import (
    DestinationLeg,
    TransportParent,
    TransportType,
    TripLeg,
)
from tripshare.app.models.trip import Accommodation, DestinationDetail, Transport

logger = logging.getLogger(__name__)

TRANSPORT_TEXT_FIELDS = (
    "leave_accommodation_time",
    "terminal",
    "company",
    "booking_number",
    "booking_code",
    "departure_time",
)

ACCOMMODATION_FIELDS = (
    "name",
    "check_in",
    "check_out",
    "booking_link",
    "booking_code",
    "address",
)


def normalize_optional_text(value: str | None) -> str | None:
    """Trim text; blank becomes None."""
    if value is None:
        return None
    normalized = value.strip()
    return normalized or None


class TransportInput(BaseModel):
    """Candidate transport values. Omitted fields are not touched on update."""

    transport_type: TransportType | None = None
    leave_accommodation_time: str | None = None
    terminal: str | None = None
    company: str | None = None
    booking_number: str | None = None
    booking_code: str | None = None
    departure_time: str | None = None

    @field_validator(*TRANSPORT_TEXT_FIELDS)
    @classmethod
    def trim_text(cls, v: str | None) -> str | None:
        """Trim text fields; blank becomes None."""
        return normalize_optional_text(v)


class AccommodationInput(BaseModel):
    """Candidate accommodation values. Omitted fields are not touched on update."""

    name: str | None = None
    check_in: str | None = None
    check_out: str | None = None
    booking_link: str | None = None
    booking_code: str | None = None
    address: str | None = None

    @field_validator(*ACCOMMODATION_FIELDS)
    @classmethod
    def trim_text(cls, v: str | None) -> str | None:
        """Trim text fields; blank becomes None."""
        return normalize_optional_text(v)


class DestinationDetailsInput(BaseModel):
    """Destination fields plus its transport and accommodation, saved together."""

    city: str
    duration: int = Field(..., ge=1)
    notes: str | None = None
    budget: float | None = None
    transport: TransportInput = Field(default_factory=TransportInput)
    accommodation: AccommodationInput = Field(default_factory=AccommodationInput)


def transport_has_values(candidate: TransportInput) -> bool:
    """A plane transport with every text field empty carries no values."""
    transport_type = candidate.transport_type or TransportType.plane
    if transport_type != TransportType.plane:
        return True
    return any(getattr(candidate, field) for field in TRANSPORT_TEXT_FIELDS)


def accommodation_has_values(candidate: AccommodationInput) -> bool:
    """Any non-empty field counts as a value."""
    return any(getattr(candidate, field) for field in ACCOMMODATION_FIELDS)


def _is_valid_id(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def resolve_transport_parent(
    destination_id: int | None, trip_id: int | None, role: str
) -> TransportParent:
    """Build the transport parent from raw sibling ids and a role.

    Raises:
        ValidationError: Unless exactly one valid parent id is given and the
            role matches the parent kind
    """
    has_destination = _is_valid_id(destination_id)
    has_trip = _is_valid_id(trip_id)

    if has_destination == has_trip:
        raise ValidationError(
            "Transport must include exactly one parent: destination_id or trip_id."
        )

    if has_destination:
        if role != "destination":
            raise ValidationError("Destination transports must use the destination role.")
        assert destination_id is not None
        return DestinationLeg(destination_id=destination_id)

    if role not in ("departure", "return"):
        raise ValidationError("Destination role requires destination_id.")
    assert trip_id is not None
    return TripLeg(trip_id=trip_id, kind=role)  # type: ignore[arg-type]


def _transport_filters(parent: TransportParent) -> dict[str, Any]:
    if isinstance(parent, DestinationLeg):
        return {"destination_id": parent.destination_id, "transport_role": "destination"}
    return {"trip_id": parent.trip_id, "transport_role": parent.kind}


class SubEntityUpserter:
    """Creates, updates or skips transport and accommodation rows."""

    def __init__(self, store: TableStore) -> None:
        self._store = store
        self._destinations = DestinationService(store)

    def get_transport(self, parent: TransportParent) -> Transport | None:
        """Get the transport stored for a parent, if any."""
        row = self._store.get(Table.transports, _transport_filters(parent))
        return Transport.model_validate(row) if row else None

    def get_accommodation(self, destination_id: int) -> Accommodation | None:
        """Get the accommodation stored for a destination, if any."""
        if not _is_valid_id(destination_id):
            raise ValidationError("destination_id must be a positive number.")
        row = self._store.get(Table.accommodations, {"destination_id": destination_id})
        return Accommodation.model_validate(row) if row else None

    def upsert_transport(
        self, parent: TransportParent, candidate: TransportInput
    ) -> Transport | None:
        """Insert, update or skip the transport of a parent.

        Returns:
            Stored transport, or None when skipped (no values and no prior row)

        Raises:
            ValidationError: If the parent id is invalid
            NotFoundError: If the parent row does not exist
        """
        self._check_transport_parent(parent)
        existing = self.get_transport(parent)

        if existing is None and not transport_has_values(candidate):
            logger.debug(
                "Skipped empty transport",
                extra={"structured": {"parent": _transport_filters(parent)}},
            )
            return None

        updates = self._supplied(candidate)

        if existing is not None:
            if not updates:
                return existing
            row = self._store.update(
                Table.transports, {"transport_id": existing.transport_id}, updates
            )
            if row is None:
                raise NotFoundError(f"Transport {existing.transport_id} disappeared.")
            return Transport.model_validate(row)

        fields: dict[str, Any] = {"destination_id": None, "trip_id": None}
        fields.update(_transport_filters(parent))
        fields.update({name: None for name in TRANSPORT_TEXT_FIELDS})
        fields["transport_type"] = TransportType.plane.value
        fields.update(updates)

        row = self._store.insert(Table.transports, fields)
        return Transport.model_validate(row)

    def upsert_accommodation(
        self, destination_id: int, candidate: AccommodationInput
    ) -> Accommodation | None:
        """Insert, update or skip the accommodation of a destination.

        Returns:
            Stored accommodation, or None when skipped

        Raises:
            ValidationError: If destination_id is invalid
            NotFoundError: If the destination does not exist
        """
        existing = self.get_accommodation(destination_id)

        if existing is None and not accommodation_has_values(candidate):
            return None

        updates = self._supplied(candidate)

        if existing is not None:
            if not updates:
                return existing
            row = self._store.update(
                Table.accommodations,
                {"accommodation_id": existing.accommodation_id},
                updates,
            )
            if row is None:
                raise NotFoundError(f"Accommodation {existing.accommodation_id} disappeared.")
            return Accommodation.model_validate(row)

        if self._store.get(Table.destinations, {"destination_id": destination_id}) is None:
            raise NotFoundError(f"Destination {destination_id} not found.")

        fields: dict[str, Any] = {name: None for name in ACCOMMODATION_FIELDS}
        fields["destination_id"] = destination_id
        fields.update(updates)

        row = self._store.insert(Table.accommodations, fields)
        return Accommodation.model_validate(row)

    def save_destination_details(
        self, trip_id: int, destination_id: int, details: DestinationDetailsInput
    ) -> DestinationDetail:
        """Update a destination, then upsert its transport and accommodation.

        The three writes are independent: a failure in a later step leaves
        the earlier ones committed.
        """
        destination = self._destinations.update(
            destination_id,
            trip_id,
            city=details.city,
            duration=details.duration,
            notes=details.notes,
            budget=details.budget,
        )

        transport = self.upsert_transport(DestinationLeg(destination_id=destination_id), details.transport)
        accommodation = self.upsert_accommodation(destination_id, details.accommodation)

        logger.info(
            "Destination details saved",
            extra={
                "structured": {
                    "trip_id": trip_id,
                    "destination_id": destination_id,
                    "transport": transport is not None,
                    "accommodation": accommodation is not None,
                }
            },
        )

        return DestinationDetail(
            **destination.model_dump(),
            transport=transport,
            accommodation=accommodation,
        )

    def _check_transport_parent(self, parent: TransportParent) -> None:
        if isinstance(parent, DestinationLeg):
            if not _is_valid_id(parent.destination_id):
                raise ValidationError("destinationId must be a positive number.")
            if self._store.get(Table.destinations, {"destination_id": parent.destination_id}) is None:
                raise NotFoundError(f"Destination {parent.destination_id} not found.")
            return

        if not _is_valid_id(parent.trip_id):
            raise ValidationError("tripId must be a positive number.")
        if parent.kind not in ("departure", "return"):
            raise ValidationError("Trip transports must use the departure or return role.")
        if self._store.get(Table.trips, {"trip_id": parent.trip_id}) is None:
            raise NotFoundError(f"Trip {parent.trip_id} not found.")

    @staticmethod
    def _supplied(candidate: BaseModel) -> dict[str, Any]:
        updates = candidate.model_dump(include=candidate.model_fields_set, mode="json")
        # A null type means "not supplied"; the column is never null
        if updates.get("transport_type", "") is None:
            del updates["transport_type"]
        return updates
