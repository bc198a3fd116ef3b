"""Portable trip document: export, validation and import.

Export is a pure projection of the trip read model. Import validates the
whole document and checks every limit before the first write; after that
the writes run in sequence and are not rolled back if a later one fails.
"""

import logging
import math
from datetime import date
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from tripshare.app.config import Settings, get_settings
from tripshare.app.db.repositories import TableStore
from tripshare.app.errors import ValidationError
from tripshare.app.itinerary.positions import DestinationService
from tripshare.app.itinerary.subentities import (
    AccommodationInput,
    SubEntityUpserter,
    TransportInput,
    accommodation_has_values,
    normalize_optional_text,
    transport_has_values,
)
from tripshare.app.itinerary.trips import TripService
from tripshare.app.models.common import DestinationLeg
from tripshare.app.models.export import (
    ExportedAccommodation,
    ExportedDeparture,
    ExportedDestination,
    ExportedReturn,
    ExportedTransport,
    ExportedTrip,
)
from tripshare.app.models.trip import Accommodation, Transport, TripDetail
from tripshare.app.utils.metrics import trip_imports_total

logger = logging.getLogger(__name__)


def _export_transport(transport: Transport | None) -> ExportedTransport:
    if transport is None:
        return ExportedTransport()
    return ExportedTransport(
        type=transport.transport_type.value,
        leave_accommodation_time=transport.leave_accommodation_time,
        terminal=transport.terminal,
        company=transport.company,
        booking_number=transport.booking_number,
        booking_code=transport.booking_code,
        departure_time=transport.departure_time,
    )


def _export_accommodation(accommodation: Accommodation | None) -> ExportedAccommodation:
    if accommodation is None:
        return ExportedAccommodation()
    return ExportedAccommodation(
        check_in=accommodation.check_in,
        check_out=accommodation.check_out,
        name=accommodation.name,
        booking_link=accommodation.booking_link,
        booking_code=accommodation.booking_code,
        address=accommodation.address,
    )


def export_trip(detail: TripDetail) -> dict[str, Any]:
    """Project a trip read model onto the portable document format.

    A missing departure or return transport exports the whole leg as null;
    a missing destination transport or accommodation exports as ``{}``.

    Args:
        detail: Trip read model

    Returns:
        JSON-ready document with camelCase keys
    """
    start_date = detail.start_date.isoformat() if detail.start_date else None

    departure = None
    if detail.departure_transport is not None:
        departure = ExportedDeparture(
            type="departure",
            city=detail.departure_city,
            date=start_date,
            transport=_export_transport(detail.departure_transport),
        )

    return_leg = None
    if detail.return_transport is not None:
        return_leg = ExportedReturn(
            type="return",
            city=detail.return_city or detail.departure_city,
            transport=_export_transport(detail.return_transport),
        )

    destinations = [
        ExportedDestination(
            id=str(destination.destination_id),
            city=destination.city,
            duration=destination.duration,
            transport=_export_transport(destination.transport),
            accommodation=_export_accommodation(destination.accommodation),
            notes=destination.notes or "",
            budget=destination.budget,
        )
        for destination in detail.destinations
    ]

    document = ExportedTrip(
        title=detail.title,
        start_date=start_date,
        departure=departure,
        destinations=destinations,
        return_=return_leg,
    )

    # exclude_unset keeps absent sub-entities as {} instead of all-null objects
    return document.model_dump(by_alias=True, exclude_unset=True, mode="json")


def parse_import_document(document: Any) -> ExportedTrip:
    """Parse a document into the typed model.

    Raises:
        ValidationError: If the document does not match the format
    """
    if not isinstance(document, dict):
        raise ValidationError("Invalid import format.")
    try:
        return ExportedTrip.model_validate(document)
    except PydanticValidationError as e:
        raise ValidationError("Invalid import format.") from e


def validate_import_data(document: Any) -> bool:
    """Check whether a document is a well-formed trip export."""
    try:
        parse_import_document(document)
    except ValidationError:
        return False
    return True


def _parse_start_date(value: str | None) -> date | None:
    normalized = normalize_optional_text(value)
    if normalized is None:
        return None
    try:
        return date.fromisoformat(normalized)
    except ValueError as e:
        raise ValidationError(f"Invalid start date: {normalized!r}.") from e


def _finite_or_none(value: float | None) -> float | None:
    if value is None or not math.isfinite(value):
        return None
    return float(value)


def _transport_input(block: ExportedTransport) -> TransportInput:
    fields = block.model_dump(include=block.model_fields_set)
    if "type" in fields:
        fields["transport_type"] = fields.pop("type")
    return TransportInput.model_validate(fields)


def _accommodation_input(block: ExportedAccommodation) -> AccommodationInput:
    return AccommodationInput.model_validate(block.model_dump(include=block.model_fields_set))


class TripImporter:
    """Creates a new trip from a portable document."""

    def __init__(self, store: TableStore, settings: Settings | None = None) -> None:
        self._settings = settings or get_settings()
        self._trips = TripService(store, self._settings)
        self._destinations = DestinationService(store)
        self._upserter = SubEntityUpserter(store)

    def apply_import(self, document: Any, owner_id: int) -> int:
        """Import a document as a new trip owned by owner_id.

        Args:
            document: Decoded JSON document
            owner_id: Owner of the new trip

        Returns:
            ID of the created trip

        Raises:
            ValidationError: If the document is malformed, has too many
                destinations or an unparseable start date
        """
        try:
            parsed = parse_import_document(document)

            limit = self._settings.max_imported_destinations
            if len(parsed.destinations) > limit:
                raise ValidationError("The import file has too many destinations.")

            start_date = _parse_start_date(parsed.start_date)
            if start_date is None and parsed.departure is not None:
                start_date = _parse_start_date(parsed.departure.date)
        except ValidationError:
            trip_imports_total.labels(outcome="rejected").inc()
            raise

        trip = self._trips.create_trip(owner_id, parsed.title)
        trip_id = trip.trip_id

        departure_city = normalize_optional_text(parsed.departure.city if parsed.departure else None)
        self._trips.update_trip(
            trip_id,
            start_date=start_date,
            departure_city=departure_city,
            return_city=normalize_optional_text(parsed.return_.city if parsed.return_ else None),
        )

        for role, leg in (("departure", parsed.departure), ("return", parsed.return_)):
            if leg is None:
                continue
            candidate = _transport_input(leg.transport)
            if transport_has_values(candidate):
                self._trips.upsert_trip_transport(trip_id, role, candidate)

        for position, item in enumerate(parsed.destinations):
            self._import_destination(trip_id, position, item)

        trip_imports_total.labels(outcome="success").inc()
        logger.info(
            "Trip imported",
            extra={
                "structured": {
                    "trip_id": trip_id,
                    "owner_id": owner_id,
                    "destinations": len(parsed.destinations),
                }
            },
        )
        return trip_id

    def _import_destination(self, trip_id: int, position: int, item: ExportedDestination) -> None:
        destination = self._destinations.create(trip_id, item.city, item.duration, position)

        notes = normalize_optional_text(item.notes)
        budget = _finite_or_none(item.budget)
        if notes is not None or budget is not None:
            self._destinations.update(
                destination.destination_id, trip_id, notes=notes, budget=budget
            )

        transport = _transport_input(item.transport)
        if transport_has_values(transport):
            self._upserter.upsert_transport(
                DestinationLeg(destination_id=destination.destination_id), transport
            )

        accommodation = _accommodation_input(item.accommodation)
        if accommodation_has_values(accommodation):
            self._upserter.upsert_accommodation(destination.destination_id, accommodation)
