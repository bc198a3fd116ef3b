"""Trip lifecycle: create, update, delete, trip-leg transports and end-date changes."""

import logging
from datetime import date
from typing import Any

from tripshare.app.config import Settings, get_settings
from tripshare.app.db.repositories import Table, TableStore
from tripshare.app.errors import NotFoundError, ValidationError
from tripshare.app.itinerary.dates import EndDatePolicy, EndDateValidation, validate_end_date
from tripshare.app.itinerary.positions import UNSET, DestinationService
from tripshare.app.itinerary.subentities import (
    SubEntityUpserter,
    TransportInput,
    normalize_optional_text,
    resolve_transport_parent,
)
from tripshare.app.models.trip import Transport, Trip

logger = logging.getLogger(__name__)


class TripService:
    """Owns trip rows and the records hanging off them."""

    def __init__(self, store: TableStore, settings: Settings | None = None) -> None:
        self._store = store
        self._settings = settings or get_settings()
        self._destinations = DestinationService(store)
        self._upserter = SubEntityUpserter(store)

    def get(self, trip_id: int) -> Trip | None:
        """Get a bare trip row."""
        row = self._store.get(Table.trips, {"trip_id": trip_id})
        return Trip.model_validate(row) if row else None

    def create_trip(self, owner_id: int, title: str | None = None) -> Trip:
        """Create an empty trip; a blank title falls back to the default title."""
        row = self._store.insert(
            Table.trips,
            {
                "user_id": owner_id,
                "title": self._normalize_title(title),
                "start_date": None,
                "departure_city": self._settings.default_departure_city,
                "return_city": None,
            },
        )
        logger.info(
            "Trip created",
            extra={"structured": {"trip_id": row["trip_id"], "owner_id": owner_id}},
        )
        return Trip.model_validate(row)

    def update_trip(
        self,
        trip_id: int,
        *,
        title: str | None = UNSET,
        start_date: date | None = UNSET,
        departure_city: str | None = UNSET,
        return_city: str | None = UNSET,
    ) -> Trip:
        """Update only the supplied trip fields.

        A blank title or departure city falls back to its default; a blank
        return city clears it.

        Raises:
            NotFoundError: If the trip does not exist
        """
        updates: dict[str, Any] = {}
        if title is not UNSET:
            updates["title"] = self._normalize_title(title)
        if start_date is not UNSET:
            updates["start_date"] = start_date
        if departure_city is not UNSET:
            updates["departure_city"] = (
                normalize_optional_text(departure_city) or self._settings.default_departure_city
            )
        if return_city is not UNSET:
            updates["return_city"] = normalize_optional_text(return_city)

        filters = {"trip_id": trip_id}
        if updates:
            row = self._store.update(Table.trips, filters, updates)
        else:
            row = self._store.get(Table.trips, filters)

        if row is None:
            raise NotFoundError(f"Trip {trip_id} not found.")
        return Trip.model_validate(row)

    def delete_trip(self, trip_id: int) -> None:
        """Delete a trip with its share links, destinations and sub-entities."""
        if self._store.get(Table.trips, {"trip_id": trip_id}) is None:
            return

        destination_ids = [
            row["destination_id"]
            for row in self._store.list(Table.destinations, {"trip_id": trip_id})
        ]
        if destination_ids:
            self._store.delete(Table.transports, {"destination_id": destination_ids})
            self._store.delete(Table.accommodations, {"destination_id": destination_ids})
            self._store.delete(Table.destinations, {"trip_id": trip_id})

        self._store.delete(Table.transports, {"trip_id": trip_id})
        self._store.delete(Table.trip_shares, {"trip_id": trip_id})
        self._store.delete(Table.trips, {"trip_id": trip_id})

        logger.info(
            "Trip deleted",
            extra={"structured": {"trip_id": trip_id, "destinations": len(destination_ids)}},
        )

    def upsert_trip_transport(
        self, trip_id: int, role: str, candidate: TransportInput
    ) -> Transport | None:
        """Upsert the departure or return transport of a trip.

        Raises:
            ValidationError: If the role is not departure or return
            NotFoundError: If the trip does not exist
        """
        parent = resolve_transport_parent(None, trip_id, role)
        return self._upserter.upsert_transport(parent, candidate)

    def change_end_date(
        self, trip_id: int, proposed_end: date, policy: EndDatePolicy
    ) -> EndDateValidation:
        """Move the trip end date, filling any surplus days according to policy.

        Nothing is written when the validation fails, when there is no
        surplus, or when the trip has no destinations.

        Returns:
            Validation outcome with the day difference

        Raises:
            NotFoundError: If the trip does not exist
            ValidationError: If the trip has no start date
        """
        trip = self.get(trip_id)
        if trip is None:
            raise NotFoundError(f"Trip {trip_id} not found.")
        if trip.start_date is None:
            raise ValidationError("Set a start date before changing the end date.")

        destinations = self._destinations.list_ordered(trip_id)
        total_days = sum(d.duration for d in destinations)
        validation = validate_end_date(trip.start_date, proposed_end, total_days)

        surplus = validation.difference or 0
        if not validation.valid or surplus == 0 or not destinations:
            return validation

        if policy == EndDatePolicy.append:
            self._destinations.create(trip_id, self._settings.appended_destination_city, surplus)
        else:
            last = destinations[-1]
            self._destinations.update(
                last.destination_id, trip_id, duration=last.duration + surplus
            )

        logger.info(
            "Trip end date changed",
            extra={
                "structured": {"trip_id": trip_id, "policy": policy.value, "surplus": surplus}
            },
        )
        return validation

    def _normalize_title(self, title: str | None) -> str:
        return normalize_optional_text(title) or self._settings.default_trip_title
