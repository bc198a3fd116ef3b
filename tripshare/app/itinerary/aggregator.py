"""Assembles trips with destinations, transports and accommodations into read models."""

from pydantic import BaseModel

from tripshare.app.db.repositories import Table, TableStore
from tripshare.app.errors import NotFoundError
from tripshare.app.itinerary.dates import DateRange, derive_date_ranges
from tripshare.app.itinerary.positions import sort_by_position
from tripshare.app.models.trip import (
    Accommodation,
    DestinationDetail,
    Transport,
    Trip,
    TripDetail,
    TripSummary,
)


class TripView(BaseModel):
    """Trip read model plus the derived calendar of each destination."""

    trip: TripDetail
    dates: list[DateRange]
    total_days: int


def build_trip_view(detail: TripDetail) -> TripView:
    """Attach derived destination dates to a trip read model."""
    durations = [d.duration for d in detail.destinations]
    return TripView(
        trip=detail,
        dates=derive_date_ranges(detail.start_date, durations),
        total_days=detail.total_days,
    )


class TripAggregator:
    """Read-side assembly of a trip and its related records."""

    def __init__(self, store: TableStore) -> None:
        self._store = store

    def get_trip(self, trip_id: int) -> TripDetail | None:
        """Get a trip with ordered destinations and their sub-entities.

        Args:
            trip_id: Trip ID

        Returns:
            Trip read model or None if the trip does not exist
        """
        trip_row = self._store.get(Table.trips, {"trip_id": trip_id})
        if trip_row is None:
            return None

        destination_rows = self._store.list(
            Table.destinations, {"trip_id": trip_id}, order_by="position"
        )
        destination_ids = [row["destination_id"] for row in destination_rows]

        transports_by_destination: dict[int, Transport] = {}
        accommodations_by_destination: dict[int, Accommodation] = {}

        if destination_ids:
            for row in self._store.list(
                Table.transports,
                {"destination_id": destination_ids, "transport_role": "destination"},
            ):
                transport = Transport.model_validate(row)
                if transport.destination_id is not None:
                    transports_by_destination[transport.destination_id] = transport

            for row in self._store.list(
                Table.accommodations, {"destination_id": destination_ids}
            ):
                accommodation = Accommodation.model_validate(row)
                accommodations_by_destination[accommodation.destination_id] = accommodation

        trip_transports = [
            Transport.model_validate(row)
            for row in self._store.list(
                Table.transports,
                {"trip_id": trip_id, "transport_role": ["departure", "return"]},
            )
        ]

        destinations = sort_by_position(
            DestinationDetail(
                **row,
                transport=transports_by_destination.get(row["destination_id"]),
                accommodation=accommodations_by_destination.get(row["destination_id"]),
            )
            for row in destination_rows
        )

        return TripDetail(
            **trip_row,
            destinations=destinations,
            departure_transport=next(
                (t for t in trip_transports if t.transport_role == "departure"), None
            ),
            return_transport=next(
                (t for t in trip_transports if t.transport_role == "return"), None
            ),
        )

    def get_owned_trip(self, trip_id: int, owner_id: int) -> TripDetail:
        """Get a trip owned by a given user.

        Raises:
            NotFoundError: If the trip is absent or owned by someone else
        """
        detail = self.get_trip(trip_id)
        if detail is None or detail.user_id != owner_id:
            raise NotFoundError(f"Trip {trip_id} not found.")
        return detail

    def list_trips(self, owner_id: int) -> list[TripSummary]:
        """List a user's trips, newest first, with destination stats."""
        trips = [
            Trip.model_validate(row)
            for row in self._store.list(Table.trips, {"user_id": owner_id}, order_by="-created_at")
        ]
        if not trips:
            return []

        counts = {trip.trip_id: 0 for trip in trips}
        days = {trip.trip_id: 0 for trip in trips}

        for row in self._store.list(Table.destinations, {"trip_id": list(counts)}):
            counts[row["trip_id"]] += 1
            days[row["trip_id"]] += row.get("duration") or 0

        return [
            TripSummary(
                trip=trip,
                destination_count=counts[trip.trip_id],
                total_days=days[trip.trip_id],
            )
            for trip in trips
        ]
