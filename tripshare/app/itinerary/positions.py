"""Ordered destinations: position assignment, updates, deletes and reorders.

Only ``reorder`` guarantees contiguous positions 0..n-1. ``create`` and
``delete`` may leave gaps or duplicates; read paths sort by position with
the destination id (insertion order) as tiebreak.
"""

import logging
import math
from collections.abc import Iterable, Sequence
from typing import Any, TypeVar

from tripshare.app.db.repositories import Table, TableStore
from tripshare.app.errors import NotFoundError, ValidationError
from tripshare.app.models.trip import Destination
from tripshare.app.utils.metrics import destination_reorders_total

logger = logging.getLogger(__name__)

D = TypeVar("D", bound=Destination)

# Sentinel for "field not supplied" in partial updates
UNSET: Any = object()


def normalize_city(city: str) -> str:
    """Trim a city name.

    Raises:
        ValidationError: If the city is blank
    """
    normalized = city.strip() if isinstance(city, str) else ""
    if not normalized:
        raise ValidationError("Destination city is required.")
    return normalized


def normalize_duration(duration: float) -> int:
    """Truncate toward zero and clamp to at least one day."""
    if not isinstance(duration, (int, float)) or not math.isfinite(duration):
        return 1
    normalized = math.trunc(duration)
    return normalized if normalized > 0 else 1


def normalize_position(position: float) -> int:
    """Floor to a non-negative integer position."""
    return max(0, math.floor(position))


def normalize_budget(budget: float | None) -> float | None:
    """Accept a finite number or None.

    Raises:
        ValidationError: If budget is not a finite number
    """
    if budget is None:
        return None
    if isinstance(budget, bool) or not isinstance(budget, (int, float)) or not math.isfinite(budget):
        raise ValidationError("Destination budget must be a valid number or null.")
    return float(budget)


def sort_by_position(destinations: Iterable[D]) -> list[D]:
    """Sort by position, breaking ties by insertion order (destination id)."""
    return sorted(destinations, key=lambda d: (d.position, d.destination_id))


class DestinationService:
    """Maintains the ordered sequence of destinations of a trip."""

    def __init__(self, store: TableStore) -> None:
        self._store = store

    def list_ordered(self, trip_id: int) -> list[Destination]:
        """List a trip's destinations in itinerary order."""
        rows = self._store.list(Table.destinations, {"trip_id": trip_id}, order_by="position")
        return sort_by_position(Destination.model_validate(row) for row in rows)

    def create(
        self, trip_id: int, city: str, duration: float, position: float | None = None
    ) -> Destination:
        """Create a destination.

        Args:
            trip_id: Parent trip
            city: City name (trimmed, must not be blank)
            duration: Days, truncated and clamped to >= 1
            position: Explicit position; appended after the current maximum if omitted

        Returns:
            Created destination

        Raises:
            ValidationError: If the city is blank
            NotFoundError: If the trip does not exist
        """
        normalized_city = normalize_city(city)

        if self._store.get(Table.trips, {"trip_id": trip_id}) is None:
            raise NotFoundError(f"Trip {trip_id} not found.")

        if isinstance(position, (int, float)) and math.isfinite(position):
            resolved_position = normalize_position(position)
        else:
            resolved_position = self._next_position(trip_id)

        row = self._store.insert(
            Table.destinations,
            {
                "trip_id": trip_id,
                "city": normalized_city,
                "duration": normalize_duration(duration),
                "position": resolved_position,
                "notes": None,
                "budget": None,
            },
        )
        return Destination.model_validate(row)

    def update(
        self,
        destination_id: int,
        trip_id: int,
        *,
        city: str = UNSET,
        duration: float = UNSET,
        position: float = UNSET,
        notes: str | None = UNSET,
        budget: float | None = UNSET,
    ) -> Destination:
        """Update only the supplied fields of a destination.

        Raises:
            ValidationError: If a supplied value is invalid
            NotFoundError: If the destination does not exist in the trip
        """
        updates: dict[str, Any] = {}
        if city is not UNSET:
            updates["city"] = normalize_city(city)
        if duration is not UNSET:
            updates["duration"] = normalize_duration(duration)
        if position is not UNSET:
            updates["position"] = normalize_position(position)
        if notes is not UNSET:
            updates["notes"] = notes
        if budget is not UNSET:
            updates["budget"] = normalize_budget(budget)

        filters = {"destination_id": destination_id, "trip_id": trip_id}

        if not updates:
            row = self._store.get(Table.destinations, filters)
        else:
            row = self._store.update(Table.destinations, filters, updates)

        if row is None:
            raise NotFoundError(f"Destination {destination_id} not found in trip {trip_id}.")

        return Destination.model_validate(row)

    def delete(self, destination_id: int, trip_id: int) -> None:
        """Delete a destination and its sub-entities. Remaining positions are not renumbered."""
        filters = {"destination_id": destination_id, "trip_id": trip_id}
        if self._store.get(Table.destinations, filters) is None:
            return

        self._store.delete(Table.transports, {"destination_id": destination_id})
        self._store.delete(Table.accommodations, {"destination_id": destination_id})
        self._store.delete(Table.destinations, filters)

    def reorder(self, trip_id: int, ordered_ids: Sequence[int]) -> None:
        """Assign positions 0..n-1 following ordered_ids.

        ordered_ids must be a permutation of exactly the trip's current
        destination ids. Nothing is written if it is not. A failing write
        propagates; earlier writes stay committed and the caller reverts its
        own speculative state.

        Raises:
            ValidationError: If ordered_ids has duplicates or is not a permutation
        """
        ids = list(ordered_ids)

        if len(set(ids)) != len(ids):
            destination_reorders_total.labels(outcome="rejected").inc()
            raise ValidationError("orderedIds must contain unique destination ids.")

        current = self._store.list(Table.destinations, {"trip_id": trip_id})
        current_ids = {row["destination_id"] for row in current}

        if set(ids) != current_ids:
            destination_reorders_total.labels(outcome="rejected").inc()
            raise ValidationError(
                "orderedIds must be a permutation of the trip's destination ids."
            )

        current_positions = {row["destination_id"]: row["position"] for row in current}

        try:
            for position, destination_id in enumerate(ids):
                if current_positions[destination_id] == position:
                    continue
                self._store.update(
                    Table.destinations,
                    {"trip_id": trip_id, "destination_id": destination_id},
                    {"position": position},
                )
        except Exception:
            destination_reorders_total.labels(outcome="failed").inc()
            logger.warning(
                "Destination reorder failed",
                extra={"structured": {"trip_id": trip_id, "count": len(ids)}},
            )
            raise

        destination_reorders_total.labels(outcome="success").inc()
        logger.info(
            "Destinations reordered",
            extra={"structured": {"trip_id": trip_id, "count": len(ids)}},
        )

    def _next_position(self, trip_id: int) -> int:
        rows = self._store.list(Table.destinations, {"trip_id": trip_id}, order_by="-position")
        if not rows:
            return 0
        return int(rows[0]["position"]) + 1
