"""Storage collaborator interface.

The itinerary engine only talks to storage through ``TableStore``: a
row-oriented store reachable via get/insert/update/delete/list operations
scoped by simple equality filters. Each call is its own transaction; the
engine never spans a transaction across calls.
"""

from collections.abc import Mapping
from enum import Enum
from typing import Any, Protocol

Row = dict[str, Any]

# Equality filters. A list/tuple/set value means "column IN values".
Filters = Mapping[str, Any]


class Table(str, Enum):
    """Tables known to the store."""

    trips = "trips"
    destinations = "destinations"
    transports = "transports"
    accommodations = "accommodations"
    trip_shares = "trip_shares"


PRIMARY_KEYS: dict[Table, str] = {
    Table.trips: "trip_id",
    Table.destinations: "destination_id",
    Table.transports: "transport_id",
    Table.accommodations: "accommodation_id",
    Table.trip_shares: "share_id",
}

# Columns carrying a unique constraint (besides the primary key)
UNIQUE_COLUMNS: dict[Table, tuple[str, ...]] = {
    Table.trip_shares: ("share_token",),
    Table.accommodations: ("destination_id",),
}

# Tables whose rows carry an updated_at column
TIMESTAMPED_TABLES = frozenset(
    {Table.trips, Table.destinations, Table.transports, Table.accommodations}
)


def matches(row: Row, filters: Filters) -> bool:
    """Check whether a row satisfies equality/membership filters."""
    for column, expected in filters.items():
        value = row.get(column)
        if isinstance(expected, (list, tuple, set, frozenset)):
            if value not in expected:
                return False
        elif value != expected:
            return False
    return True


class TableStore(Protocol):
    """Transactional row store used by every itinerary component."""

    def get(self, table: Table, filters: Filters) -> Row | None:
        """Get the first row matching filters.

        Args:
            table: Target table
            filters: Equality filters

        Returns:
            Row or None if nothing matches
        """
        ...

    def insert(self, table: Table, fields: Mapping[str, Any]) -> Row:
        """Insert a row and return it with generated columns.

        Raises:
            ConflictError: If a unique constraint is violated
            StorageError: On any other storage failure
        """
        ...

    def update(self, table: Table, filters: Filters, fields: Mapping[str, Any]) -> Row | None:
        """Update every row matching filters.

        Returns:
            First updated row, or None if nothing matched
        """
        ...

    def delete(self, table: Table, filters: Filters) -> None:
        """Delete every row matching filters."""
        ...

    def list(self, table: Table, filters: Filters, order_by: str | None = None) -> list[Row]:
        """List rows matching filters.

        Args:
            table: Target table
            filters: Equality filters
            order_by: Column name, prefixed with "-" for descending order.
                Ties are broken by primary key in the same direction, so
                "-created_at" lists the newest insert first even when
                timestamps collide.

        Returns:
            Matching rows
        """
        ...
