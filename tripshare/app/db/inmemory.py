"""In-memory implementation of the TableStore interface."""

import copy
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

from tripshare.app.db.repositories import (
    PRIMARY_KEYS,
    TIMESTAMPED_TABLES,
    UNIQUE_COLUMNS,
    Filters,
    Row,
    Table,
    matches,
)
from tripshare.app.errors import ConflictError


class InMemoryTableStore:
    """In-memory implementation of TableStore.

    Rows are kept per table keyed by an auto-incremented integer id.
    Returned rows are copies so callers cannot mutate stored state.
    """

    def __init__(self) -> None:
        self._rows: dict[Table, dict[int, Row]] = {table: {} for table in Table}
        self._next_ids: dict[Table, int] = {table: 1 for table in Table}

    def get(self, table: Table, filters: Filters) -> Row | None:
        """Get the first row matching filters."""
        for row_id in sorted(self._rows[table]):
            row = self._rows[table][row_id]
            if matches(row, filters):
                return copy.deepcopy(row)
        return None

    def insert(self, table: Table, fields: Mapping[str, Any]) -> Row:
        """Insert a row, enforcing unique columns."""
        row = dict(fields)
        self._check_unique(table, row, exclude_id=None)

        pk = PRIMARY_KEYS[table]
        row_id = self._next_ids[table]
        self._next_ids[table] += 1

        now = datetime.now(timezone.utc)
        row[pk] = row_id
        row.setdefault("created_at", now)
        if table in TIMESTAMPED_TABLES:
            row.setdefault("updated_at", now)

        self._rows[table][row_id] = row
        return copy.deepcopy(row)

    def update(self, table: Table, filters: Filters, fields: Mapping[str, Any]) -> Row | None:
        """Update every row matching filters."""
        pk = PRIMARY_KEYS[table]
        first: Row | None = None

        for row_id in sorted(self._rows[table]):
            row = self._rows[table][row_id]
            if not matches(row, filters):
                continue

            updated = {**row, **fields}
            updated[pk] = row_id
            self._check_unique(table, updated, exclude_id=row_id)
            if table in TIMESTAMPED_TABLES:
                updated["updated_at"] = datetime.now(timezone.utc)

            self._rows[table][row_id] = updated
            if first is None:
                first = copy.deepcopy(updated)

        return first

    def delete(self, table: Table, filters: Filters) -> None:
        """Delete every row matching filters."""
        doomed = [row_id for row_id, row in self._rows[table].items() if matches(row, filters)]
        for row_id in doomed:
            del self._rows[table][row_id]

    def list(self, table: Table, filters: Filters, order_by: str | None = None) -> list[Row]:
        """List rows matching filters."""
        rows = [
            copy.deepcopy(self._rows[table][row_id])
            for row_id in sorted(self._rows[table])
            if matches(self._rows[table][row_id], filters)
        ]

        if order_by:
            column = order_by.lstrip("-")
            descending = order_by.startswith("-")
            pk = PRIMARY_KEYS[table]
            present = [r for r in rows if r.get(column) is not None]
            missing = [r for r in rows if r.get(column) is None]
            # Ties follow the primary key in the sort direction; NULLs go last
            present.sort(key=lambda r: (r[column], r[pk]), reverse=descending)
            rows = present + missing

        return rows

    def _check_unique(self, table: Table, row: Row, exclude_id: int | None) -> None:
        for column in UNIQUE_COLUMNS.get(table, ()):
            value = row.get(column)
            if value is None:
                continue
            for row_id, existing in self._rows[table].items():
                if row_id != exclude_id and existing.get(column) == value:
                    raise ConflictError(f"duplicate value for {table.value}.{column}")
