"""Unit tests for the in-memory table store."""

import pytest

from tripshare.app.db.inmemory import InMemoryTableStore
from tripshare.app.db.repositories import Table
from tripshare.app.errors import ConflictError


def test_insert_assigns_ids_and_timestamps(store: InMemoryTableStore) -> None:
    """Primary keys auto-increment per table; timestamps are set."""
    first = store.insert(Table.trips, {"user_id": 1, "title": "A"})
    second = store.insert(Table.trips, {"user_id": 1, "title": "B"})

    assert (first["trip_id"], second["trip_id"]) == (1, 2)
    assert first["created_at"] is not None
    assert first["updated_at"] is not None


def test_returned_rows_are_copies(store: InMemoryTableStore) -> None:
    """Mutating a returned row does not affect stored state."""
    row = store.insert(Table.trips, {"user_id": 1, "title": "A"})
    row["title"] = "changed"

    stored = store.get(Table.trips, {"trip_id": row["trip_id"]})
    assert stored is not None
    assert stored["title"] == "A"


def test_unique_columns_raise_conflict(store: InMemoryTableStore) -> None:
    """Duplicate share tokens are rejected."""
    store.insert(Table.trip_shares, {"trip_id": 1, "share_token": "abc"})

    with pytest.raises(ConflictError):
        store.insert(Table.trip_shares, {"trip_id": 2, "share_token": "abc"})


def test_membership_filters(store: InMemoryTableStore) -> None:
    """Sequence filter values mean "column IN values"."""
    for city in ("A", "B", "C"):
        store.insert(Table.destinations, {"trip_id": 1, "city": city, "position": 0})

    rows = store.list(Table.destinations, {"destination_id": [1, 3]})

    assert [row["city"] for row in rows] == ["A", "C"]


def test_ordering_puts_nulls_last_and_breaks_ties_by_id(store: InMemoryTableStore) -> None:
    """Ties follow the primary key in the sort direction; NULLs go last both ways."""
    store.insert(Table.destinations, {"trip_id": 1, "city": "A", "position": 1})
    store.insert(Table.destinations, {"trip_id": 1, "city": "B", "position": None})
    store.insert(Table.destinations, {"trip_id": 1, "city": "C", "position": 0})
    store.insert(Table.destinations, {"trip_id": 1, "city": "D", "position": 1})

    ascending = store.list(Table.destinations, {"trip_id": 1}, order_by="position")
    descending = store.list(Table.destinations, {"trip_id": 1}, order_by="-position")

    assert [row["city"] for row in ascending] == ["C", "A", "D", "B"]
    assert [row["city"] for row in descending] == ["D", "A", "C", "B"]


def test_update_and_delete(store: InMemoryTableStore) -> None:
    """Update returns the first updated row; delete removes matches."""
    row = store.insert(Table.trips, {"user_id": 1, "title": "A"})

    updated = store.update(Table.trips, {"trip_id": row["trip_id"]}, {"title": "B"})
    assert updated is not None
    assert updated["title"] == "B"
    assert store.update(Table.trips, {"trip_id": 404}, {"title": "C"}) is None

    store.delete(Table.trips, {"trip_id": row["trip_id"]})
    assert store.get(Table.trips, {"trip_id": row["trip_id"]}) is None
