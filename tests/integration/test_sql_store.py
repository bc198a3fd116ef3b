"""Integration tests for the SQL table store and engine on SQLite."""

from collections.abc import Callable
from datetime import date, datetime, timedelta, timezone

import pytest
from sqlalchemy import text
from sqlalchemy.orm import Session

from tripshare.app.config import Settings
from tripshare.app.db.engine import create_engine_from_settings
from tripshare.app.db.repositories import Table
from tripshare.app.db.sql_repositories import SqlTableStore
from tripshare.app.errors import ConflictError, StorageError
from tripshare.app.itinerary.aggregator import TripAggregator
from tripshare.app.itinerary.codec import TripImporter, export_trip
from tripshare.app.itinerary.positions import DestinationService
from tripshare.app.itinerary.shares import ShareLinkIssuer
from tripshare.app.itinerary.trips import TripService


def test_create_engine_rejects_empty_url() -> None:
    """An empty database URL is a configuration error."""
    with pytest.raises(ValueError, match="DATABASE_URL"):
        create_engine_from_settings(Settings(database_url=""))


def test_crud_round_trip(sql_store: SqlTableStore, make_trip: Callable[..., int]) -> None:
    """Rows come back as plain dicts with generated columns."""
    trip_id = make_trip(sql_store, start_date=date(2025, 3, 1))

    row = sql_store.get(Table.trips, {"trip_id": trip_id})
    assert row is not None
    assert row["start_date"] == date(2025, 3, 1)
    assert row["created_at"] is not None

    updated = sql_store.update(Table.trips, {"trip_id": trip_id}, {"title": "Renamed"})
    assert updated is not None
    assert updated["title"] == "Renamed"

    sql_store.delete(Table.trips, {"trip_id": trip_id})
    assert sql_store.get(Table.trips, {"trip_id": trip_id}) is None


def test_duplicate_share_token_is_conflict(
    sql_store: SqlTableStore, make_trip: Callable[..., int]
) -> None:
    """The unique constraint surfaces as ConflictError and the session stays usable."""
    trip_id = make_trip(sql_store)
    sql_store.insert(Table.trip_shares, {"trip_id": trip_id, "share_token": "dup"})

    with pytest.raises(ConflictError):
        sql_store.insert(Table.trip_shares, {"trip_id": trip_id, "share_token": "dup"})

    assert len(sql_store.list(Table.trip_shares, {"trip_id": trip_id})) == 1


def test_check_constraint_is_storage_error(
    sql_store: SqlTableStore, make_trip: Callable[..., int]
) -> None:
    """Non-unique integrity failures are opaque storage errors."""
    trip_id = make_trip(sql_store)

    with pytest.raises(StorageError):
        sql_store.insert(
            Table.destinations,
            {"trip_id": trip_id, "city": "X", "duration": 0, "position": 0},
        )


def test_ordering_and_membership(sql_store: SqlTableStore, make_trip: Callable[..., int]) -> None:
    """Ordering ties break on the primary key; list filters mean IN."""
    trip_id = make_trip(sql_store)
    service = DestinationService(sql_store)
    a = service.create(trip_id, "A", 1, position=1)
    b = service.create(trip_id, "B", 1, position=0)
    c = service.create(trip_id, "C", 1, position=1)

    ordered = sql_store.list(Table.destinations, {"trip_id": trip_id}, order_by="position")
    subset = sql_store.list(Table.destinations, {"destination_id": [a.destination_id, c.destination_id]})

    assert [row["city"] for row in ordered] == ["B", "A", "C"]
    assert {row["destination_id"] for row in subset} == {a.destination_id, c.destination_id}
    assert b.destination_id not in {row["destination_id"] for row in subset}


def test_foreign_keys_are_enforced(sql_session: Session) -> None:
    """SQLite connections have foreign key checks turned on."""
    assert sql_session.execute(text("PRAGMA foreign_keys")).scalar() == 1


def test_engine_flow_on_sql(
    sql_store: SqlTableStore, settings: Settings, make_trip: Callable[..., int]
) -> None:
    """Reorder, share resolution and import work against a real database."""
    trip_id = make_trip(sql_store, user_id=9, start_date=date(2025, 3, 1))
    service = DestinationService(sql_store)
    ids = [service.create(trip_id, city, 2).destination_id for city in ("A", "B", "C")]

    service.reorder(trip_id, list(reversed(ids)))

    issuer = ShareLinkIssuer(sql_store, settings)
    live = issuer.issue(trip_id)
    expired = issuer.issue(trip_id, expires_at=datetime.now(timezone.utc) - timedelta(hours=1))

    detail = issuer.resolve(live.share_token)
    assert detail is not None
    assert [d.city for d in detail.destinations] == ["C", "B", "A"]
    assert issuer.resolve(expired.share_token) is None

    copy_id = TripImporter(sql_store, settings).apply_import(export_trip(detail), owner_id=9)
    copied = TripAggregator(sql_store).get_trip(copy_id)
    assert copied is not None
    assert [d.city for d in copied.destinations] == ["C", "B", "A"]

    TripService(sql_store, settings).delete_trip(trip_id)
    assert sql_store.list(Table.trip_shares, {}) == []
    assert len(TripAggregator(sql_store).list_trips(9)) == 1


def test_trips_created_in_the_same_second_list_newest_first(
    sql_store: SqlTableStore, make_trip: Callable[..., int]
) -> None:
    """Equal created_at values fall back to the newest trip_id first."""
    first = make_trip(sql_store)
    second = make_trip(sql_store)
    created_at = datetime(2025, 3, 1, 12, 0, 0)
    for trip_id in (first, second):
        sql_store.update(Table.trips, {"trip_id": trip_id}, {"created_at": created_at})

    summaries = TripAggregator(sql_store).list_trips(1)

    assert [summary.trip.trip_id for summary in summaries] == [second, first]
