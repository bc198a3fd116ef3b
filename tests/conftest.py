"""Shared pytest fixtures for all test suites."""

from collections.abc import Callable, Generator
from datetime import date

import pytest
from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from tripshare.app.config import Settings
from tripshare.app.db.engine import create_session_factory, enable_sqlite_foreign_keys
from tripshare.app.db.inmemory import InMemoryTableStore
from tripshare.app.db.models import Base
from tripshare.app.db.repositories import Table, TableStore
from tripshare.app.db.sql_repositories import SqlTableStore


@pytest.fixture
def settings() -> Settings:
    """Settings with deterministic values, independent of the environment."""
    return Settings(
        database_url="sqlite:///:memory:",
        app_url="https://trips.example.com/",
    )


@pytest.fixture
def store() -> InMemoryTableStore:
    """Fresh in-memory table store."""
    return InMemoryTableStore()


@pytest.fixture
def sqlite_engine() -> Generator[Engine, None, None]:
    """In-memory SQLite engine shared across threads, with the schema created.

    StaticPool keeps a single connection so every session sees the same
    in-memory database.
    """
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(engine)
    Base.metadata.create_all(engine)

    yield engine

    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def sql_session(sqlite_engine: Engine) -> Generator[Session, None, None]:
    """Session bound to the in-memory SQLite engine."""
    with create_session_factory(sqlite_engine)() as session:
        yield session


@pytest.fixture
def sql_store(sql_session: Session) -> SqlTableStore:
    """SQL table store over in-memory SQLite."""
    return SqlTableStore(sql_session)


@pytest.fixture
def make_trip() -> Callable[..., int]:
    """Factory inserting a trip row directly into a store.

    Usage:
        trip_id = make_trip(store, user_id=1, start_date=date(2025, 3, 1))
    """

    def _make_trip(
        target: TableStore,
        user_id: int = 1,
        title: str = "Europe",
        start_date: date | None = None,
        departure_city: str = "Buenos Aires",
        return_city: str | None = None,
    ) -> int:
        row = target.insert(
            Table.trips,
            {
                "user_id": user_id,
                "title": title,
                "start_date": start_date,
                "departure_city": departure_city,
                "return_city": return_city,
            },
        )
        return int(row["trip_id"])

    return _make_trip
