"""Shared route dependencies: store wiring and ownership checks."""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.orm import Session

from tripshare.app.db.engine import get_session
from tripshare.app.db.repositories import Table, TableStore
from tripshare.app.db.sql_repositories import SqlTableStore
from tripshare.app.errors import NotFoundError
from tripshare.app.models.trip import Trip


def get_store(session: Annotated[Session, Depends(get_session)]) -> TableStore:
    """FastAPI dependency for the table store of the current request."""
    return SqlTableStore(session)


def ensure_trip_owner(store: TableStore, trip_id: int, user_id: int) -> Trip:
    """Load a trip and check it belongs to user_id.

    Raises:
        NotFoundError: If the trip is absent or owned by someone else
    """
    row = store.get(Table.trips, {"trip_id": trip_id})
    if row is None or row["user_id"] != user_id:
        raise NotFoundError(f"Trip {trip_id} not found.")
    return Trip.model_validate(row)
