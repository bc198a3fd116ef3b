"""SQL implementation of the TableStore interface."""

import logging
from collections.abc import Mapping
from typing import Any

from sqlalchemy import delete, inspect, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.sql import Select

from tripshare.app.db.models import Accommodation, Base, Destination, Transport, Trip, TripShare
from tripshare.app.db.repositories import PRIMARY_KEYS, UNIQUE_COLUMNS, Filters, Row, Table
from tripshare.app.errors import ConflictError, StorageError

logger = logging.getLogger(__name__)

MODELS: dict[Table, type[Base]] = {
    Table.trips: Trip,
    Table.destinations: Destination,
    Table.transports: Transport,
    Table.accommodations: Accommodation,
    Table.trip_shares: TripShare,
}


def _conditions(model: type[Base], filters: Filters) -> list[Any]:
    conditions = []
    for column_name, expected in filters.items():
        column = getattr(model, column_name)
        if isinstance(expected, (list, tuple, set, frozenset)):
            conditions.append(column.in_(list(expected)))
        elif expected is None:
            conditions.append(column.is_(None))
        else:
            conditions.append(column == expected)
    return conditions


def _to_row(obj: Base) -> Row:
    mapper = inspect(obj).mapper
    return {attr.key: getattr(obj, attr.key) for attr in mapper.column_attrs}


class SqlTableStore:
    """SQL implementation of TableStore.

    Every mutating call commits its own transaction. Unique violations are
    reported as ConflictError, other SQLAlchemy failures as StorageError.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, table: Table, filters: Filters) -> Row | None:
        """Get the first row matching filters."""
        query = self._select(table, filters).limit(1)

        try:
            obj = self._session.execute(query).scalars().first()
        except SQLAlchemyError as e:
            raise StorageError(f"failed to read {table.value}") from e

        return _to_row(obj) if obj is not None else None

    def insert(self, table: Table, fields: Mapping[str, Any]) -> Row:
        """Insert a row and return it with generated columns."""
        model = MODELS[table]
        obj = model(**fields)

        try:
            self._session.add(obj)
            self._session.commit()
        except IntegrityError as e:
            self._session.rollback()
            if self._is_unique_violation(table, e):
                raise ConflictError(f"duplicate value for {table.value}") from e
            raise StorageError(f"integrity failure on {table.value}") from e
        except SQLAlchemyError as e:
            self._session.rollback()
            raise StorageError(f"failed to insert into {table.value}") from e

        self._session.refresh(obj)
        return _to_row(obj)

    def update(self, table: Table, filters: Filters, fields: Mapping[str, Any]) -> Row | None:
        """Update every row matching filters."""
        try:
            objs = list(self._session.execute(self._select(table, filters)).scalars().all())
            if not objs:
                return None

            for obj in objs:
                for column_name, value in fields.items():
                    setattr(obj, column_name, value)

            self._session.commit()
        except IntegrityError as e:
            self._session.rollback()
            if self._is_unique_violation(table, e):
                raise ConflictError(f"duplicate value for {table.value}") from e
            raise StorageError(f"integrity failure on {table.value}") from e
        except SQLAlchemyError as e:
            self._session.rollback()
            raise StorageError(f"failed to update {table.value}") from e

        self._session.refresh(objs[0])
        return _to_row(objs[0])

    def delete(self, table: Table, filters: Filters) -> None:
        """Delete every row matching filters."""
        model = MODELS[table]

        try:
            self._session.execute(delete(model).where(*_conditions(model, filters)))
            self._session.commit()
        except SQLAlchemyError as e:
            self._session.rollback()
            raise StorageError(f"failed to delete from {table.value}") from e

    def list(self, table: Table, filters: Filters, order_by: str | None = None) -> list[Row]:
        """List rows matching filters."""
        model = MODELS[table]
        query = self._select(table, filters, order_by=order_by)

        try:
            objs = self._session.execute(query).scalars().all()
        except SQLAlchemyError as e:
            raise StorageError(f"failed to list {table.value}") from e

        logger.debug("Listed %s rows from %s", len(objs), model.__tablename__)
        return [_to_row(obj) for obj in objs]

    def _select(self, table: Table, filters: Filters, order_by: str | None = None) -> Select:
        model = MODELS[table]
        pk_column = getattr(model, PRIMARY_KEYS[table])
        query = select(model).where(*_conditions(model, filters))

        if order_by:
            column = getattr(model, order_by.lstrip("-"))
            if order_by.startswith("-"):
                query = query.order_by(column.desc().nulls_last(), pk_column.desc())
            else:
                query = query.order_by(column.asc().nulls_last(), pk_column.asc())
        else:
            query = query.order_by(pk_column.asc())

        return query

    def _is_unique_violation(self, table: Table, error: IntegrityError) -> bool:
        message = str(error.orig).lower()
        if "unique" in message or "duplicate" in message:
            return True
        # Fall back to the declared unique columns for drivers with terse messages
        return any(column in message for column in UNIQUE_COLUMNS.get(table, ()))
