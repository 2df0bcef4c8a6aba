"""Row-level access to the relational store behind the registration site."""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping, TypeVar

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, SQLModel, select

from .errors import StoreError

logger = logging.getLogger(__name__)

RowT = TypeVar("RowT", bound=SQLModel)

# Some drivers (sqlite3 on integer overflow) raise outside the DBAPI hierarchy.
DRIVER_ERRORS = (SQLAlchemyError, OverflowError)


class SqlDataStore:
    """Simple filtered/ordered queries, inserts and updates over SQLModel tables.

    Every SQLAlchemy failure is re-raised as :class:`StoreError` carrying the
    driver's message so callers can surface it unchanged.
    """

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    def _session(self) -> Session:
        return Session(self.engine, expire_on_commit=False)

    def query(
        self,
        model: type[RowT],
        filters: Mapping[str, Any] | None = None,
        order_by: str | None = None,
        *,
        descending: bool = False,
    ) -> list[RowT]:
        statement = select(model)
        for column, value in (filters or {}).items():
            statement = statement.where(getattr(model, column) == value)
        if order_by:
            column = getattr(model, order_by)
            statement = statement.order_by(column.desc() if descending else column)
        try:
            with self._session() as session:
                return list(session.exec(statement).all())
        except DRIVER_ERRORS as exc:
            logger.exception("Query on %s failed", model.__name__)
            raise StoreError(str(exc)) from exc

    def get(self, model: type[RowT], identifier: str) -> RowT | None:
        try:
            with self._session() as session:
                return session.get(model, identifier)
        except DRIVER_ERRORS as exc:
            logger.exception("Lookup of %s %s failed", model.__name__, identifier)
            raise StoreError(str(exc)) from exc

    def insert(self, row: RowT) -> RowT:
        [inserted] = self.insert_many([row])
        return inserted

    def insert_many(self, rows: Iterable[RowT]) -> list[RowT]:
        """Insert all rows in a single transaction."""
        pending = list(rows)
        try:
            with self._session() as session:
                session.add_all(pending)
                session.commit()
                for row in pending:
                    session.refresh(row)
        except DRIVER_ERRORS as exc:
            logger.exception("Insert of %d row(s) failed", len(pending))
            raise StoreError(str(exc)) from exc
        return pending

    def update(self, model: type[RowT], identifier: str, patch: Mapping[str, Any]) -> RowT:
        try:
            with self._session() as session:
                row = session.get(model, identifier)
                if row is None:
                    raise StoreError(f"{model.__name__} {identifier} not found")
                for column, value in patch.items():
                    setattr(row, column, value)
                session.add(row)
                session.commit()
                session.refresh(row)
                return row
        except DRIVER_ERRORS as exc:
            logger.exception("Update of %s %s failed", model.__name__, identifier)
            raise StoreError(str(exc)) from exc

    def delete(self, model: type[RowT], identifier: str) -> None:
        try:
            with self._session() as session:
                row = session.get(model, identifier)
                if row is None:
                    return
                session.delete(row)
                session.commit()
        except DRIVER_ERRORS as exc:
            logger.exception("Delete of %s %s failed", model.__name__, identifier)
            raise StoreError(str(exc)) from exc

