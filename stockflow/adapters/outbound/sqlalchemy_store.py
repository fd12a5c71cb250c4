"""SQLAlchemy implementation of the StorePort.

Collections map one-to-one onto ORM tables (sqlalchemy_models). Records
cross the port as plain dicts; deleting a parent row cascades through
the ORM relationships declared on the models.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from domain.errors import NotFoundError, StoreError
from domain.ports import StorePort
from stockflow.adapters.outbound.sqlalchemy_models import Base

logger = logging.getLogger(__name__)


def _models_by_table() -> dict:
    return {
        mapper.class_.__tablename__: mapper.class_
        for mapper in Base.registry.mappers
    }


class SqlAlchemyStore(StorePort):
    """StorePort adapter over one SQLAlchemy ``Session``.

    Outside :meth:`transaction` every write commits on its own; inside it
    writes are flushed and committed together at the end.
    """

    supports_transactions = True

    def __init__(self, session: Session) -> None:
        self._session = session
        self._models = _models_by_table()
        self._depth = 0

    # ── Queries ────────────────────────────────────────────────────────

    def select(self, collection, filters=None, order_by=None, descending=False, limit=None):
        model = self._model(collection)
        stmt = select(model)
        for column, value in (filters or {}).items():
            attr = self._column(model, column)
            if isinstance(value, (list, tuple, set)):
                stmt = stmt.where(attr.in_(list(value)))
            elif value is None:
                stmt = stmt.where(attr.is_(None))
            else:
                stmt = stmt.where(attr == value)
        if order_by:
            attr = self._column(model, order_by)
            stmt = stmt.order_by(attr.desc() if descending else attr.asc())
        if limit is not None:
            stmt = stmt.limit(limit)
        try:
            return [self._to_dict(obj) for obj in self._session.scalars(stmt)]
        except SQLAlchemyError as exc:
            self._abort()
            raise StoreError(str(exc), collection, "select") from exc

    def get(self, collection, record_id):
        model = self._model(collection)
        try:
            obj = self._session.get(model, record_id)
        except SQLAlchemyError as exc:
            self._abort()
            raise StoreError(str(exc), collection, "get") from exc
        return self._to_dict(obj) if obj is not None else None

    # ── Commands ───────────────────────────────────────────────────────

    def insert(self, collection, record):
        model = self._model(collection)
        self._check_columns(model, collection, record)
        obj = model(**record)
        try:
            self._session.add(obj)
            self._session.flush()
            result = self._to_dict(obj)
            self._commit_if_idle()
        except SQLAlchemyError as exc:
            self._abort()
            raise StoreError(str(exc), collection, "insert") from exc
        return result

    def update(self, collection, record_id, changes):
        model = self._model(collection)
        self._check_columns(model, collection, changes)
        obj = self._session.get(model, record_id)
        if obj is None:
            raise NotFoundError(collection, record_id)
        try:
            for column, value in changes.items():
                setattr(obj, column, value)
            self._session.flush()
            result = self._to_dict(obj)
            self._commit_if_idle()
        except SQLAlchemyError as exc:
            self._abort()
            raise StoreError(str(exc), collection, "update") from exc
        return result

    def delete(self, collection, record_id):
        model = self._model(collection)
        obj = self._session.get(model, record_id)
        if obj is None:
            return
        try:
            # Reload relationships so children inserted as separate rows
            # are part of the cascade.
            self._session.expire(obj)
            self._session.delete(obj)
            self._session.flush()
            self._commit_if_idle()
        except SQLAlchemyError as exc:
            self._abort()
            raise StoreError(str(exc), collection, "delete") from exc

    @contextmanager
    def transaction(self):
        if self._depth:
            self._depth += 1
            try:
                yield self
            finally:
                self._depth -= 1
            return

        self._depth = 1
        try:
            yield self
            self._session.commit()
        except SQLAlchemyError as exc:
            self._session.rollback()
            raise StoreError(str(exc), operation="commit") from exc
        except Exception:
            self._session.rollback()
            raise
        finally:
            self._depth = 0

    # ── Internal helpers ───────────────────────────────────────────────

    def _model(self, collection: str):
        try:
            return self._models[collection]
        except KeyError:
            raise StoreError(f"Unknown collection: {collection}", collection) from None

    @staticmethod
    def _column(model, column: str):
        if column not in model.__table__.columns:
            raise StoreError(f"Unknown column {column!r}", model.__tablename__)
        return getattr(model, column)

    @staticmethod
    def _check_columns(model, collection: str, record: dict) -> None:
        unknown = set(record) - set(model.__table__.columns.keys())
        if unknown:
            raise StoreError(
                f"Unknown columns for {collection}: {sorted(unknown)}", collection
            )

    @staticmethod
    def _to_dict(obj) -> dict:
        return {attr.key: getattr(obj, attr.key) for attr in obj.__mapper__.column_attrs}

    def _commit_if_idle(self) -> None:
        if not self._depth:
            self._session.commit()

    def _abort(self) -> None:
        if not self._depth:
            logger.debug("Rolling back failed statement")
            self._session.rollback()
