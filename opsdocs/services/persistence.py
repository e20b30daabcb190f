"""Per-table persistence gateway used by the document tree services.

Every call runs and commits on its own. There is no transaction spanning
several calls, so a multi-row operation that fails halfway leaves the rows
written before the failure committed.
"""

from __future__ import annotations

import logging
from typing import Any, Generic, Mapping, Sequence, TypeVar

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, SQLModel, select

from ..utils.errors import NotFound, PersistenceFailure

LOGGER = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=SQLModel)


class RecordTable(Generic[ModelT]):
    """Generic ``select / get / insert / update / delete`` access to one table."""

    def __init__(self, session: Session, model: type[ModelT]) -> None:
        self.session = session
        self.model = model
        self.name = getattr(model, "__tablename__", model.__name__)

    def _fail(self, operation: str, exc: SQLAlchemyError) -> PersistenceFailure:
        self.session.rollback()
        LOGGER.warning("Persistence call %s on %s failed: %s", operation, self.name, exc)
        return PersistenceFailure(
            f"Could not {operation} {self.name} record: {exc.__class__.__name__}",
            operation=operation,
            extra={"table": self.name},
        )

    def select(
        self,
        *filters: Any,
        order_by: Sequence[Any] | None = None,
        limit: int | None = None,
    ) -> list[ModelT]:
        """Return records matching all ``filters`` in the requested order."""

        statement = select(self.model)
        if filters:
            statement = statement.where(*filters)
        if order_by:
            statement = statement.order_by(*order_by)
        if limit is not None:
            statement = statement.limit(limit)
        try:
            return list(self.session.exec(statement).all())
        except SQLAlchemyError as exc:
            raise self._fail("select", exc) from exc

    def get(self, record_id: int) -> ModelT | None:
        try:
            return self.session.get(self.model, record_id)
        except SQLAlchemyError as exc:
            raise self._fail("read", exc) from exc

    def count(self, *filters: Any) -> int:
        statement = select(func.count()).select_from(self.model)
        if filters:
            statement = statement.where(*filters)
        try:
            return int(self.session.exec(statement).one())
        except SQLAlchemyError as exc:
            raise self._fail("count", exc) from exc

    def insert(self, record: ModelT) -> ModelT:
        """Persist ``record`` and return it with its generated id."""

        try:
            self.session.add(record)
            self.session.commit()
            self.session.refresh(record)
        except SQLAlchemyError as exc:
            raise self._fail("insert", exc) from exc
        return record

    def update(self, record_id: int, values: Mapping[str, Any]) -> ModelT:
        """Apply a partial update to a single record and return the stored row."""

        record = self.get(record_id)
        if record is None:
            raise NotFound(f"{self.name} record {record_id} not found")
        try:
            for key, value in values.items():
                setattr(record, key, value)
            self.session.add(record)
            self.session.commit()
            self.session.refresh(record)
        except SQLAlchemyError as exc:
            raise self._fail("update", exc) from exc
        return record

    def delete(self, record_id: int) -> None:
        record = self.get(record_id)
        if record is None:
            raise NotFound(f"{self.name} record {record_id} not found")
        try:
            self.session.delete(record)
            self.session.commit()
        except SQLAlchemyError as exc:
            raise self._fail("delete", exc) from exc


__all__ = ["RecordTable"]
