"""Lightweight schema migration helpers for the OpsDocs backend."""

from __future__ import annotations

from collections.abc import Callable, Iterable

from sqlalchemy import inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import NoSuchTableError


MigrationFunc = Callable[[Engine], None]


def _ensure_document_parent_id(engine: Engine) -> None:
    """Add the ``parent_id`` column to ``doc_items`` if it is missing.

    Early databases stored a flat list of documents per section; nesting was
    introduced later, so the column may be absent on legacy tables.
    """

    with engine.begin() as connection:
        inspector = inspect(connection)
        try:
            columns = inspector.get_columns("doc_items")
        except NoSuchTableError:
            return

        if any(column["name"] == "parent_id" for column in columns):
            return

        connection.execute(text("ALTER TABLE doc_items ADD COLUMN parent_id INTEGER"))


def _ensure_sibling_group_index(engine: Engine) -> None:
    """Create the composite ``(section_id, parent_id)`` index when absent."""

    with engine.begin() as connection:
        inspector = inspect(connection)
        try:
            indexes = inspector.get_indexes("doc_items")
        except NoSuchTableError:
            return

        if any(index["name"] == "ix_doc_items_sibling_group" for index in indexes):
            return

        connection.execute(
            text(
                "CREATE INDEX IF NOT EXISTS ix_doc_items_sibling_group "
                "ON doc_items (section_id, parent_id)"
            )
        )


_MIGRATIONS: tuple[MigrationFunc, ...] = (
    _ensure_document_parent_id,
    _ensure_sibling_group_index,
)


def run_migrations(engine: Engine, migrations: Iterable[MigrationFunc] | None = None) -> None:
    """Execute idempotent schema migrations for the provided engine."""

    for migration in migrations or _MIGRATIONS:
        migration(engine)
