"""Fixtures for the document tree service tests."""

from __future__ import annotations

from typing import Any, Generator, Mapping

import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from opsdocs.config import Settings
from opsdocs.models import DocItem, DocSection
from opsdocs.services.events import ChangeNotifier
from opsdocs.services.persistence import RecordTable
from opsdocs.services.tree_store import TreeStore
from opsdocs.utils.errors import PersistenceFailure


class CountingTable(RecordTable):
    """Gateway that counts writes and can fail after a number of updates."""

    def __init__(self, session: Session, model, fail_after: int | None = None) -> None:
        super().__init__(session, model)
        self.updates = 0
        self.fail_after = fail_after

    def update(self, record_id: int, values: Mapping[str, Any]):
        if self.fail_after is not None and self.updates >= self.fail_after:
            raise PersistenceFailure("simulated store outage", operation="update")
        self.updates += 1
        return super().update(record_id, values)


@pytest.fixture()
def session() -> Generator[Session, None, None]:
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    with Session(engine) as db_session:
        yield db_session
    engine.dispose()


@pytest.fixture()
def settings() -> Settings:
    return Settings(
        database_url="sqlite://",
        repair_on_read=True,
        fallback_section_title="Uncategorized",
        fallback_section_order=999,
    )


@pytest.fixture()
def notifier() -> ChangeNotifier:
    return ChangeNotifier()


@pytest.fixture()
def documents(session: Session) -> CountingTable:
    return CountingTable(session, DocItem)


@pytest.fixture()
def sections(session: Session) -> CountingTable:
    return CountingTable(session, DocSection)


@pytest.fixture()
def store(
    session: Session,
    settings: Settings,
    notifier: ChangeNotifier,
    sections: CountingTable,
    documents: CountingTable,
) -> TreeStore:
    return TreeStore(
        session,
        settings,
        notifier=notifier,
        sections=sections,
        documents=documents,
    )


def sibling_orders(store: TreeStore, section_id: int | None, parent_id: int | None) -> list[tuple[str, int]]:
    """Return ``(title, order)`` pairs of a sibling group in display order."""

    return [
        (document.title, document.order)
        for document in store.list_children(section_id, parent_id)
    ]


def force_values(session: Session, model, record_id: int, **values: Any) -> None:
    """Write raw column values, bypassing every tree rule."""

    record = session.get(model, record_id)
    for key, value in values.items():
        setattr(record, key, value)
    session.add(record)
    session.commit()
