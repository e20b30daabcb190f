"""Parent-chain helpers shared by the tree services."""

from __future__ import annotations

import logging
from typing import Any, Iterator, Mapping

from sqlmodel import col

from ..models import DocItem
from ..utils.errors import CycleDetected, InvalidParent, NotFound
from .ordering import OrderingEngine, Scope
from .persistence import RecordTable

LOGGER = logging.getLogger(__name__)


def iter_ancestors(
    documents: RecordTable[DocItem], document: DocItem, budget: int
) -> Iterator[DocItem]:
    """Yield the ancestors of ``document`` from its parent upwards.

    Raises ``CycleDetected`` once more than ``budget`` ancestors have been
    visited and ``NotFound`` when a parent link points at a missing row.
    """

    current = document
    steps = 0
    while current.parent_id is not None:
        steps += 1
        if steps > budget:
            raise CycleDetected(
                f"Parent chain of document {document.id} exceeds {budget} steps",
                extra={"document_id": document.id},
            )
        parent = documents.get(current.parent_id)
        if parent is None:
            raise NotFound(
                f"Parent document {current.parent_id} of document {current.id} not found"
            )
        yield parent
        current = parent


def collect_descendants(documents: RecordTable[DocItem], root_id: int) -> list[DocItem]:
    """Return every transitive child of ``root_id`` in breadth-first order.

    Each document is visited at most once, so cyclic data still terminates.
    """

    seen = {root_id}
    frontier = [root_id]
    found: list[DocItem] = []
    while frontier:
        children = documents.select(
            col(DocItem.parent_id).in_(frontier),
            order_by=(col(DocItem.order), col(DocItem.id)),
        )
        frontier = []
        for child in children:
            if child.id in seen:
                continue
            seen.add(child.id)
            found.append(child)
            frontier.append(child.id)
    return found


def validate_parent(
    documents: RecordTable[DocItem],
    document: DocItem | None,
    section_id: int | None,
    parent_id: int | None,
) -> DocItem | None:
    """Check that ``parent_id`` may hold ``document`` inside ``section_id``.

    ``document`` is ``None`` for documents that do not exist yet.
    """

    if parent_id is None:
        return None
    parent = documents.get(parent_id)
    if parent is None:
        raise NotFound(f"Parent document {parent_id} not found")
    if document is not None and parent.id == document.id:
        raise InvalidParent(f"Document {document.id} cannot be its own parent")
    if parent.section_id != section_id:
        raise InvalidParent(
            f"Parent document {parent_id} belongs to section {parent.section_id}, "
            f"not {section_id}",
            extra={"parent_id": parent_id, "section_id": section_id},
        )
    if document is not None:
        budget = documents.count()
        for ancestor in iter_ancestors(documents, parent, budget):
            if ancestor.id == document.id:
                raise InvalidParent(
                    f"Document {parent_id} is a descendant of document {document.id}",
                    extra={"parent_id": parent_id, "document_id": document.id},
                )
    return parent


def move_subtree(
    documents: RecordTable[DocItem],
    ordering: OrderingEngine,
    document: DocItem,
    section_id: int | None,
    parent_id: int | None,
    values: Mapping[str, Any] | None = None,
) -> DocItem:
    """Move ``document`` into the sibling group ``(section_id, parent_id)``.

    The document is appended to the new group and the old group is
    renumbered. When the section changes the descendants follow it, keeping
    their own parents and order values. Callers validate the placement first.
    """

    values = dict(values or {})
    old_scope = Scope.of(document)
    new_scope = Scope.siblings(section_id, parent_id)
    if old_scope == new_scope:
        if values:
            return documents.update(int(document.id), values)
        return document

    document_id = int(document.id)
    descendants = (
        [int(child.id) for child in collect_descendants(documents, document_id)]
        if section_id != old_scope.section_id
        else []
    )
    values.update(
        section_id=section_id,
        parent_id=parent_id,
        order=ordering.next_order(new_scope),
    )
    moved = documents.update(document_id, values)
    ordering.renumber(old_scope)
    for child_id in descendants:
        documents.update(child_id, {"section_id": section_id})
    LOGGER.info(
        "Moved document %s from %s to %s (%d descendants followed)",
        document_id,
        old_scope.describe(),
        new_scope.describe(),
        len(descendants),
    )
    return moved


__all__ = [
    "collect_descendants",
    "iter_ancestors",
    "move_subtree",
    "validate_parent",
]
