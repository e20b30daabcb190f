"""Nested outlines and text search over flat document rows."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

from sqlmodel import col, or_

from ..models import DocItem
from .persistence import RecordTable


@dataclass(slots=True)
class OutlineNode:
    """A document with its ordered children."""

    document: DocItem
    children: list["OutlineNode"] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "id": self.document.id,
            "title": self.document.title,
            "order": self.document.order,
            "children": [child.to_dict() for child in self.children],
        }


def _sort_key(document: DocItem) -> tuple[int, int]:
    return (document.order, int(document.id or 0))


def build_outline(documents: Sequence[DocItem]) -> list[OutlineNode]:
    """Rebuild the tree from flat rows by filtering on ``parent_id`` level by level.

    Documents whose parent is absent from ``documents`` are treated as roots.
    Rows caught in a parent cycle are unreachable from any root and are left
    out.
    """

    known_ids = {document.id for document in documents}
    seen: set[int] = set()

    def children_of(parent_id: int | None) -> list[OutlineNode]:
        if parent_id is None:
            level = [
                document
                for document in documents
                if document.parent_id is None or document.parent_id not in known_ids
            ]
        else:
            level = [document for document in documents if document.parent_id == parent_id]

        nodes = []
        for document in sorted(level, key=_sort_key):
            if document.id in seen:
                continue
            seen.add(document.id)
            nodes.append(OutlineNode(document=document))
        for node in nodes:
            node.children = children_of(node.document.id)
        return nodes

    return children_of(None)


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def search_documents(
    documents: RecordTable[DocItem], query: str, *, limit: int
) -> list[DocItem]:
    """Return documents whose title or content contains ``query``, ignoring case."""

    needle = query.strip()
    if not needle:
        return []
    pattern = f"%{_escape_like(needle)}%"
    return documents.select(
        or_(
            col(DocItem.title).ilike(pattern, escape="\\"),
            col(DocItem.content).ilike(pattern, escape="\\"),
        ),
        order_by=(col(DocItem.section_id), col(DocItem.order), col(DocItem.id)),
        limit=limit,
    )


__all__ = ["OutlineNode", "build_outline", "search_documents"]
