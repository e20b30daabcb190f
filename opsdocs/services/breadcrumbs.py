"""Breadcrumb reconstruction for documents."""

from __future__ import annotations

from dataclasses import dataclass

from ..models import DocItem, DocSection
from ..utils.errors import NotFound
from .hierarchy import iter_ancestors
from .persistence import RecordTable


@dataclass(frozen=True, slots=True)
class Crumb:
    """One step of a breadcrumb trail."""

    id: int
    title: str
    kind: str

    def to_dict(self) -> dict:
        return {"id": self.id, "title": self.title, "kind": self.kind}


class BreadcrumbResolver:
    """Build the section-to-document path for a document.

    Nothing is cached: every call walks the parent links again, bounded by the
    current document count so cyclic data raises ``CycleDetected`` instead of
    looping.
    """

    def __init__(
        self,
        sections: RecordTable[DocSection],
        documents: RecordTable[DocItem],
    ) -> None:
        self._sections = sections
        self._documents = documents

    def resolve(self, document_id: int) -> tuple[Crumb, ...]:
        document = self._documents.get(document_id)
        if document is None:
            raise NotFound(f"Document {document_id} not found")

        budget = self._documents.count()
        chain = [document, *iter_ancestors(self._documents, document, budget)]
        crumbs = [
            Crumb(id=int(item.id), title=item.title, kind="document")
            for item in reversed(chain)
        ]

        # Orphans, or documents pointing at a removed section, get no section crumb.
        section = (
            self._sections.get(document.section_id)
            if document.section_id is not None
            else None
        )
        if section is not None:
            crumbs.insert(0, Crumb(id=int(section.id), title=section.title, kind="section"))
        return tuple(crumbs)


__all__ = ["BreadcrumbResolver", "Crumb"]
