"""Recovery pool for documents without a reachable section."""

from __future__ import annotations

import logging

from sqlmodel import col, or_

from ..models import DocItem, DocSection
from ..utils.errors import NotFound
from .deletion import CascadingDeletionService
from .hierarchy import move_subtree
from .ordering import OrderingEngine
from .persistence import RecordTable

LOGGER = logging.getLogger(__name__)


class OrphanRegistry:
    """Expose orphaned documents and the operator actions that resolve them.

    A document is orphaned when its ``section_id`` is null or references a
    section that no longer exists.
    """

    def __init__(
        self,
        sections: RecordTable[DocSection],
        documents: RecordTable[DocItem],
        ordering: OrderingEngine,
        deletion: CascadingDeletionService,
    ) -> None:
        self._sections = sections
        self._documents = documents
        self._ordering = ordering
        self._deletion = deletion

    def _section_ids(self) -> list[int]:
        return [int(section.id) for section in self._sections.select()]

    def list_orphans(self) -> list[DocItem]:
        section_column = col(DocItem.section_id)
        section_ids = self._section_ids()
        filters = (
            (or_(section_column.is_(None), section_column.not_in(section_ids)),)
            if section_ids
            else ()
        )
        return self._documents.select(
            *filters, order_by=(col(DocItem.order), col(DocItem.id))
        )

    def is_orphan(self, document: DocItem) -> bool:
        if document.section_id is None:
            return True
        return self._sections.get(document.section_id) is None

    def _require_orphan(self, document_id: int) -> DocItem:
        document = self._documents.get(document_id)
        if document is None:
            raise NotFound(f"Document {document_id} not found")
        if not self.is_orphan(document):
            raise NotFound(f"Document {document_id} is not in the orphan pool")
        return document

    def assign_to_section(self, document_id: int, section_id: int) -> DocItem:
        """Attach an orphan (with its subtree) as a root document of ``section_id``."""

        document = self._require_orphan(document_id)
        if self._sections.get(section_id) is None:
            raise NotFound(f"Section {section_id} not found")

        moved = move_subtree(self._documents, self._ordering, document, section_id, None)
        LOGGER.info("Recovered orphan document %s into section %s", document_id, section_id)
        return moved

    def discard(self, document_id: int) -> list[int]:
        """Delete an orphan together with its descendants."""

        self._require_orphan(document_id)
        return self._deletion.delete_document(document_id)


__all__ = ["OrphanRegistry"]
