"""Cascading deletion for documents and relocating deletion for sections."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from sqlmodel import col

from ..config import Settings
from ..models import DocItem, DocSection
from ..utils.errors import NotFound
from .hierarchy import collect_descendants
from .ordering import OrderingEngine, Scope
from .persistence import RecordTable

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class SectionDeletionResult:
    """Outcome of deleting a section."""

    section_id: int
    destination_section_id: int | None = None
    relocated_document_ids: list[int] = field(default_factory=list)
    created_fallback: bool = False

    def to_dict(self) -> dict:
        return {
            "section_id": self.section_id,
            "destination_section_id": self.destination_section_id,
            "relocated_document_ids": list(self.relocated_document_ids),
            "created_fallback": self.created_fallback,
        }


class CascadingDeletionService:
    """Delete documents with their subtrees; delete sections without losing documents.

    Each row is written by its own persistence call. When a call fails the
    operation stops and the rows already written stay written; rerunning the
    operation, or any later renumbering pass, converges the ordering again.
    """

    def __init__(
        self,
        sections: RecordTable[DocSection],
        documents: RecordTable[DocItem],
        ordering: OrderingEngine,
        settings: Settings,
    ) -> None:
        self._sections = sections
        self._documents = documents
        self._ordering = ordering
        self._settings = settings

    def delete_document(self, document_id: int) -> list[int]:
        """Delete ``document_id`` and all its descendants; return the deleted ids."""

        document = self._documents.get(document_id)
        if document is None:
            raise NotFound(f"Document {document_id} not found")

        scope = Scope.of(document)
        descendant_ids = [
            int(child.id) for child in collect_descendants(self._documents, document_id)
        ]
        for child_id in reversed(descendant_ids):
            self._documents.delete(child_id)
        self._documents.delete(document_id)
        self._ordering.renumber(scope)

        LOGGER.info(
            "Deleted document %s with %d descendants", document_id, len(descendant_ids)
        )
        return [document_id, *descendant_ids]

    def _destination_for(self, section_id: int) -> tuple[DocSection, bool]:
        others = self._sections.select(
            col(DocSection.id) != section_id,
            order_by=(col(DocSection.order), col(DocSection.id)),
            limit=1,
        )
        if others:
            return others[0], False

        fallback = self._sections.insert(
            DocSection(
                title=self._settings.fallback_section_title,
                description=self._settings.fallback_section_description,
                order=self._settings.fallback_section_order,
            )
        )
        LOGGER.info("Created fallback section %s for relocated documents", fallback.id)
        return fallback, True

    def delete_section(self, section_id: int) -> SectionDeletionResult:
        """Delete a section after relocating its documents.

        Documents move to the remaining section with the lowest order, or to a
        newly created fallback section when no other section exists. Root
        documents are appended after the destination's root documents; nested
        documents only change section.
        """

        section = self._sections.get(section_id)
        if section is None:
            raise NotFound(f"Section {section_id} not found")

        result = SectionDeletionResult(section_id=section_id)
        documents = self._documents.select(
            col(DocItem.section_id) == section_id,
            order_by=(col(DocItem.order), col(DocItem.id)),
        )
        if documents:
            destination, created = self._destination_for(section_id)
            destination_id = int(destination.id)
            result.destination_section_id = destination_id
            result.created_fallback = created

            next_order = self._ordering.next_order(Scope.siblings(destination_id))
            moves: list[tuple[int, dict]] = []
            for document in documents:
                values: dict = {"section_id": destination_id}
                if document.parent_id is None:
                    values["order"] = next_order
                    next_order += 1
                moves.append((int(document.id), values))
            for document_id, values in moves:
                self._documents.update(document_id, values)
                result.relocated_document_ids.append(document_id)

        self._sections.delete(section_id)
        # A freshly created fallback keeps its configured order.
        if not result.created_fallback:
            self._ordering.renumber(Scope.section_list())

        LOGGER.info(
            "Deleted section %s; relocated %d documents to %s",
            section_id,
            len(result.relocated_document_ids),
            result.destination_section_id,
        )
        return result


__all__ = ["CascadingDeletionService", "SectionDeletionResult"]
