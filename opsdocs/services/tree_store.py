"""Authoritative store for documentation sections and their document trees."""

from __future__ import annotations

import logging
from collections import defaultdict
from contextlib import contextmanager
from typing import Any, Callable, Iterator

from sqlmodel import Session, col

from ..config import Settings
from ..middleware import get_request_id
from ..models import DocItem, DocSection
from ..observability import metrics_registry
from ..utils.errors import InvalidParent, NotFound, TreeError
from .breadcrumbs import BreadcrumbResolver, Crumb
from .deletion import CascadingDeletionService, SectionDeletionResult
from .events import ChangeEvent, ChangeNotifier, Subscriber, change_notifier
from .hierarchy import move_subtree, validate_parent
from .ordering import Direction, OrderingEngine, Scope, is_contiguous
from .orphans import OrphanRegistry
from .outline import OutlineNode, build_outline, search_documents
from .persistence import RecordTable

LOGGER = logging.getLogger(__name__)


class _Unset:
    def __repr__(self) -> str:
        return "UNSET"


UNSET: Any = _Unset()


class TreeStore:
    """Entry point for every section and document operation.

    Ordering is delegated to :class:`OrderingEngine`, multi-node deletion to
    :class:`CascadingDeletionService`, orphan recovery to
    :class:`OrphanRegistry` and paths to :class:`BreadcrumbResolver`. After
    each successful mutation a :class:`ChangeEvent` is published so readers
    can reload instead of polling.
    """

    def __init__(
        self,
        session: Session,
        settings: Settings,
        *,
        notifier: ChangeNotifier | None = None,
        sections: RecordTable[DocSection] | None = None,
        documents: RecordTable[DocItem] | None = None,
    ) -> None:
        self.settings = settings
        self.sections = sections or RecordTable(session, DocSection)
        self.documents = documents or RecordTable(session, DocItem)
        self.notifier = notifier or change_notifier
        self.ordering = OrderingEngine(self.sections, self.documents)
        self.deletion = CascadingDeletionService(
            self.sections, self.documents, self.ordering, settings
        )
        self.orphans = OrphanRegistry(
            self.sections, self.documents, self.ordering, self.deletion
        )
        self.breadcrumbs = BreadcrumbResolver(self.sections, self.documents)

    # ------------------------------------------------------------------
    # Plumbing
    # ------------------------------------------------------------------
    @contextmanager
    def _operation(self, name: str) -> Iterator[None]:
        try:
            yield
        except TreeError as exc:
            metrics_registry.record_operation(name, exc.code)
            LOGGER.warning(
                "%s failed (request_id=%s): %s", name, get_request_id(), exc.message
            )
            raise
        except Exception:
            metrics_registry.record_operation(name, "internal")
            raise
        else:
            metrics_registry.record_operation(name)

    def _notify(self, action: str, entity: str, entity_id: int | None, **detail: Any) -> None:
        self.notifier.publish(
            ChangeEvent(
                action=action,
                entity=entity,
                entity_id=entity_id,
                request_id=get_request_id(),
                detail=detail,
            )
        )

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register a change callback; returns the matching unsubscribe function."""

        return self.notifier.subscribe(callback)

    # ------------------------------------------------------------------
    # Sections
    # ------------------------------------------------------------------
    def list_sections(self) -> list[DocSection]:
        return self.ordering.members(Scope.section_list())

    def get_section(self, section_id: int) -> DocSection:
        section = self.sections.get(section_id)
        if section is None:
            raise NotFound(f"Section {section_id} not found")
        return section

    def create_section(self, title: str, description: str = "") -> DocSection:
        """Append a section; a drifted section list is renumbered first."""

        with self._operation("create_section"):
            sections = self.list_sections()
            if not is_contiguous(sections):
                self.ordering.renumber(Scope.section_list(), sections)
            section = self.sections.insert(
                DocSection(
                    title=title,
                    description=description,
                    order=self.ordering.next_order(Scope.section_list()),
                )
            )
        LOGGER.info("Created section %s at position %s", section.id, section.order)
        self._notify("created", "section", section.id)
        return section

    def update_section(
        self,
        section_id: int,
        *,
        title: str | None = None,
        description: str | None = None,
    ) -> DocSection:
        """Edit section text; ordering is untouched."""

        with self._operation("update_section"):
            section = self.get_section(section_id)
            values = {
                key: value
                for key, value in (("title", title), ("description", description))
                if value is not None
            }
            if values:
                section = self.sections.update(section_id, values)
        self._notify("updated", "section", section_id)
        return section

    def move_section(self, section_id: int, direction: Direction | str) -> list[DocSection]:
        with self._operation("move_section"):
            self.get_section(section_id)
            sections = self.ordering.move_sibling(Scope.section_list(), section_id, direction)
        self._notify("moved", "section", section_id, direction=Direction(direction).value)
        return sections

    def delete_section(self, section_id: int) -> SectionDeletionResult:
        with self._operation("delete_section"):
            result = self.deletion.delete_section(section_id)
        self._notify("deleted", "section", section_id, **result.to_dict())
        return result

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------
    def get_document(self, document_id: int) -> DocItem:
        document = self.documents.get(document_id)
        if document is None:
            raise NotFound(f"Document {document_id} not found")
        return document

    def list_documents(self, section_id: int) -> list[DocItem]:
        """Return every document of a section, flat, sorted by ``(parent_id, order)``.

        With repair-on-read enabled, sibling groups found with gaps or
        duplicates are renumbered before the rows are returned.
        """

        self.get_section(section_id)
        order_by = (col(DocItem.parent_id), col(DocItem.order), col(DocItem.id))
        documents = self.documents.select(
            col(DocItem.section_id) == section_id, order_by=order_by
        )
        if not self.settings.repair_on_read:
            return documents

        groups: dict[int | None, list[DocItem]] = defaultdict(list)
        for document in documents:
            groups[document.parent_id].append(document)
        repaired = 0
        for parent_id, members in groups.items():
            if not is_contiguous(members):
                self.ordering.renumber(Scope.siblings(section_id, parent_id))
                repaired += 1
        if repaired:
            LOGGER.info("Repaired %d sibling groups in section %s", repaired, section_id)
            documents = self.documents.select(
                col(DocItem.section_id) == section_id, order_by=order_by
            )
        return documents

    def list_children(self, section_id: int | None, parent_id: int | None) -> list[DocItem]:
        return self.ordering.members(Scope.siblings(section_id, parent_id))

    def list_orphans(self) -> list[DocItem]:
        return self.orphans.list_orphans()

    def create_document(
        self,
        title: str,
        content: str = "",
        *,
        section_id: int | None = None,
        parent_id: int | None = None,
    ) -> DocItem:
        """Create a document appended to its sibling group.

        ``section_id=None`` creates it directly in the orphan pool.
        """

        with self._operation("create_document"):
            if section_id is not None:
                self.get_section(section_id)
            validate_parent(self.documents, None, section_id, parent_id)
            document = self.documents.insert(
                DocItem(
                    title=title,
                    content=content,
                    section_id=section_id,
                    parent_id=parent_id,
                    order=self.ordering.next_order(Scope.siblings(section_id, parent_id)),
                )
            )
        LOGGER.info(
            "Created document %s in section=%s parent=%s", document.id, section_id, parent_id
        )
        self._notify("created", "document", document.id)
        return document

    def update_document(
        self,
        document_id: int,
        *,
        title: str | None = None,
        content: str | None = None,
        section_id: int | None = UNSET,
        parent_id: int | None = UNSET,
    ) -> DocItem:
        """Edit a document; changing ``section_id`` or ``parent_id`` reparents it.

        A section change without an explicit ``parent_id`` makes the document a
        root of the new section. Its descendants move with it. Documents only
        enter the orphan pool at creation, so ``section_id=None`` is rejected
        for a document that has a section.
        """

        with self._operation("update_document"):
            document = self.get_document(document_id)
            values = {
                key: value
                for key, value in (("title", title), ("content", content))
                if value is not None
            }

            if section_id is None and document.section_id is not None:
                raise InvalidParent(
                    f"Document {document_id} cannot be detached from its section",
                    extra={"document_id": document_id},
                )
            target_section = document.section_id if section_id is UNSET else section_id
            if parent_id is UNSET:
                target_parent = (
                    document.parent_id if target_section == document.section_id else None
                )
            else:
                target_parent = parent_id

            placement_changed = (target_section, target_parent) != (
                document.section_id,
                document.parent_id,
            )
            if placement_changed:
                if target_section is not None:
                    self.get_section(target_section)
                validate_parent(self.documents, document, target_section, target_parent)
                document = move_subtree(
                    self.documents,
                    self.ordering,
                    document,
                    target_section,
                    target_parent,
                    values,
                )
            elif values:
                document = self.documents.update(document_id, values)

        self._notify(
            "reparented" if placement_changed else "updated", "document", document_id
        )
        return document

    def reparent_document(self, document_id: int, new_parent_id: int | None) -> DocItem:
        """Attach a document under ``new_parent_id`` (or the section root) in its section."""

        return self.update_document(document_id, parent_id=new_parent_id)

    def move_document(self, document_id: int, direction: Direction | str) -> list[DocItem]:
        with self._operation("move_document"):
            document = self.get_document(document_id)
            siblings = self.ordering.move_sibling(Scope.of(document), document_id, direction)
        self._notify("moved", "document", document_id, direction=Direction(direction).value)
        return siblings

    def delete_document(self, document_id: int) -> list[int]:
        with self._operation("delete_document"):
            deleted = self.deletion.delete_document(document_id)
        self._notify("deleted", "document", document_id, deleted_ids=deleted)
        return deleted

    # ------------------------------------------------------------------
    # Orphans
    # ------------------------------------------------------------------
    def assign_orphan(self, document_id: int, section_id: int) -> DocItem:
        with self._operation("assign_orphan"):
            document = self.orphans.assign_to_section(document_id, section_id)
        self._notify("reparented", "document", document_id, section_id=section_id)
        return document

    def discard_orphan(self, document_id: int) -> list[int]:
        with self._operation("discard_orphan"):
            deleted = self.orphans.discard(document_id)
        self._notify("deleted", "document", document_id, deleted_ids=deleted)
        return deleted

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------
    def repair_ordering(self, *, dry_run: bool = False) -> list[Scope]:
        """Renumber every non-contiguous sibling group, sections included.

        Returns the scopes that needed repair. With ``dry_run`` nothing is
        written.
        """

        broken: list[Scope] = []
        if not is_contiguous(self.list_sections()):
            broken.append(Scope.section_list())

        groups: dict[tuple[int | None, int | None], list[DocItem]] = defaultdict(list)
        for document in self.documents.select():
            groups[(document.section_id, document.parent_id)].append(document)
        for (section_id, parent_id), members in groups.items():
            if not is_contiguous(members):
                broken.append(Scope.siblings(section_id, parent_id))

        if dry_run or not broken:
            return broken
        with self._operation("repair_ordering"):
            for scope in broken:
                self.ordering.renumber(scope)
        LOGGER.info("Repaired %d sibling groups", len(broken))
        self._notify("repaired", "tree", None, scopes=[scope.describe() for scope in broken])
        return broken

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------
    def resolve_breadcrumb(self, document_id: int) -> tuple[Crumb, ...]:
        with self._operation("resolve_breadcrumb"):
            return self.breadcrumbs.resolve(document_id)

    def build_outline(self, section_id: int) -> list[OutlineNode]:
        return build_outline(self.list_documents(section_id))

    def search_documents(self, query: str, limit: int | None = None) -> list[DocItem]:
        return search_documents(
            self.documents, query, limit=limit or self.settings.search_limit
        )


__all__ = ["TreeStore", "UNSET"]
