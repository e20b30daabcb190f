"""Sibling ordering for sections and documents.

Every sibling group keeps ``order`` values contiguous from 1. Moves swap an
item with its neighbour and then renumber the whole group, so a group whose
values drifted (gaps, duplicates, a half-finished earlier pass) is repaired by
the next structural change touching it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Sequence, Union

from sqlmodel import col

from ..models import DocItem, DocSection
from ..utils.errors import ScopeNotFound
from ..utils.logging import TRACE_LEVEL
from .persistence import RecordTable

LOGGER = logging.getLogger(__name__)

Orderable = Union[DocSection, DocItem]


class Direction(str, Enum):
    """Direction of a sibling move."""

    UP = "up"
    DOWN = "down"


@dataclass(frozen=True, slots=True)
class Scope:
    """Identifies one sibling group.

    ``sections=True`` selects the section list itself; otherwise the scope is
    the documents sharing ``section_id`` and ``parent_id`` (either may be
    ``None``).
    """

    section_id: int | None = None
    parent_id: int | None = None
    sections: bool = False

    @classmethod
    def section_list(cls) -> "Scope":
        return cls(sections=True)

    @classmethod
    def siblings(cls, section_id: int | None, parent_id: int | None = None) -> "Scope":
        return cls(section_id=section_id, parent_id=parent_id)

    @classmethod
    def of(cls, document: DocItem) -> "Scope":
        """Return the sibling group ``document`` currently belongs to."""

        return cls(section_id=document.section_id, parent_id=document.parent_id)

    def describe(self) -> str:
        if self.sections:
            return "sections"
        return f"section={self.section_id} parent={self.parent_id}"


def is_contiguous(items: Iterable[Orderable]) -> bool:
    """Return whether the ``order`` values are exactly ``1..count``."""

    orders = sorted(item.order for item in items)
    return orders == list(range(1, len(orders) + 1))


class OrderingEngine:
    """Maintain contiguous order values within sibling groups."""

    def __init__(
        self,
        sections: RecordTable[DocSection],
        documents: RecordTable[DocItem],
    ) -> None:
        self._sections = sections
        self._documents = documents

    def _table(self, scope: Scope) -> RecordTable:
        return self._sections if scope.sections else self._documents

    def members(self, scope: Scope) -> list[Orderable]:
        """Return the scope's items sorted by ``(order, id)``."""

        if scope.sections:
            return self._sections.select(
                order_by=(col(DocSection.order), col(DocSection.id))
            )

        section_column = col(DocItem.section_id)
        parent_column = col(DocItem.parent_id)
        filters = (
            section_column.is_(None)
            if scope.section_id is None
            else section_column == scope.section_id,
            parent_column.is_(None)
            if scope.parent_id is None
            else parent_column == scope.parent_id,
        )
        return self._documents.select(
            *filters, order_by=(col(DocItem.order), col(DocItem.id))
        )

    def next_order(self, scope: Scope) -> int:
        """Return ``max(order) + 1`` for the scope, or ``1`` when it is empty."""

        return max((item.order for item in self.members(scope)), default=0) + 1

    def renumber(
        self,
        scope: Scope,
        sequence: Sequence[Orderable] | None = None,
    ) -> list[Orderable]:
        """Assign ``1..count`` to the scope in the given (or current) sequence.

        Only rows whose value changes are written, one call per row.
        """

        items = list(sequence) if sequence is not None else self.members(scope)
        table = self._table(scope)
        written = 0
        for position, item in enumerate(items, start=1):
            if item.order != position:
                LOGGER.log(
                    TRACE_LEVEL,
                    "%s: item %s order %s -> %s",
                    scope.describe(),
                    item.id,
                    item.order,
                    position,
                )
                table.update(int(item.id), {"order": position})
                written += 1
        if written:
            LOGGER.debug(
                "Renumbered %s: %d of %d rows rewritten",
                scope.describe(),
                written,
                len(items),
            )
        return items

    def move_sibling(
        self, scope: Scope, item_id: int, direction: Direction | str
    ) -> list[Orderable]:
        """Swap ``item_id`` with its neighbour and renumber the whole scope.

        Moving the first item up or the last item down returns the scope
        unchanged without writing anything.
        """

        direction = Direction(direction)
        items = self.members(scope)
        index = next(
            (position for position, item in enumerate(items) if item.id == item_id),
            None,
        )
        if index is None:
            raise ScopeNotFound(
                f"Item {item_id} is not part of {scope.describe()}",
                extra={"item_id": item_id},
            )

        target = index - 1 if direction is Direction.UP else index + 1
        if target < 0 or target >= len(items):
            return items

        items[index], items[target] = items[target], items[index]
        LOGGER.info("Moving %s %s within %s", item_id, direction.value, scope.describe())
        return self.renumber(scope, items)


__all__ = ["Direction", "OrderingEngine", "Scope", "is_contiguous"]
