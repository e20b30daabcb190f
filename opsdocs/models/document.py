"""Document model definition."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Optional

from sqlmodel import Field, SQLModel


class DocItem(SQLModel, table=True):
    """A node in a section's document tree."""

    __tablename__ = "doc_items"

    id: Optional[int] = Field(default=None, primary_key=True)
    section_id: int | None = Field(
        default=None,
        foreign_key="doc_sections.id",
        index=True,
        nullable=True,
        description="Owning section; null marks the document as orphaned.",
    )
    parent_id: int | None = Field(
        default=None,
        foreign_key="doc_items.id",
        index=True,
        nullable=True,
        description="Parent document in the same section; null for root documents.",
    )
    title: str = Field(index=True, nullable=False)
    content: str = Field(default="", nullable=False)
    order: int = Field(
        default=1,
        nullable=False,
        description="Position within the sibling group, contiguous from 1.",
    )
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        description="UTC timestamp indicating when the document was created.",
    )


__all__ = ["DocItem"]
