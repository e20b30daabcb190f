"""SQLModel definition for documentation sections."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Optional

from sqlmodel import Field, SQLModel


def _utcnow() -> datetime:
    """Return the current UTC timestamp."""

    return datetime.now(UTC)


class DocSection(SQLModel, table=True):
    """Top-level grouping that owns a tree of documents."""

    __tablename__ = "doc_sections"

    id: Optional[int] = Field(default=None, primary_key=True)
    title: str = Field(nullable=False)
    description: str = Field(default="", nullable=False)
    order: int = Field(
        default=1,
        index=True,
        nullable=False,
        description="Position within the section list, contiguous from 1.",
    )
    created_at: datetime = Field(default_factory=_utcnow, nullable=False)


__all__ = ["DocSection"]
