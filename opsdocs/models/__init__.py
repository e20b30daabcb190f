"""Database models for the OpsDocs backend."""

from .document import DocItem
from .section import DocSection

__all__ = [
    "DocItem",
    "DocSection",
]
