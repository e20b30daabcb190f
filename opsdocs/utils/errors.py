from __future__ import annotations

from typing import Any, Dict


class TreeError(Exception):
    """Base error for document tree operations."""

    code = "tree_error"

    def __init__(self, message: str, extra: Dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.extra = extra or {}


class NotFound(TreeError):
    """Raised when a referenced section or document does not exist."""

    code = "not_found"


class InvalidParent(TreeError):
    """Raised for cross-section or cyclic parent references."""

    code = "invalid_parent"


class ScopeNotFound(TreeError):
    """Raised when an ordering operation targets an item outside its scope."""

    code = "scope_not_found"


class CycleDetected(TreeError):
    """Raised when a parent-chain walk exceeds its traversal budget."""

    code = "cycle_detected"


class PersistenceFailure(TreeError):
    """Raised when the underlying store rejects a call."""

    code = "persistence_failure"

    def __init__(
        self,
        message: str,
        operation: str | None = None,
        extra: Dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, extra)
        self.operation = operation


__all__ = [
    "CycleDetected",
    "InvalidParent",
    "NotFound",
    "PersistenceFailure",
    "ScopeNotFound",
    "TreeError",
]
