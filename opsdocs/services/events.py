"""In-process change notification for the document tree."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from threading import Lock
from typing import Any, Callable, Mapping

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ChangeEvent:
    """Describes one successful structural or content mutation."""

    action: str
    entity: str
    entity_id: int | None
    request_id: str | None = None
    detail: Mapping[str, Any] = field(default_factory=dict)


Subscriber = Callable[[ChangeEvent], None]


class ChangeNotifier:
    """Fan change events out to subscribers so readers reload on demand."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._subscribers: list[Subscriber] = []

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register ``callback`` and return a function that unregisters it."""

        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def publish(self, event: ChangeEvent) -> None:
        with self._lock:
            subscribers = list(self._subscribers)
        for callback in subscribers:
            try:
                callback(event)
            except Exception:
                LOGGER.exception(
                    "Change subscriber %r failed for %s %s",
                    callback,
                    event.action,
                    event.entity,
                )

    def reset(self) -> None:
        """Drop every subscriber (useful for tests)."""

        with self._lock:
            self._subscribers = []


change_notifier = ChangeNotifier()

__all__ = ["ChangeEvent", "ChangeNotifier", "Subscriber", "change_notifier"]
