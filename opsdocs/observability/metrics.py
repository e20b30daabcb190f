"""Request and tree-operation metrics collection utilities."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from threading import Lock
from time import perf_counter
from typing import Dict

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp


@dataclass
class RouteStats:
    """Mutable statistics for a single route template."""

    count: int = 0
    total_duration_ms: float = 0.0
    max_duration_ms: float = 0.0


@dataclass
class OperationStats:
    """Outcome counters for a single tree operation."""

    succeeded: int = 0
    failed: int = 0
    errors: Counter[str] = field(default_factory=Counter)


class MetricsRegistry:
    """In-memory collector for request timings and tree operation outcomes."""

    def __init__(self) -> None:
        self._lock = Lock()
        self.reset()

    def reset(self) -> None:
        """Reset all counters (useful for tests)."""

        with self._lock:
            self._in_flight = 0
            self._requests_total = 0
            self._status_families: Counter[str] = Counter()
            self._routes: Dict[str, RouteStats] = {}
            self._operations: Dict[str, OperationStats] = {}

    def request_started(self) -> None:
        with self._lock:
            self._in_flight += 1

    def request_finished(
        self,
        method: str,
        route: str,
        status_code: int,
        duration_seconds: float,
    ) -> None:
        duration_ms = max(duration_seconds * 1000.0, 0.0)
        route_key = f"{method.upper()} {route}"

        with self._lock:
            self._in_flight = max(0, self._in_flight - 1)
            self._requests_total += 1
            self._status_families[f"{status_code // 100}xx"] += 1

            stats = self._routes.setdefault(route_key, RouteStats())
            stats.count += 1
            stats.total_duration_ms += duration_ms
            stats.max_duration_ms = max(stats.max_duration_ms, duration_ms)

    def record_operation(self, name: str, error_code: str | None = None) -> None:
        """Count one tree operation; ``error_code`` marks a failure."""

        with self._lock:
            stats = self._operations.setdefault(name, OperationStats())
            if error_code is None:
                stats.succeeded += 1
            else:
                stats.failed += 1
                stats.errors[error_code] += 1

    def snapshot(self) -> Dict[str, object]:
        """Return an immutable view of the current metrics."""

        with self._lock:
            routes = {
                key: {
                    "count": stats.count,
                    "avg_duration_ms": stats.total_duration_ms / (stats.count or 1),
                    "max_duration_ms": stats.max_duration_ms,
                }
                for key, stats in self._routes.items()
            }
            operations = {
                name: {
                    "succeeded": stats.succeeded,
                    "failed": stats.failed,
                    "errors": dict(stats.errors),
                }
                for name, stats in self._operations.items()
            }
            return {
                "requests_total": self._requests_total,
                "in_flight": self._in_flight,
                "status_codes": dict(self._status_families),
                "routes": routes,
                "operations": operations,
            }


def _route_template(request: Request) -> str:
    """Return the matched path template so ids do not explode the key space."""

    route = request.scope.get("route")
    return getattr(route, "path", None) or request.url.path


class RequestMetricsMiddleware(BaseHTTPMiddleware):
    """ASGI middleware that records request metrics."""

    def __init__(
        self,
        app: ASGIApp,
        *,
        registry: MetricsRegistry | None = None,
    ) -> None:
        super().__init__(app)
        self._registry = registry or metrics_registry

    async def dispatch(self, request: Request, call_next):
        start = perf_counter()
        self._registry.request_started()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = getattr(response, "status_code", 200)
            return response
        finally:
            self._registry.request_finished(
                request.method,
                _route_template(request),
                status_code,
                perf_counter() - start,
            )


metrics_registry = MetricsRegistry()

__all__ = [
    "MetricsRegistry",
    "RequestMetricsMiddleware",
    "metrics_registry",
]
