"""Request context helpers and middleware for request identifiers."""

from __future__ import annotations

import contextvars
import re
import uuid
from contextlib import contextmanager
from typing import Iterator

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

REQUEST_ID_HEADER = "X-Request-ID"

_REQUEST_ID: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "request_id", default=None
)

_REQUEST_ID_PATTERN = re.compile(r"^[A-Za-z0-9._-]{1,64}$")


def get_request_id(default: str | None = None) -> str | None:
    """Return the request identifier stored in the current context."""

    return _REQUEST_ID.get() or default


def _normalise_request_id(value: str | None) -> str:
    """Return a safe request identifier, falling back to a generated token."""

    if value:
        candidate = value.strip()
        if _REQUEST_ID_PATTERN.match(candidate):
            return candidate
    return uuid.uuid4().hex


@contextmanager
def bind_request_id(value: str | None = None) -> Iterator[str]:
    """Bind an identifier for work running outside an HTTP request."""

    request_id = _normalise_request_id(value)
    token = _REQUEST_ID.set(request_id)
    try:
        yield request_id
    finally:
        _REQUEST_ID.reset(token)


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Attach a request identifier header and expose it via a context variable."""

    def __init__(self, app: ASGIApp, header_name: str = REQUEST_ID_HEADER) -> None:
        super().__init__(app)
        self.header_name = header_name

    async def dispatch(self, request: Request, call_next):
        with bind_request_id(request.headers.get(self.header_name)) as request_id:
            response = await call_next(request)
        response.headers[self.header_name] = request_id
        return response


__all__ = ["REQUEST_ID_HEADER", "RequestIdMiddleware", "bind_request_id", "get_request_id"]
