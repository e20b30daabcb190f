"""ASGI middleware utilities for the OpsDocs backend."""

from .request_context import (
    REQUEST_ID_HEADER,
    RequestIdMiddleware,
    bind_request_id,
    get_request_id,
)

__all__ = ["REQUEST_ID_HEADER", "RequestIdMiddleware", "bind_request_id", "get_request_id"]
