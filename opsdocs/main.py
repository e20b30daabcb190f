"""OpsDocs backend entrypoint."""

from __future__ import annotations

import logging
import re
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.engine import make_url

from . import __version__
from .config import get_settings
from .database import init_db
from .middleware import RequestIdMiddleware, get_request_id
from .observability import RequestMetricsMiddleware
from .routers import api_router
from .utils.errors import (
    CycleDetected,
    InvalidParent,
    NotFound,
    PersistenceFailure,
    ScopeNotFound,
    TreeError,
)
from .utils.logging import configure_logging

settings = get_settings()
configure_logging()
logger = logging.getLogger("uvicorn.error")

cors_allow_origins = list(settings.cors_allow_origins)
allow_credentials = True
if "*" in cors_allow_origins:
    cors_allow_origins = ["*"]
    allow_credentials = False

_cors_origin_pattern = (
    re.compile(settings.cors_allow_origin_regex)
    if settings.cors_allow_origin_regex
    else None
)

TREE_ERROR_STATUS: dict[type[TreeError], int] = {
    NotFound: 404,
    ScopeNotFound: 404,
    InvalidParent: 400,
    CycleDetected: 409,
    PersistenceFailure: 503,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialise application state for the FastAPI app."""

    init_db()
    logger.info(
        "[OpsDocs] Database ready at %s",
        make_url(get_settings().database_url).render_as_string(hide_password=True),
    )
    yield


app = FastAPI(title="OpsDocs", version=__version__, lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_allow_origins,
    allow_credentials=allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
    allow_origin_regex=settings.cors_allow_origin_regex,
)
app.add_middleware(RequestIdMiddleware)
app.add_middleware(RequestMetricsMiddleware)

app.include_router(api_router)


def _cors_headers(request: Request) -> dict[str, str]:
    """Return CORS headers for error responses built outside the middleware."""

    origin = request.headers.get("origin")
    headers: dict[str, str] = {}
    if not origin:
        return headers

    allowed_origin: str | None = None
    if cors_allow_origins == ["*"]:
        allowed_origin = "*"
    elif origin in cors_allow_origins:
        allowed_origin = origin
    elif _cors_origin_pattern and _cors_origin_pattern.fullmatch(origin):
        allowed_origin = origin

    if allowed_origin:
        headers["Access-Control-Allow-Origin"] = allowed_origin
        headers.setdefault("Vary", "Origin")
        if allow_credentials and allowed_origin != "*":
            headers["Access-Control-Allow-Credentials"] = "true"
    return headers


@app.exception_handler(TreeError)
async def handle_tree_error(request: Request, exc: TreeError) -> JSONResponse:
    """Report tree failures as a single human-readable message."""

    status_code = next(
        (code for kind, code in TREE_ERROR_STATUS.items() if isinstance(exc, kind)),
        400,
    )
    if isinstance(exc, PersistenceFailure):
        logger.warning(
            "Persistence failure during %s %s (request_id=%s): %s",
            request.method,
            request.url.path,
            get_request_id(),
            exc.message,
        )
    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.message, "code": exc.code},
    )


@app.exception_handler(Exception)
async def handle_unexpected_exception(
    request: Request, exc: Exception
) -> JSONResponse:
    """Ensure unexpected exceptions return a JSON payload."""

    logger.exception(
        "Unhandled exception while processing %s %s", request.method, request.url.path
    )
    headers = _cors_headers(request)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal Server Error"},
        headers=headers or None,
    )


__all__ = ["app", "TREE_ERROR_STATUS"]
