"""Engine and session handling for the document tree store."""

from __future__ import annotations

from pathlib import Path
from typing import Generator

from sqlalchemy.engine import URL, Engine, make_url
from sqlmodel import Session, SQLModel, create_engine

from . import config as config_module
from .config import PROJECT_ROOT
from .migrations import run_migrations

_engine: Engine | None = None


def _anchor_sqlite_file(url: URL) -> URL:
    """Resolve a relative SQLite file against the project root and create its folder.

    ``sqlite:///./opsdocs.db`` then names the same file whether the server is
    started from the repository root, ``scripts/`` or a test directory.
    """

    database = url.database
    if not database or database == ":memory:":
        return url
    db_path = Path(database)
    if not db_path.is_absolute():
        db_path = (PROJECT_ROOT / db_path).resolve()
    db_path.parent.mkdir(parents=True, exist_ok=True)
    return url.set(database=str(db_path))


def get_engine() -> Engine:
    """Return the process-wide engine for the configured ``DATABASE_URL``."""

    global _engine
    if _engine is None:
        url = make_url(config_module.get_settings().database_url)
        connect_args: dict[str, object] = {}
        if url.get_backend_name() == "sqlite":
            # Request handlers and the repair script share one engine across threads.
            connect_args["check_same_thread"] = False
            url = _anchor_sqlite_file(url)
        _engine = create_engine(url, connect_args=connect_args)
    return _engine


def get_session() -> Generator[Session, None, None]:
    """Yield a session for one request; every tree write commits through it."""

    with Session(get_engine()) as session:
        yield session


def init_db() -> None:
    """Create the section and document tables, then bring legacy schemas up to date."""

    from .models import document, section  # noqa: F401  Registers tables with SQLModel metadata.

    engine = get_engine()
    SQLModel.metadata.create_all(engine)
    run_migrations(engine)


def reset_database_state() -> None:
    """Dispose of the cached engine so the next call reads settings again."""

    global _engine
    if _engine is not None:
        _engine.dispose()
    _engine = None
