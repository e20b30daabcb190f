"""FastAPI dependencies shared by the API routers."""

from __future__ import annotations

from fastapi import Depends
from sqlmodel import Session

from ..config import Settings, get_settings
from ..database import get_session
from ..services.tree_store import TreeStore


def get_tree_store(
    session: Session = Depends(get_session),
    settings: Settings = Depends(get_settings),
) -> TreeStore:
    """Return a tree store bound to the request's database session."""

    return TreeStore(session, settings)


__all__ = ["get_tree_store"]
