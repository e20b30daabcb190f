"""Routes that expose operational observability data."""

from __future__ import annotations

from fastapi import APIRouter
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, col, select

from opsdocs import __version__
from ..database import get_engine
from ..models import DocItem, DocSection
from ..observability import metrics_registry

router = APIRouter(prefix="/api", tags=["observability"])


def _database_status() -> dict[str, object]:
    """Run a lightweight database check and report table sizes."""

    engine = get_engine()
    try:
        with Session(engine) as session:
            sections = session.exec(select(func.count()).select_from(DocSection)).one()
            documents = session.exec(select(func.count()).select_from(DocItem)).one()
            orphans = session.exec(
                select(func.count())
                .select_from(DocItem)
                .where(col(DocItem.section_id).is_(None))
            ).one()
    except SQLAlchemyError:
        return {"ok": False}
    return {
        "ok": True,
        "sections": int(sections),
        "documents": int(documents),
        "orphans_without_section": int(orphans),
    }


@router.get("/metrics")
def read_metrics() -> dict[str, object]:
    """Return the current request and tree-operation metrics snapshot."""

    return metrics_registry.snapshot()


@router.get("/status")
def read_status() -> dict[str, object]:
    """Return an aggregated operational status payload."""

    return {
        "app": {"version": __version__},
        "database": _database_status(),
        "metrics": metrics_registry.snapshot(),
    }


__all__ = ["router"]
