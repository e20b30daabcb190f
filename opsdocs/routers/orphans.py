"""Orphan recovery endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from ..services.tree_store import TreeStore
from .dependencies import get_tree_store
from .documents import DeletionResponse, DocumentPayload, serialize_documents

router = APIRouter(prefix="/api", tags=["orphans"])


class AssignOrphanRequest(BaseModel):
    """Target section for a recovered orphan."""

    section_id: int


@router.get("/orphans", response_model=list[DocumentPayload])
async def list_orphans(
    *, store: TreeStore = Depends(get_tree_store)
) -> list[DocumentPayload]:
    """Return documents without a reachable section."""

    return serialize_documents(store.list_orphans())


@router.post("/orphans/{document_id}/assign", response_model=DocumentPayload)
async def assign_orphan(
    document_id: int,
    request: AssignOrphanRequest,
    *,
    store: TreeStore = Depends(get_tree_store),
) -> DocumentPayload:
    document = store.assign_orphan(document_id, request.section_id)
    return DocumentPayload.model_validate(document)


@router.delete("/orphans/{document_id}", response_model=DeletionResponse)
async def discard_orphan(
    document_id: int,
    *,
    store: TreeStore = Depends(get_tree_store),
) -> DeletionResponse:
    return DeletionResponse(deleted_ids=store.discard_orphan(document_id))


__all__ = ["router"]
