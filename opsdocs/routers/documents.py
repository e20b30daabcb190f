"""Document tree endpoints."""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..services.ordering import Direction
from ..services.tree_store import UNSET, TreeStore
from .dependencies import get_tree_store

router = APIRouter(prefix="/api", tags=["documents"])


def strip_title(value: str | None) -> str | None:
    """Trim a title, rejecting one made only of whitespace."""

    if value is None:
        return None
    value = value.strip()
    if not value:
        raise ValueError("title must not be blank")
    return value


class DocumentPayload(BaseModel):
    """Serialised document row."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    section_id: int | None = None
    parent_id: int | None = None
    title: str
    content: str = ""
    order: int
    created_at: datetime


class DocumentCreateRequest(BaseModel):
    """Request body for creating a document."""

    title: str = Field(min_length=1, max_length=500)
    content: str = ""
    section_id: int | None = None
    parent_id: int | None = None

    normalise_title = field_validator("title", mode="after")(strip_title)


class DocumentUpdateRequest(BaseModel):
    """Partial update; only the fields present in the body are applied."""

    title: str | None = Field(default=None, min_length=1, max_length=500)
    content: str | None = None
    section_id: int | None = None
    parent_id: int | None = None

    normalise_title = field_validator("title", mode="after")(strip_title)


class ReparentRequest(BaseModel):
    """Request body for attaching a document to a new parent."""

    parent_id: int | None = None


class MoveRequest(BaseModel):
    """Request body for moving an item one position within its siblings."""

    direction: Direction


class CrumbPayload(BaseModel):
    """One step of a breadcrumb trail."""

    id: int
    title: str
    kind: str


class DeletionResponse(BaseModel):
    """Identifiers removed by a cascading delete."""

    deleted_ids: list[int] = Field(default_factory=list)


def serialize_documents(documents) -> list[DocumentPayload]:
    return [DocumentPayload.model_validate(document) for document in documents]


@router.get("/documents/search", response_model=list[DocumentPayload])
async def search_documents(
    q: str = Query("", description="Case-insensitive text matched against title and content"),
    limit: int | None = Query(None, ge=1, le=500),
    *,
    store: TreeStore = Depends(get_tree_store),
) -> list[DocumentPayload]:
    """Return documents whose title or content contains ``q``."""

    return serialize_documents(store.search_documents(q, limit))


@router.post(
    "/documents", response_model=DocumentPayload, status_code=status.HTTP_201_CREATED
)
async def create_document(
    request: DocumentCreateRequest,
    *,
    store: TreeStore = Depends(get_tree_store),
) -> DocumentPayload:
    """Create a document at the end of its sibling group."""

    document = store.create_document(
        request.title,
        request.content,
        section_id=request.section_id,
        parent_id=request.parent_id,
    )
    return DocumentPayload.model_validate(document)


@router.get("/documents/{document_id}", response_model=DocumentPayload)
async def get_document(
    document_id: int,
    *,
    store: TreeStore = Depends(get_tree_store),
) -> DocumentPayload:
    return DocumentPayload.model_validate(store.get_document(document_id))


@router.patch("/documents/{document_id}", response_model=DocumentPayload)
async def update_document(
    document_id: int,
    request: DocumentUpdateRequest,
    *,
    store: TreeStore = Depends(get_tree_store),
) -> DocumentPayload:
    """Edit a document; sending ``section_id`` or ``parent_id`` reparents it."""

    provided = request.model_fields_set
    document = store.update_document(
        document_id,
        title=request.title,
        content=request.content,
        section_id=request.section_id if "section_id" in provided else UNSET,
        parent_id=request.parent_id if "parent_id" in provided else UNSET,
    )
    return DocumentPayload.model_validate(document)


@router.post("/documents/{document_id}/reparent", response_model=DocumentPayload)
async def reparent_document(
    document_id: int,
    request: ReparentRequest,
    *,
    store: TreeStore = Depends(get_tree_store),
) -> DocumentPayload:
    document = store.reparent_document(document_id, request.parent_id)
    return DocumentPayload.model_validate(document)


@router.post("/documents/{document_id}/move", response_model=list[DocumentPayload])
async def move_document(
    document_id: int,
    request: MoveRequest,
    *,
    store: TreeStore = Depends(get_tree_store),
) -> list[DocumentPayload]:
    """Move a document one step and return its renumbered sibling group."""

    return serialize_documents(store.move_document(document_id, request.direction))


@router.delete("/documents/{document_id}", response_model=DeletionResponse)
async def delete_document(
    document_id: int,
    *,
    store: TreeStore = Depends(get_tree_store),
) -> DeletionResponse:
    """Delete a document together with every descendant."""

    return DeletionResponse(deleted_ids=store.delete_document(document_id))


@router.get("/documents/{document_id}/breadcrumb", response_model=list[CrumbPayload])
async def get_breadcrumb(
    document_id: int,
    *,
    store: TreeStore = Depends(get_tree_store),
) -> list[CrumbPayload]:
    """Return the path from the owning section down to the document."""

    return [
        CrumbPayload(**crumb.to_dict()) for crumb in store.resolve_breadcrumb(document_id)
    ]


__all__ = ["router", "DocumentPayload", "DeletionResponse", "serialize_documents", "strip_title"]
