"""Section management endpoints."""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..services.tree_store import TreeStore
from .dependencies import get_tree_store
from .documents import DocumentPayload, MoveRequest, serialize_documents, strip_title

router = APIRouter(prefix="/api", tags=["sections"])


class SectionPayload(BaseModel):
    """Serialised section row."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: str = ""
    order: int
    created_at: datetime


class SectionCreateRequest(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: str = Field(default="", max_length=2000)

    normalise_title = field_validator("title", mode="after")(strip_title)


class SectionUpdateRequest(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=2000)

    normalise_title = field_validator("title", mode="after")(strip_title)


class SectionDeletionResponse(BaseModel):
    """Where the documents of a deleted section ended up."""

    section_id: int
    destination_section_id: int | None = None
    relocated_document_ids: list[int] = Field(default_factory=list)
    created_fallback: bool = False


class OutlineNodePayload(BaseModel):
    """Nested outline entry."""

    id: int
    title: str
    order: int
    children: list["OutlineNodePayload"] = Field(default_factory=list)


OutlineNodePayload.model_rebuild()


def _serialize_sections(sections) -> list[SectionPayload]:
    return [SectionPayload.model_validate(section) for section in sections]


@router.get("/sections", response_model=list[SectionPayload])
async def list_sections(
    *, store: TreeStore = Depends(get_tree_store)
) -> list[SectionPayload]:
    return _serialize_sections(store.list_sections())


@router.post(
    "/sections", response_model=SectionPayload, status_code=status.HTTP_201_CREATED
)
async def create_section(
    request: SectionCreateRequest,
    *,
    store: TreeStore = Depends(get_tree_store),
) -> SectionPayload:
    """Create a section at the end of the section list."""

    section = store.create_section(request.title, request.description)
    return SectionPayload.model_validate(section)


@router.get("/sections/{section_id}", response_model=SectionPayload)
async def get_section(
    section_id: int,
    *,
    store: TreeStore = Depends(get_tree_store),
) -> SectionPayload:
    return SectionPayload.model_validate(store.get_section(section_id))


@router.patch("/sections/{section_id}", response_model=SectionPayload)
async def update_section(
    section_id: int,
    request: SectionUpdateRequest,
    *,
    store: TreeStore = Depends(get_tree_store),
) -> SectionPayload:
    section = store.update_section(
        section_id,
        title=request.title,
        description=request.description,
    )
    return SectionPayload.model_validate(section)


@router.post("/sections/{section_id}/move", response_model=list[SectionPayload])
async def move_section(
    section_id: int,
    request: MoveRequest,
    *,
    store: TreeStore = Depends(get_tree_store),
) -> list[SectionPayload]:
    """Move a section one step and return the renumbered section list."""

    return _serialize_sections(store.move_section(section_id, request.direction))


@router.delete("/sections/{section_id}", response_model=SectionDeletionResponse)
async def delete_section(
    section_id: int,
    *,
    store: TreeStore = Depends(get_tree_store),
) -> SectionDeletionResponse:
    """Delete a section, relocating its documents instead of removing them."""

    result = store.delete_section(section_id)
    return SectionDeletionResponse(**result.to_dict())


@router.get("/sections/{section_id}/documents", response_model=list[DocumentPayload])
async def list_section_documents(
    section_id: int,
    *,
    store: TreeStore = Depends(get_tree_store),
) -> list[DocumentPayload]:
    """Return the section's documents flat; clients nest them by ``parent_id``."""

    return serialize_documents(store.list_documents(section_id))


@router.get("/sections/{section_id}/outline", response_model=list[OutlineNodePayload])
async def get_section_outline(
    section_id: int,
    *,
    store: TreeStore = Depends(get_tree_store),
) -> list[OutlineNodePayload]:
    return [
        OutlineNodePayload.model_validate(node.to_dict())
        for node in store.build_outline(section_id)
    ]


__all__ = ["router"]
