"""
Content API router.

Search and management of content store entries.
"""

from typing import Optional

import structlog
from fastapi import APIRouter, Depends, Query, status

from ..dependencies import get_content_service
from ..services.content_service import ContentService
from .models import (
    BulkEntriesRequest,
    EntryRequest,
    ErrorResponse,
    PublishRequest,
    SearchResponse,
)

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/content", tags=["content"])

UPSTREAM_ERROR = {502: {"description": "Content store error", "model": ErrorResponse}}


@router.get(
    "/search",
    response_model=SearchResponse,
    responses=UPSTREAM_ERROR,
    summary="Search content",
    description="Plain weighted search over title, description and all text fields.",
)
async def search_content(
    q: Optional[str] = Query(None, max_length=500, description="Search query"),
    content_type: str = Query("tours", alias="contentType", min_length=1),
    limit: int = Query(10, ge=1, le=100),
    service: ContentService = Depends(get_content_service),
):
    results = await service.search_content(q, content_type, limit)
    return SearchResponse(results=results, total=len(results), content_type=content_type, query=q)


@router.get("/entries", responses=UPSTREAM_ERROR, summary="List entries")
async def list_entries(
    content_type: str = Query("tours", alias="contentType", min_length=1),
    limit: int = Query(50, ge=1, le=100),
    service: ContentService = Depends(get_content_service),
):
    entries = await service.list_entries(content_type, limit)
    return {"entries": entries, "total": len(entries), "content_type": content_type}


@router.post(
    "/entries",
    status_code=status.HTTP_201_CREATED,
    responses=UPSTREAM_ERROR,
    summary="Create entry",
)
async def create_entry(
    request: EntryRequest,
    service: ContentService = Depends(get_content_service),
):
    entry = await service.create_entry(
        request.title, request.description, request.content_type, request.additional_fields
    )
    logger.info("Entry created", uid=entry.get("uid"), content_type=request.content_type)
    return {"message": "Entry created successfully", "entry": entry}


@router.put("/entries/{uid}", responses=UPSTREAM_ERROR, summary="Update entry")
async def update_entry(
    uid: str,
    request: EntryRequest,
    service: ContentService = Depends(get_content_service),
):
    entry = await service.update_entry(
        uid, request.title, request.description, request.content_type, request.additional_fields
    )
    return {"message": "Entry updated successfully", "entry": entry}


@router.post("/entries/{uid}/publish", responses=UPSTREAM_ERROR, summary="Publish entry")
async def publish_entry(
    uid: str,
    request: Optional[PublishRequest] = None,
    service: ContentService = Depends(get_content_service),
):
    content_type = request.content_type if request else "tours"
    result = await service.publish_entry(uid, content_type)
    return {"message": "Entry published successfully", "result": result}


@router.delete("/entries/{uid}", responses=UPSTREAM_ERROR, summary="Delete entry")
async def delete_entry(
    uid: str,
    content_type: str = Query("tour", alias="contentType", min_length=1),
    service: ContentService = Depends(get_content_service),
):
    await service.delete_entry(uid, content_type)
    return {"message": "Entry deleted successfully"}


@router.post("/entries/bulk", summary="Bulk create entries")
async def bulk_create_entries(
    request: BulkEntriesRequest,
    service: ContentService = Depends(get_content_service),
):
    """Create entries one by one; individual failures are reported, not raised."""
    result = await service.bulk_create_entries(
        [item.model_dump() for item in request.entries],
        request.content_type,
        request.publish,
    )
    return {
        "message": f"{len(result.successful)} entries created successfully",
        **result.to_dict(),
        "total": len(request.entries),
    }


@router.get("/content-types", responses=UPSTREAM_ERROR, summary="List content types")
async def get_content_types(service: ContentService = Depends(get_content_service)):
    content_types = await service.get_content_types()
    return {"content_types": content_types}
