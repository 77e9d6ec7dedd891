"""
Health check router.

Provides liveness and readiness probes.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ..config import get_settings
from ..dependencies import get_content_service, get_llm_service
from ..services.content_service import ContentService
from ..services.llm_service import LLMService

router = APIRouter(prefix="/api/v1", tags=["health"])


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    timestamp: str
    service: str
    version: str


class ReadinessResponse(BaseModel):
    """Readiness check response model."""

    ready: bool
    checks: dict
    timestamp: str


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Health check",
    description="Basic health check endpoint - returns 200 if service is running",
)
async def health_check():
    """Liveness probe; always 200 while the process is serving."""
    settings = get_settings()
    return HealthResponse(
        status="healthy",
        timestamp=_now(),
        service=settings.APP_NAME,
        version=settings.VERSION,
    )


@router.get(
    "/ready",
    response_model=ReadinessResponse,
    summary="Readiness check",
    responses={503: {"description": "Content store not configured"}},
)
async def readiness_check(
    content_service: ContentService = Depends(get_content_service),
    llm_service: LLMService = Depends(get_llm_service),
):
    """
    Readiness check.

    The service is ready when the content store credentials are present.
    LLM availability is reported but does not gate readiness, since
    search and content management work without any provider.
    """
    store_status = content_service.client.get_health_status()
    checks = {
        "content_store": store_status,
        "llm_providers": llm_service.get_available_providers(),
    }
    ready = bool(store_status.get("configured"))

    response = ReadinessResponse(ready=ready, checks=checks, timestamp=_now())
    if not ready:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content=response.model_dump()
        )
    return response
