"""
Chat API router.

Plain and streaming completions, content-grounded chat and the provider
catalog.
"""

import json
from typing import AsyncIterator

import structlog
from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from ..dependencies import get_content_service, get_llm_service
from ..domain.exceptions import LLMProviderNotConfiguredException, LLMServiceException
from ..services.content_service import ContentService, format_entries_for_context
from ..services.llm_service import LLMService
from .models import (
    ChatRequest,
    ChatResponse,
    ChatWithContentRequest,
    ChatWithContentResponse,
    ErrorResponse,
)

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/chat", tags=["chat"])

CONTENT_PROMPT_HEADER = (
    "You are a helpful assistant. Use the following relevant content to answer "
    "the user's question:\n\n"
)

LLM_ERRORS = {
    400: {"description": "Provider not configured", "model": ErrorResponse},
    502: {"description": "Provider request failed", "model": ErrorResponse},
}


def _sse(payload: object) -> str:
    return f"data: {json.dumps(payload)}\n\n"


@router.post("/completions", response_model=ChatResponse, responses=LLM_ERRORS)
async def chat_completion(
    request: ChatRequest,
    llm_service: LLMService = Depends(get_llm_service),
):
    """Single chat completion."""
    response = await llm_service.generate_response(
        request.message,
        provider=request.provider,
        model=request.model,
        context=request.context_messages(),
    )
    return ChatResponse(
        response=response.content,
        provider=response.provider,
        model=response.model,
        usage=response.usage,
    )


@router.post("/stream", responses=LLM_ERRORS)
async def chat_stream(
    request: ChatRequest,
    llm_service: LLMService = Depends(get_llm_service),
):
    """
    Streaming chat completion as server-sent events.

    Each event carries one content chunk; the stream ends with
    ``data: [DONE]`` or, if the provider fails midway, an error event.
    """
    # Fail before the 200 status line is sent
    if not llm_service.is_provider_available(request.provider):
        raise LLMProviderNotConfiguredException(request.provider)

    async def event_stream() -> AsyncIterator[str]:
        try:
            async for chunk in llm_service.stream_response(
                request.message,
                provider=request.provider,
                model=request.model,
                context=request.context_messages(),
            ):
                yield _sse(chunk)
        except LLMServiceException as e:
            yield _sse({"error": e.message})
            return
        yield "data: [DONE]\n\n"

    return StreamingResponse(
        event_stream(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
    )


@router.post("/chat-with-content", response_model=ChatWithContentResponse, responses=LLM_ERRORS)
async def chat_with_content(
    request: ChatWithContentRequest,
    llm_service: LLMService = Depends(get_llm_service),
    content_service: ContentService = Depends(get_content_service),
):
    """Answer using plain-search results from the content store as context."""
    relevant = await content_service.search_content(
        request.message, request.content_type, request.max_results
    )

    context = [
        *request.context_messages(),
        {"role": "system", "content": format_entries_for_context(relevant, CONTENT_PROMPT_HEADER)},
    ]
    response = await llm_service.generate_response(
        request.message,
        provider=request.provider,
        model=request.model,
        context=context,
    )

    logger.info(
        "Content-grounded chat answered",
        provider=response.provider,
        sources=len(relevant),
    )
    return ChatWithContentResponse(
        response=response.content,
        provider=response.provider,
        model=response.model,
        usage=response.usage,
        relevant_content=relevant,
        sources=len(relevant),
    )


@router.get("/providers")
async def list_providers(llm_service: LLMService = Depends(get_llm_service)):
    """Providers, their models and whether an API key is configured."""
    return {"providers": llm_service.list_provider_catalog()}
