"""
Bot management API router.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from ..dependencies import get_bot_service
from ..services.bot_service import BotService
from .models import (
    BotCreateRequest,
    BotDuplicateRequest,
    BotTestRequest,
    BotUpdateRequest,
    ErrorResponse,
)

router = APIRouter(prefix="/api/bots", tags=["bots"])

NOT_FOUND = {404: {"description": "Bot not found", "model": ErrorResponse}}


@router.get("", summary="List bots")
async def list_bots(
    q: Optional[str] = Query(None, max_length=100, description="Substring filter"),
    service: BotService = Depends(get_bot_service),
):
    """All bots, without system prompts; q filters by substring."""
    if q:
        bots = [bot.to_public_dict() for bot in await service.search_bots(q)]
    else:
        bots = await service.list_bots()
    return {"bots": bots}


@router.post("", status_code=status.HTTP_201_CREATED, summary="Create bot")
async def create_bot(
    request: BotCreateRequest,
    service: BotService = Depends(get_bot_service),
):
    bot = await service.create_bot(**request.model_dump())
    return {"message": "Bot created successfully", "bot": bot.to_dict()}


@router.get("/{bot_id}", responses=NOT_FOUND, summary="Get bot")
async def get_bot(bot_id: str, service: BotService = Depends(get_bot_service)):
    bot = await service.get_bot(bot_id)
    return {"bot": bot.to_dict()}


@router.put("/{bot_id}", responses=NOT_FOUND, summary="Update bot")
async def update_bot(
    bot_id: str,
    request: BotUpdateRequest,
    service: BotService = Depends(get_bot_service),
):
    bot = await service.update_bot(bot_id, request.model_dump(exclude_unset=True))
    return {"message": "Bot updated successfully", "bot": bot.to_dict()}


@router.delete("/{bot_id}", responses=NOT_FOUND, summary="Delete bot")
async def delete_bot(bot_id: str, service: BotService = Depends(get_bot_service)):
    await service.delete_bot(bot_id)
    return {"message": "Bot deleted successfully"}


@router.get("/{bot_id}/config", responses=NOT_FOUND, summary="Chat widget configuration")
async def get_bot_config(bot_id: str, service: BotService = Depends(get_bot_service)):
    return {"config": await service.get_bot_config(bot_id)}


@router.get("/{bot_id}/analytics", responses=NOT_FOUND, summary="Bot usage analytics")
async def get_bot_analytics(bot_id: str, service: BotService = Depends(get_bot_service)):
    return {"analytics": await service.get_bot_analytics(bot_id)}


@router.post(
    "/{bot_id}/test",
    responses={
        **NOT_FOUND,
        400: {"description": "Bot inactive or provider not configured", "model": ErrorResponse},
        502: {"description": "Upstream failure", "model": ErrorResponse},
    },
    summary="Test bot",
)
async def test_bot(
    bot_id: str,
    request: BotTestRequest,
    service: BotService = Depends(get_bot_service),
):
    """Answer one message with the bot's prompt, content and model."""
    return await service.test_bot(bot_id, request.message)


@router.post(
    "/{bot_id}/duplicate",
    status_code=status.HTTP_201_CREATED,
    responses=NOT_FOUND,
    summary="Duplicate bot",
)
async def duplicate_bot(
    bot_id: str,
    request: Optional[BotDuplicateRequest] = None,
    service: BotService = Depends(get_bot_service),
):
    bot = await service.duplicate_bot(bot_id, request.name if request else None)
    return {"message": "Bot duplicated successfully", "bot": bot.to_dict()}
