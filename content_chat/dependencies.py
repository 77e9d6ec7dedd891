"""
Shared dependencies for the application.

Provides dependency injection functions used across routers. Service
instances are created by the app lifespan and registered here.
"""

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .services.bot_service import BotService
    from .services.content_service import ContentService
    from .services.llm_service import LLMService
    from .services.upload_service import UploadService

# Global service instances (set by main app)
_content_service: Optional["ContentService"] = None
_llm_service: Optional["LLMService"] = None
_bot_service: Optional["BotService"] = None
_upload_service: Optional["UploadService"] = None


def set_services(
    content_service: Optional["ContentService"],
    llm_service: Optional["LLMService"],
    bot_service: Optional["BotService"],
    upload_service: Optional["UploadService"],
) -> None:
    """
    Register the global service instances.

    Called by main app during startup; passing None clears a service.
    """
    global _content_service, _llm_service, _bot_service, _upload_service
    _content_service = content_service
    _llm_service = llm_service
    _bot_service = bot_service
    _upload_service = upload_service


async def get_content_service() -> "ContentService":
    """Get content service instance for dependency injection."""
    if _content_service is None:
        raise RuntimeError("Content service not initialized")
    return _content_service


async def get_llm_service() -> "LLMService":
    """Get LLM service instance for dependency injection."""
    if _llm_service is None:
        raise RuntimeError("LLM service not initialized")
    return _llm_service


async def get_bot_service() -> "BotService":
    """Get bot service instance for dependency injection."""
    if _bot_service is None:
        raise RuntimeError("Bot service not initialized")
    return _bot_service


async def get_upload_service() -> "UploadService":
    """Get upload service instance for dependency injection."""
    if _upload_service is None:
        raise RuntimeError("Upload service not initialized")
    return _upload_service
