"""
Service layer - Business logic orchestration.
"""
from .bot_service import BotService
from .content_service import ContentService
from .llm_service import LLMResponse, LLMService
from .upload_service import UploadService

__all__ = ["BotService", "ContentService", "LLMResponse", "LLMService", "UploadService"]
