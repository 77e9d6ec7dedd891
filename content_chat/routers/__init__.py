"""
API routers for content chat service endpoints.
"""

from . import bot_router, chat_router, content_router, health_router, upload_router

__all__ = ["bot_router", "chat_router", "content_router", "health_router", "upload_router"]
