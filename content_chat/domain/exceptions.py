"""
Custom exceptions for the content chat service domain.

These exceptions represent domain-level errors and are independent
of infrastructure concerns (HTTP, file storage, etc.).
"""

from typing import Any, Optional


class ContentChatException(Exception):
    """Base exception for all content chat service errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ContentStoreException(ContentChatException):
    """Raised when a call to the content store (Contentstack) fails."""

    def __init__(self, operation: str, reason: Optional[str] = None):
        message = f"Failed to {operation}"
        if reason:
            message += f": {reason}"
        super().__init__(
            message=message, details={"operation": operation, "reason": reason}
        )


class ContentFetchException(ContentStoreException):
    """Raised when content entries cannot be fetched from the content store."""

    def __init__(self, content_type: str, reason: Optional[str] = None):
        super().__init__(operation="fetch entries", reason=reason)
        self.details["content_type"] = content_type


class LLMProviderNotConfiguredException(ContentChatException):
    """Raised when an LLM provider is unknown or has no API key."""

    def __init__(self, provider: str):
        super().__init__(
            message=f"Provider {provider} is not configured or API key is missing",
            details={"provider": provider},
        )


class LLMServiceException(ContentChatException):
    """Raised when an LLM provider request fails."""

    def __init__(self, provider: str, reason: Optional[str] = None):
        message = f"Failed to generate response from {provider}"
        if reason:
            message += f": {reason}"
        super().__init__(
            message=message, details={"provider": provider, "reason": reason}
        )


class BotNotFoundException(ContentChatException):
    """Raised when a bot cannot be found."""

    def __init__(self, bot_id: str):
        super().__init__(message="Bot not found", details={"bot_id": bot_id})


class BotInactiveException(ContentChatException):
    """Raised when an inactive bot is asked to answer."""

    def __init__(self, bot_id: str):
        super().__init__(message="Bot is not active", details={"bot_id": bot_id})


class ValidationException(ContentChatException):
    """Raised when input validation fails."""

    def __init__(self, field: str, value: Any, reason: str):
        message = f"Validation failed for {field}: {reason}"
        super().__init__(
            message=message,
            details={"field": field, "value": str(value), "reason": reason},
        )


class IngestionException(ContentChatException):
    """Raised when a spreadsheet or JSON upload cannot be processed."""

    def __init__(self, source: str, reason: str):
        super().__init__(
            message=f"Failed to process {source}: {reason}",
            details={"source": source, "reason": reason},
        )


class PersistenceException(ContentChatException):
    """Raised when local JSON persistence fails."""

    def __init__(self, path: str, reason: str):
        super().__init__(
            message=f"Failed to save data to {path}: {reason}",
            details={"path": path, "reason": reason},
        )
