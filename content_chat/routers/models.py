"""
Request and response models shared by the API routers.
"""

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..domain.entities import DEFAULT_LLM_MODEL

ProviderName = Literal["openrouter", "openai", "anthropic", "groq"]


class ErrorResponse(BaseModel):
    """Error response model."""

    success: bool = False
    error: str
    message: str
    details: dict = {}


# Content
class EntryRequest(BaseModel):
    """
    Entry create/update payload.

    Any extra keys are passed through to the content store as additional
    entry fields.
    """

    model_config = ConfigDict(extra="allow")

    title: str = Field(..., min_length=1, description="Entry title")
    description: Optional[str] = Field(None, description="Entry description")
    content_type: str = Field(default="tours", min_length=1)

    @property
    def additional_fields(self) -> Dict[str, Any]:
        return dict(self.model_extra or {})


class PublishRequest(BaseModel):
    content_type: str = Field(default="tours", min_length=1)


class BulkEntryItem(BaseModel):
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    additional_fields: Dict[str, Any] = Field(default_factory=dict)


class BulkEntriesRequest(BaseModel):
    """Bulk entry creation payload."""

    entries: List[BulkEntryItem] = Field(..., min_length=1)
    content_type: str = Field(default="tour", min_length=1)
    publish: bool = False


class SearchResponse(BaseModel):
    results: List[Dict[str, Any]]
    total: int
    content_type: str
    query: Optional[str] = None


# Chat
class ChatMessage(BaseModel):
    role: Literal["system", "user", "assistant"]
    content: str


class ChatRequest(BaseModel):
    """Chat completion request model."""

    message: str = Field(..., min_length=1, description="User message")
    bot_id: Optional[str] = None
    provider: ProviderName = "openrouter"
    model: Optional[str] = Field(None, description="Model name, provider default if omitted")
    context: List[ChatMessage] = Field(default_factory=list)

    def context_messages(self) -> List[Dict[str, str]]:
        return [message.model_dump() for message in self.context]


class ChatWithContentRequest(ChatRequest):
    """Chat request answered with plain-search results as context."""

    content_type: str = Field(default="tours", min_length=1)
    max_results: int = Field(default=5, ge=1, le=100)


class ChatResponse(BaseModel):
    response: str
    provider: str
    model: str
    usage: Dict[str, Any] = Field(default_factory=dict)


class ChatWithContentResponse(ChatResponse):
    relevant_content: List[Dict[str, Any]]
    sources: int


# Bots
class BotCreateRequest(BaseModel):
    """Bot creation payload."""

    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    start_message: Optional[str] = None
    content_type: str = Field(default="tour", min_length=1)
    llm_provider: ProviderName = "openrouter"
    llm_model: str = Field(default=DEFAULT_LLM_MODEL, min_length=1)
    system_prompt: Optional[str] = None


class BotUpdateRequest(BaseModel):
    """Partial bot update; only fields that are sent are applied."""

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    start_message: Optional[str] = None
    content_type: Optional[str] = Field(None, min_length=1)
    llm_provider: Optional[ProviderName] = None
    llm_model: Optional[str] = Field(None, min_length=1)
    system_prompt: Optional[str] = None
    is_active: Optional[bool] = None


class BotTestRequest(BaseModel):
    message: str = Field(..., min_length=1)


class BotDuplicateRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)


# Upload
class JsonUploadRequest(BaseModel):
    """Direct JSON ingestion payload."""

    data: List[Dict[str, Any]] = Field(..., min_length=1)
    bot_id: Optional[str] = None
    content_type: str = Field(default="tour", min_length=1)
    publish: bool = False
