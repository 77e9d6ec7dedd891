"""
Domain entities for content search and chatbot management.

Content entries come from a schemaless third-party store, so they are kept
as plain dictionaries and read through the accessor functions below.
Everything else is a small dataclass with explicit serialization.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

ContentEntry = Dict[str, Any]

# Ordered fallbacks for the free-text body of an entry
PLAIN_DESCRIPTION_FIELDS = ("description", "paris", "india", "content", "body")
INTELLIGENT_DESCRIPTION_FIELDS = ("description", "paris", "india")

# Fields used when an entry is rendered into LLM context
CONTEXT_DESCRIPTION_FIELDS = ("description", "content")


def get_title(entry: ContentEntry) -> str:
    """Return the entry title, or an empty string if missing or not text."""
    title = entry.get("title")
    return title if isinstance(title, str) else ""


def get_description(
    entry: ContentEntry, fields: Sequence[str] = PLAIN_DESCRIPTION_FIELDS
) -> str:
    """
    Probe description fields in order.

    Args:
        entry: Content entry to read
        fields: Candidate field names, tried in order

    Returns:
        First non-empty string value, or "" if none is present
    """
    for name in fields:
        value = entry.get(name)
        if isinstance(value, str) and value:
            return value
    return ""


def get_all_text(entry: ContentEntry) -> str:
    """Join every string-valued field of the entry with spaces."""
    return " ".join(value for value in entry.values() if isinstance(value, str))


def now_iso() -> str:
    """Current UTC time as ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class SearchQuery:
    """Immutable input of a single search invocation."""

    query: Optional[str]
    content_type: str
    max_results: Any = 10


@dataclass(frozen=True)
class ScoredEntry:
    """
    A content entry together with its relevance for one search call.

    Attributes:
        entry: The original content entry (never mutated)
        score: Accumulated relevance score (higher is better)
        relevance: Score normalized by the number of search terms
    """

    entry: ContentEntry
    score: float
    relevance: float = 0.0

    def to_dict(self) -> ContentEntry:
        """Return a fresh copy of the entry annotated with score and relevance."""
        result = dict(self.entry)
        result["score"] = self.score
        result["relevance"] = self.relevance
        return result


class LLMProvider(str, Enum):
    """Supported LLM providers."""

    OPENROUTER = "openrouter"
    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    GROQ = "groq"


DEFAULT_LLM_MODEL = "meta-llama/llama-3.1-8b-instruct:free"


@dataclass
class Bot:
    """
    Operator-defined chatbot.

    A bot answers with a specific LLM and pulls supporting content from
    one content type of the content store.
    """

    id: str
    name: str
    system_prompt: str
    start_message: str
    description: Optional[str] = None
    content_type: str = "tour"
    llm_provider: str = LLMProvider.OPENROUTER.value
    llm_model: str = DEFAULT_LLM_MODEL
    created_at: str = field(default_factory=now_iso)
    updated_at: str = field(default_factory=now_iso)
    is_active: bool = True
    conversation_count: int = 0
    last_used: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for storage and API responses."""
        return asdict(self)

    def to_public_dict(self) -> Dict[str, Any]:
        """List view without the system prompt."""
        data = self.to_dict()
        data.pop("system_prompt", None)
        return data

    def to_widget_config(self) -> Dict[str, Any]:
        """Subset of settings needed by an embedded chat widget."""
        return {
            "id": self.id,
            "name": self.name,
            "start_message": self.start_message,
            "llm_provider": self.llm_provider,
            "llm_model": self.llm_model,
            "content_type": self.content_type,
            "is_active": self.is_active,
        }

    def to_analytics(self) -> Dict[str, Any]:
        """Usage statistics view."""
        return {
            "id": self.id,
            "name": self.name,
            "conversation_count": self.conversation_count,
            "last_used": self.last_used,
            "created_at": self.created_at,
            "is_active": self.is_active,
            "content_type": self.content_type,
            "llm_provider": self.llm_provider,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Bot":
        """Build a bot from stored data, ignoring unknown keys."""
        known = {name for name in cls.__dataclass_fields__}
        return cls(**{key: value for key, value in data.items() if key in known})


@dataclass
class UploadRecord:
    """History record of one ingestion run."""

    id: str
    file_name: str
    content_type: str
    total_entries: int
    successful: int
    failed: int
    published: bool
    bot_id: Optional[str] = None
    uploaded_at: str = field(default_factory=now_iso)
    title_column: Optional[str] = None
    description_column: Optional[str] = None
    source: str = "spreadsheet"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for storage and API responses."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UploadRecord":
        """Build a record from stored data, ignoring unknown keys."""
        known = {name for name in cls.__dataclass_fields__}
        return cls(**{key: value for key, value in data.items() if key in known})


@dataclass
class BulkCreateResult:
    """Outcome of a bulk entry creation."""

    successful: List[Dict[str, Any]] = field(default_factory=list)
    failed: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for API responses."""
        return {"successful": self.successful, "failed": self.failed}
