"""
Bot service layer.

Manages operator-defined chatbots and answers test conversations by
combining intelligent content search with an LLM completion.
"""

import dataclasses
from typing import Any, Dict, List, Optional
from uuid import uuid4

import structlog

from ..domain.entities import DEFAULT_LLM_MODEL, Bot, LLMProvider, now_iso
from ..domain.exceptions import BotInactiveException, BotNotFoundException
from ..repositories.bot_repository import IBotRepository
from .content_service import ContentService, format_entries_for_context
from .llm_service import LLMService

logger = structlog.get_logger(__name__)

TEST_SEARCH_RESULTS = 3
KNOWLEDGE_BASE_HEADER = "Here's some relevant information from our knowledge base:\n\n"

# Fields an update may change; id and created_at are fixed at creation
UPDATABLE_FIELDS = frozenset(
    {
        "name",
        "description",
        "start_message",
        "content_type",
        "llm_provider",
        "llm_model",
        "system_prompt",
        "is_active",
    }
)

SYSTEM_PROMPT_TEMPLATES = {
    "tour": (
        "You are {name}, a knowledgeable travel assistant specializing in tours and "
        "travel experiences. You help users find information about destinations, tours, "
        "activities, and travel recommendations. Always be helpful, friendly, and provide "
        "accurate information based on the available content. If you don't have specific "
        "information, acknowledge it and offer to help in other ways."
    ),
    "product": (
        "You are {name}, a helpful product assistant. You provide information about "
        "products, features, specifications, and help users make informed decisions. "
        "Always be accurate and helpful in your responses."
    ),
    "support": (
        "You are {name}, a customer support assistant. You help users with their "
        "questions, issues, and provide solutions. Always be patient, understanding, and "
        "try to resolve their concerns effectively."
    ),
    "default": (
        "You are {name}, an AI assistant. You help users by providing accurate and "
        "helpful information based on the available content. Always be friendly, "
        "professional, and try your best to assist with their queries."
    ),
}


def default_start_message(name: str) -> str:
    return f"Hello! I'm {name}, your AI assistant. How can I help you today?"


def default_system_prompt(name: str, content_type: str) -> str:
    """System prompt for a content type, falling back to the generic one."""
    template = SYSTEM_PROMPT_TEMPLATES.get(content_type, SYSTEM_PROMPT_TEMPLATES["default"])
    return template.format(name=name)


class BotService:
    """
    Chatbot management service.

    Attributes:
        repository: Bot persistence
        content_service: Source of supporting content for answers
        llm_service: LLM completion client
    """

    def __init__(
        self,
        repository: IBotRepository,
        content_service: ContentService,
        llm_service: LLMService,
    ):
        self.repository = repository
        self.content_service = content_service
        self.llm_service = llm_service

    async def list_bots(self) -> List[Dict[str, Any]]:
        """All bots without their system prompts."""
        return [bot.to_public_dict() for bot in await self.repository.list_all()]

    async def get_bot(self, bot_id: str) -> Bot:
        """
        Get a bot by ID.

        Raises:
            BotNotFoundException: If no bot has that ID
        """
        bot = await self.repository.get(bot_id)
        if bot is None:
            raise BotNotFoundException(bot_id)
        return bot

    async def create_bot(
        self,
        name: str,
        description: Optional[str] = None,
        start_message: Optional[str] = None,
        content_type: str = "tour",
        llm_provider: str = LLMProvider.OPENROUTER.value,
        llm_model: str = DEFAULT_LLM_MODEL,
        system_prompt: Optional[str] = None,
    ) -> Bot:
        """
        Create and persist a bot.

        Missing start message and system prompt are generated from the
        bot name and content type.
        """
        bot = Bot(
            id=str(uuid4()),
            name=name,
            description=description,
            start_message=start_message or default_start_message(name),
            content_type=content_type,
            llm_provider=llm_provider,
            llm_model=llm_model,
            system_prompt=system_prompt or default_system_prompt(name, content_type),
        )
        await self.repository.add(bot)
        logger.info("Bot created", bot_id=bot.id, name=name, content_type=content_type)
        return bot

    async def update_bot(self, bot_id: str, updates: Dict[str, Any]) -> Bot:
        """
        Apply a partial update.

        Unknown keys and immutable fields (id, created_at, usage counters)
        are ignored; updated_at is refreshed.

        Raises:
            BotNotFoundException: If no bot has that ID
        """
        bot = await self.get_bot(bot_id)
        changes = {key: value for key, value in updates.items() if key in UPDATABLE_FIELDS}
        updated = dataclasses.replace(bot, **changes, updated_at=now_iso())

        if await self.repository.replace(updated) is None:
            raise BotNotFoundException(bot_id)

        logger.info("Bot updated", bot_id=bot_id, fields=sorted(changes))
        return updated

    async def delete_bot(self, bot_id: str) -> None:
        """
        Raises:
            BotNotFoundException: If no bot has that ID
        """
        if not await self.repository.delete(bot_id):
            raise BotNotFoundException(bot_id)
        logger.info("Bot deleted", bot_id=bot_id)

    async def get_bot_config(self, bot_id: str) -> Dict[str, Any]:
        """Widget configuration of a bot."""
        return (await self.get_bot(bot_id)).to_widget_config()

    async def get_bot_analytics(self, bot_id: str) -> Dict[str, Any]:
        """Usage statistics of a bot."""
        return (await self.get_bot(bot_id)).to_analytics()

    async def search_bots(self, query: Optional[str]) -> List[Bot]:
        """
        Case-insensitive substring search over name, description and content type.

        An empty query returns every bot.
        """
        bots = await self.repository.list_all()
        if not query:
            return bots

        term = query.lower()
        return [
            bot
            for bot in bots
            if term in bot.name.lower()
            or (bot.description and term in bot.description.lower())
            or term in bot.content_type.lower()
        ]

    async def duplicate_bot(self, bot_id: str, new_name: Optional[str] = None) -> Bot:
        """
        Copy a bot under a new ID with fresh timestamps and usage counters.

        Raises:
            BotNotFoundException: If no bot has that ID
        """
        original = await self.get_bot(bot_id)
        timestamp = now_iso()
        copy = dataclasses.replace(
            original,
            id=str(uuid4()),
            name=new_name or f"{original.name} (Copy)",
            created_at=timestamp,
            updated_at=timestamp,
            conversation_count=0,
            last_used=None,
        )
        await self.repository.add(copy)
        logger.info("Bot duplicated", source_bot_id=bot_id, bot_id=copy.id)
        return copy

    async def test_bot(self, bot_id: str, message: str) -> Dict[str, Any]:
        """
        Answer one message as the bot would.

        Searches the bot's content type with intelligent search, adds the
        hits as a knowledge-base system message after the bot's system
        prompt, asks the bot's LLM and records the conversation.

        Raises:
            BotNotFoundException: If no bot has that ID
            BotInactiveException: If the bot is deactivated
            LLMProviderNotConfiguredException: If the bot's provider has no key
            LLMServiceException: If the completion fails
        """
        bot = await self.get_bot(bot_id)
        if not bot.is_active:
            raise BotInactiveException(bot_id)

        relevant = await self.content_service.intelligent_search(
            message, bot.content_type, TEST_SEARCH_RESULTS
        )

        context = [{"role": "system", "content": bot.system_prompt}]
        if relevant:
            context.append(
                {
                    "role": "system",
                    "content": format_entries_for_context(relevant, KNOWLEDGE_BASE_HEADER),
                }
            )

        response = await self.llm_service.generate_response(
            message,
            provider=bot.llm_provider,
            model=bot.llm_model,
            context=context,
        )

        await self._record_usage(bot_id)

        return {
            "message": response.content,
            "provider": response.provider,
            "model": response.model,
            "relevant_content": len(relevant),
            "sources": relevant,
        }

    async def _record_usage(self, bot_id: str) -> None:
        bot = await self.repository.get(bot_id)
        if bot is None:
            return
        await self.repository.replace(
            dataclasses.replace(
                bot,
                conversation_count=bot.conversation_count + 1,
                last_used=now_iso(),
            )
        )
