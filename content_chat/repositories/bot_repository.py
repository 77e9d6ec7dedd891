"""
Bot repository.

Defines the contract for bot persistence and a JSON-file implementation
that keeps all bots in memory and rewrites the file on every change.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import List, Optional

import structlog

from ..domain.entities import Bot
from .json_store import JsonFileStore

logger = structlog.get_logger(__name__)


class IBotRepository(ABC):
    """Abstract repository interface for bots."""

    @abstractmethod
    async def list_all(self) -> List[Bot]:
        """Return all bots in insertion order."""
        pass

    @abstractmethod
    async def get(self, bot_id: str) -> Optional[Bot]:
        """
        Find a bot by ID.

        Returns:
            Bot if found, None otherwise
        """
        pass

    @abstractmethod
    async def add(self, bot: Bot) -> Bot:
        """Append a new bot and persist."""
        pass

    @abstractmethod
    async def replace(self, bot: Bot) -> Optional[Bot]:
        """
        Replace the stored bot with the same ID.

        Returns:
            The stored bot, None if no bot has that ID
        """
        pass

    @abstractmethod
    async def delete(self, bot_id: str) -> bool:
        """
        Delete a bot.

        Returns:
            True if a bot was removed
        """
        pass


class JsonBotRepository(IBotRepository):
    """
    Bots persisted as a JSON array.

    Mutations are serialized with an asyncio lock so concurrent requests
    never interleave a read-modify-write of the file.
    """

    def __init__(self, store: JsonFileStore):
        self.store = store
        self._bots: List[Bot] = [Bot.from_dict(data) for data in store.load()]
        self._lock = asyncio.Lock()
        logger.info("Loaded bots", path=str(store.path), count=len(self._bots))

    def _commit(self, bots: List[Bot]) -> None:
        """Write bots to disk, then make them the in-memory state."""
        self.store.save([bot.to_dict() for bot in bots])
        self._bots = bots

    def _index_of(self, bot_id: str) -> int:
        for index, bot in enumerate(self._bots):
            if bot.id == bot_id:
                return index
        return -1

    async def list_all(self) -> List[Bot]:
        return list(self._bots)

    async def get(self, bot_id: str) -> Optional[Bot]:
        index = self._index_of(bot_id)
        return self._bots[index] if index >= 0 else None

    async def add(self, bot: Bot) -> Bot:
        async with self._lock:
            self._commit([*self._bots, bot])
        return bot

    async def replace(self, bot: Bot) -> Optional[Bot]:
        async with self._lock:
            index = self._index_of(bot.id)
            if index < 0:
                return None
            bots = list(self._bots)
            bots[index] = bot
            self._commit(bots)
        return bot

    async def delete(self, bot_id: str) -> bool:
        async with self._lock:
            index = self._index_of(bot_id)
            if index < 0:
                return False
            self._commit(self._bots[:index] + self._bots[index + 1 :])
        return True
