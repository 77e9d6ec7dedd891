"""
Upload history repository.

Newest records first; the JSON implementation keeps the whole history in
memory and rewrites the file on every insert.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import List, Optional

from ..domain.entities import UploadRecord
from .json_store import JsonFileStore


class IUploadHistoryRepository(ABC):
    """Abstract repository interface for upload history."""

    @abstractmethod
    async def add(self, record: UploadRecord) -> UploadRecord:
        """Prepend a record and persist."""
        pass

    @abstractmethod
    async def list_recent(
        self, bot_id: Optional[str] = None, limit: int = 10
    ) -> List[UploadRecord]:
        """
        Most recent records, optionally restricted to one bot.

        Args:
            bot_id: Only records linked to this bot
            limit: Maximum number of records
        """
        pass


class JsonUploadHistoryRepository(IUploadHistoryRepository):
    """Upload history persisted as a JSON array."""

    def __init__(self, store: JsonFileStore):
        self.store = store
        self._records: List[UploadRecord] = [
            UploadRecord.from_dict(data) for data in store.load()
        ]
        self._lock = asyncio.Lock()

    async def add(self, record: UploadRecord) -> UploadRecord:
        async with self._lock:
            records = [record, *self._records]
            self.store.save([item.to_dict() for item in records])
            self._records = records
        return record

    async def list_recent(
        self, bot_id: Optional[str] = None, limit: int = 10
    ) -> List[UploadRecord]:
        records = self._records
        if bot_id:
            records = [record for record in records if record.bot_id == bot_id]
        return records[: max(limit, 0)]
