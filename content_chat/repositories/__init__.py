"""
Repository layer - Data access abstractions.

Bots and upload history are small operator-managed collections kept as
JSON files on local disk.
"""
from .bot_repository import IBotRepository, JsonBotRepository
from .json_store import JsonFileStore
from .upload_history_repository import IUploadHistoryRepository, JsonUploadHistoryRepository

__all__ = [
    "IBotRepository",
    "IUploadHistoryRepository",
    "JsonBotRepository",
    "JsonFileStore",
    "JsonUploadHistoryRepository",
]
