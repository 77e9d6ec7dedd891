"""
Test configuration and fixtures
"""

from typing import Callable, List
from unittest.mock import MagicMock

import httpx
import pytest

from content_chat.config import ContentstackConfig
from content_chat.infrastructure.content_store_client import IContentStoreClient
from content_chat.repositories.bot_repository import JsonBotRepository
from content_chat.repositories.json_store import JsonFileStore
from content_chat.repositories.upload_history_repository import JsonUploadHistoryRepository
from content_chat.services.content_service import ContentService
from content_chat.services.llm_service import LLMService


@pytest.fixture
def sample_entries():
    """Two tours as returned by the delivery API."""
    return [
        {"uid": "blt001", "title": "Paris Getaway", "description": "romantic trip"},
        {"uid": "blt002", "title": "Tokyo Adventure", "description": "city tour"},
    ]


@pytest.fixture
def mock_store_client(sample_entries):
    """Content store client mock; async methods become AsyncMocks."""
    client = MagicMock(spec=IContentStoreClient)
    client.fetch_entries.return_value = sample_entries
    client.get_health_status.return_value = {"configured": True}
    return client


@pytest.fixture
def content_service(mock_store_client):
    return ContentService(mock_store_client, fetch_limit=100)


@pytest.fixture
def contentstack_config():
    return ContentstackConfig(
        api_key="stack-key",
        delivery_token="delivery-token",
        management_token="management-token",
        environment="development",
        region="eu",
    )


@pytest.fixture
def bot_repository(tmp_path):
    return JsonBotRepository(JsonFileStore(tmp_path / "bots.json"))


@pytest.fixture
def upload_history_repository(tmp_path):
    return JsonUploadHistoryRepository(JsonFileStore(tmp_path / "upload_history.json"))


class RecordingTransport:
    """
    httpx mock transport that records requests and answers from a handler.

    Attributes:
        requests: Every request seen, in order
    """

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]):
        self.handler = handler
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.handler(request)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))


@pytest.fixture
def make_transport():
    """Factory for RecordingTransport instances."""
    return RecordingTransport


@pytest.fixture
def llm_api_keys():
    return {"openrouter": "or-key", "openai": None, "anthropic": "ant-key", "groq": None}


@pytest.fixture
def make_llm_service(llm_api_keys):
    """Build an LLMService whose HTTP calls go to a handler."""

    def factory(handler: Callable[[httpx.Request], httpx.Response]):
        transport = RecordingTransport(handler)
        service = LLMService(
            llm_api_keys,
            referer="http://localhost:7000",
            app_title="Content Chat Service",
            http_client=transport.client(),
        )
        return service, transport

    return factory
