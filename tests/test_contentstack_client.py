"""
Tests for the Contentstack client.

Uses httpx.MockTransport so no network access is needed.
"""

import json

import httpx
import pytest

from content_chat.domain.exceptions import ContentFetchException, ContentStoreException
from content_chat.infrastructure.contentstack_client import (
    ContentstackClient,
    extract_error_message,
)

DELIVERY = "https://eu-cdn.contentstack.com/v3"
MANAGEMENT = "https://eu-api.contentstack.com/v3"


@pytest.fixture
def make_client(contentstack_config, make_transport):
    def factory(handler, max_retries=2):
        transport = make_transport(handler)
        client = ContentstackClient(
            contentstack_config,
            max_retries=max_retries,
            retry_wait_seconds=0,
            http_client=transport.client(),
        )
        return client, transport

    return factory


class TestFetchEntries:
    """Test reads from the delivery API."""

    @pytest.mark.asyncio
    async def test_fetch_entries(self, make_client):
        client, transport = make_client(
            lambda request: httpx.Response(200, json={"entries": [{"uid": "blt1"}]})
        )

        entries = await client.fetch_entries("tour", 25)

        assert entries == [{"uid": "blt1"}]
        request = transport.requests[0]
        assert str(request.url).startswith(f"{DELIVERY}/content_types/tour/entries")
        assert request.url.params["environment"] == "development"
        assert request.url.params["limit"] == "25"
        assert request.headers["api_key"] == "stack-key"
        assert request.headers["access_token"] == "delivery-token"

    @pytest.mark.asyncio
    async def test_missing_entries_key(self, make_client):
        client, _ = make_client(lambda request: httpx.Response(200, json={}))

        assert await client.fetch_entries("tour") == []

    @pytest.mark.asyncio
    async def test_upstream_error_message_is_kept(self, make_client):
        client, _ = make_client(
            lambda request: httpx.Response(
                422, json={"error_message": "The Content Type 'tour' was not found."}
            )
        )

        with pytest.raises(ContentFetchException) as exc_info:
            await client.fetch_entries("tour")

        assert exc_info.value.message == (
            "Failed to fetch entries: The Content Type 'tour' was not found."
        )
        assert exc_info.value.details["content_type"] == "tour"

    @pytest.mark.asyncio
    async def test_status_errors_are_not_retried(self, make_client):
        client, transport = make_client(lambda request: httpx.Response(500, text="oops"))

        with pytest.raises(ContentFetchException):
            await client.fetch_entries("tour")

        assert len(transport.requests) == 1

    @pytest.mark.asyncio
    async def test_transport_errors_are_retried(self, make_client):
        attempts = []

        def handler(request):
            attempts.append(request)
            if len(attempts) < 3:
                raise httpx.ConnectError("connection refused", request=request)
            return httpx.Response(200, json={"entries": [{"uid": "late"}]})

        client, _ = make_client(handler, max_retries=2)

        assert await client.fetch_entries("tour") == [{"uid": "late"}]
        assert len(attempts) == 3

    @pytest.mark.asyncio
    async def test_retries_exhausted(self, make_client):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        client, transport = make_client(handler, max_retries=1)

        with pytest.raises(ContentFetchException) as exc_info:
            await client.fetch_entries("tour")

        assert "connection refused" in exc_info.value.message
        assert len(transport.requests) == 2

    @pytest.mark.asyncio
    async def test_invalid_json(self, make_client):
        client, _ = make_client(lambda request: httpx.Response(200, text="<html>"))

        with pytest.raises(ContentFetchException):
            await client.fetch_entries("tour")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [["oops"], "oops", {"entries": "oops"}])
    async def test_non_object_body(self, make_client, body):
        client, _ = make_client(lambda request: httpx.Response(200, json=body))

        with pytest.raises(ContentFetchException) as exc_info:
            await client.fetch_entries("tour")

        assert exc_info.value.details["content_type"] == "tour"
        assert "Unexpected response body" in exc_info.value.message


class TestManagementApi:
    """Test writes through the management API."""

    @pytest.mark.asyncio
    async def test_create_entry(self, make_client):
        client, transport = make_client(
            lambda request: httpx.Response(
                201, json={"entry": {"uid": "new", "title": "Lisbon Trams"}}
            )
        )

        entry = await client.create_entry(
            "Lisbon Trams", None, "tour", {"price": "15"}
        )

        assert entry == {"uid": "new", "title": "Lisbon Trams"}
        request = transport.requests[0]
        assert request.method == "POST"
        assert str(request.url).startswith(f"{MANAGEMENT}/content_types/tour/entries")
        assert request.url.params["branch"] == "development"
        assert request.headers["authorization"] == "management-token"
        assert request.headers["content-type"] == "application/json"
        assert json.loads(request.content) == {
            "entry": {"title": "Lisbon Trams", "description": "", "price": "15"}
        }

    @pytest.mark.asyncio
    async def test_update_entry(self, make_client):
        client, transport = make_client(
            lambda request: httpx.Response(200, json={"entry": {"uid": "blt1"}})
        )

        await client.update_entry("blt1", "New Title", "New text", "tours")

        request = transport.requests[0]
        assert request.method == "PUT"
        assert request.url.path == "/v3/content_types/tours/entries/blt1"
        assert json.loads(request.content)["entry"]["description"] == "New text"

    @pytest.mark.asyncio
    async def test_publish_entry(self, make_client):
        client, transport = make_client(
            lambda request: httpx.Response(200, json={"notice": "Entry sent for publishing."})
        )

        result = await client.publish_entry("blt1", "tours")

        assert result == {"notice": "Entry sent for publishing."}
        request = transport.requests[0]
        assert request.url.path == "/v3/content_types/tours/entries/blt1/publish"
        assert json.loads(request.content) == {
            "entry": {"environments": ["development"], "locales": ["en-us"]}
        }

    @pytest.mark.asyncio
    async def test_delete_with_empty_body(self, make_client):
        client, transport = make_client(lambda request: httpx.Response(204))

        assert await client.delete_entry("blt1", "tour") == {}
        request = transport.requests[0]
        assert request.method == "DELETE"
        assert "content-type" not in request.headers

    @pytest.mark.asyncio
    async def test_write_failure(self, make_client):
        client, transport = make_client(
            lambda request: httpx.Response(422, json={"error_message": "Title is not unique."})
        )

        with pytest.raises(ContentStoreException) as exc_info:
            await client.create_entry("Dup")

        assert exc_info.value.message == "Failed to create entry: Title is not unique."
        assert len(transport.requests) == 1

    @pytest.mark.asyncio
    async def test_get_content_types(self, make_client):
        client, transport = make_client(
            lambda request: httpx.Response(
                200, json={"content_types": [{"uid": "tour", "title": "Tour"}]}
            )
        )

        assert await client.get_content_types() == [{"uid": "tour", "title": "Tour"}]
        assert str(transport.requests[0].url).startswith(f"{MANAGEMENT}/content_types")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [["oops"], {"content_types": {"uid": "tour"}}])
    async def test_get_content_types_non_object_body(self, make_client, body):
        client, _ = make_client(lambda request: httpx.Response(200, json=body))

        with pytest.raises(ContentStoreException) as exc_info:
            await client.get_content_types()

        assert "Unexpected response body" in exc_info.value.message


class TestHelpers:
    def test_extract_error_message_without_body(self):
        request = httpx.Request("GET", "https://example.com")
        response = httpx.Response(503, text="down", request=request)
        error = httpx.HTTPStatusError("503", request=request, response=response)

        assert extract_error_message(error) == "HTTP 503"

    def test_extract_error_message_transport(self):
        assert extract_error_message(httpx.ReadTimeout("timed out")) == "timed out"

    def test_health_status(self, contentstack_config):
        client = ContentstackClient(contentstack_config)

        assert client.get_health_status() == {
            "configured": True,
            "management_enabled": True,
            "region": "eu",
            "environment": "development",
        }

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self, make_client):
        client, _ = make_client(lambda request: httpx.Response(200, json={}))

        await client.close()
        await client.close()
