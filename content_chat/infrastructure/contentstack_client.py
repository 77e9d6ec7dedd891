"""
Contentstack API client implementation.

Reads entries through the delivery (CDN) API and writes through the
management API. Reads are retried on transport errors; every failure is
translated into a domain exception carrying the upstream error message.
"""

from typing import Any, Dict, List, Optional

import httpx
import structlog
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ..config import ContentstackConfig
from ..domain.entities import ContentEntry
from ..domain.exceptions import ContentFetchException, ContentStoreException
from .content_store_client import IContentStoreClient

logger = structlog.get_logger(__name__)

DEFAULT_LOCALE = "en-us"


def extract_error_message(error: Exception) -> str:
    """
    Best-effort extraction of Contentstack's error message.

    Contentstack answers failures with {"error_message": "...", ...}; for
    transport errors the exception text is used instead.
    """
    if isinstance(error, httpx.HTTPStatusError):
        try:
            body = error.response.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and body.get("error_message"):
            return str(body["error_message"])
        return f"HTTP {error.response.status_code}"
    return str(error) or error.__class__.__name__


def read_json_object(response: httpx.Response) -> Dict[str, Any]:
    """Decode a response body that must be a JSON object."""
    body = response.json()
    if not isinstance(body, dict):
        raise ValueError("Unexpected response body")
    return body


class ContentstackClient(IContentStoreClient):
    """
    Contentstack client with connection pooling and read retries.

    Attributes:
        config: Stack credentials, environment and region
        timeout: Request timeout in seconds
        max_retries: Extra attempts for reads that fail at transport level
    """

    def __init__(
        self,
        config: ContentstackConfig,
        timeout: float = 30.0,
        max_retries: int = 2,
        retry_wait_seconds: float = 0.5,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize Contentstack client.

        Args:
            config: Contentstack configuration
            timeout: Request timeout in seconds
            max_retries: Retry attempts for transport failures on reads
            retry_wait_seconds: Base of the exponential backoff between retries
            http_client: Pre-built client (tests inject a mock transport)
        """
        self.config = config
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_wait_seconds = retry_wait_seconds
        self._client = http_client

        logger.info(
            "Initialized Contentstack client",
            region=config.region,
            environment=config.environment,
            configured=bool(config.api_key),
        )

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create the shared HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                limits=httpx.Limits(max_keepalive_connections=10, max_connections=50),
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client and release connections."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    def _delivery_headers(self) -> Dict[str, str]:
        return {
            "api_key": self.config.api_key or "",
            "access_token": self.config.delivery_token or "",
        }

    def _management_headers(self, json_body: bool = False) -> Dict[str, str]:
        headers = {
            "api_key": self.config.api_key or "",
            "authorization": self.config.management_token or "",
        }
        if json_body:
            headers["Content-Type"] = "application/json"
        return headers

    async def _get_with_retry(
        self, url: str, headers: Dict[str, str], params: Dict[str, Any]
    ) -> httpx.Response:
        """GET with exponential-backoff retries on transport errors."""
        client = self._get_client()
        async for attempt in AsyncRetrying(
            retry=retry_if_exception_type(httpx.TransportError),
            stop=stop_after_attempt(self.max_retries + 1),
            wait=wait_exponential(multiplier=self.retry_wait_seconds, max=4),
            reraise=True,
        ):
            with attempt:
                response = await client.get(url, headers=headers, params=params)
                response.raise_for_status()
                return response
        raise RuntimeError("unreachable")  # pragma: no cover

    async def fetch_entries(self, content_type: str, limit: int = 50) -> List[ContentEntry]:
        """Fetch entries of a content type from the delivery API."""
        url = f"{self.config.delivery_base_url}/content_types/{content_type}/entries"
        try:
            response = await self._get_with_retry(
                url,
                headers=self._delivery_headers(),
                params={"environment": self.config.environment, "limit": limit},
            )
            entries = read_json_object(response).get("entries") or []
            if not isinstance(entries, list):
                raise ValueError("Unexpected response body")
        except (httpx.HTTPError, ValueError) as e:
            reason = extract_error_message(e)
            logger.error("Get all entries error", content_type=content_type, error=reason)
            raise ContentFetchException(content_type, reason) from e

        logger.debug("Fetched entries", content_type=content_type, count=len(entries))
        return entries

    async def create_entry(
        self,
        title: str,
        description: Optional[str] = None,
        content_type: str = "tours",
        additional_fields: Optional[Dict[str, Any]] = None,
    ) -> ContentEntry:
        """Create an entry through the management API."""
        entry_data = {
            "title": title,
            "description": description or "",
            **(additional_fields or {}),
        }
        body = await self._send(
            "POST",
            f"/content_types/{content_type}/entries",
            operation="create entry",
            json={"entry": entry_data},
        )
        return body.get("entry") or {}

    async def update_entry(
        self,
        uid: str,
        title: str,
        description: Optional[str] = None,
        content_type: str = "tours",
        additional_fields: Optional[Dict[str, Any]] = None,
    ) -> ContentEntry:
        """Update an entry through the management API."""
        entry_data = {
            "title": title,
            "description": description or "",
            **(additional_fields or {}),
        }
        body = await self._send(
            "PUT",
            f"/content_types/{content_type}/entries/{uid}",
            operation="update entry",
            json={"entry": entry_data},
        )
        return body.get("entry") or {}

    async def publish_entry(self, uid: str, content_type: str = "tours") -> Dict[str, Any]:
        """Publish an entry to the configured environment."""
        return await self._send(
            "POST",
            f"/content_types/{content_type}/entries/{uid}/publish",
            operation="publish entry",
            json={
                "entry": {
                    "environments": [self.config.environment],
                    "locales": [DEFAULT_LOCALE],
                }
            },
        )

    async def delete_entry(self, uid: str, content_type: str = "tour") -> Dict[str, Any]:
        """Delete an entry."""
        return await self._send(
            "DELETE",
            f"/content_types/{content_type}/entries/{uid}",
            operation="delete entry",
        )

    async def get_content_types(self) -> List[Dict[str, Any]]:
        """List content types through the management API."""
        url = f"{self.config.management_base_url}/content_types"
        try:
            response = await self._get_with_retry(
                url,
                headers=self._management_headers(),
                params={"branch": self.config.environment},
            )
            content_types = read_json_object(response).get("content_types") or []
            if not isinstance(content_types, list):
                raise ValueError("Unexpected response body")
            return content_types
        except (httpx.HTTPError, ValueError) as e:
            reason = extract_error_message(e)
            logger.error("Get content types error", error=reason)
            raise ContentStoreException("fetch content types", reason) from e

    async def _send(
        self,
        method: str,
        path: str,
        operation: str,
        json: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Send a single (non-retried) management API request.

        Raises:
            ContentStoreException: On transport or upstream failure
        """
        client = self._get_client()
        url = f"{self.config.management_base_url}{path}"
        try:
            response = await client.request(
                method,
                url,
                headers=self._management_headers(json_body=json is not None),
                params={"branch": self.config.environment},
                json=json,
            )
            response.raise_for_status()
            body = response.json() if response.content else {}
        except (httpx.HTTPError, ValueError) as e:
            reason = extract_error_message(e)
            logger.error(f"{operation.capitalize()} error", path=path, error=reason)
            raise ContentStoreException(operation, reason) from e

        return body if isinstance(body, dict) else {}

    def get_health_status(self) -> dict:
        """Report which credentials are configured."""
        return {
            "configured": bool(self.config.api_key and self.config.delivery_token),
            "management_enabled": bool(self.config.api_key and self.config.management_token),
            "region": self.config.region,
            "environment": self.config.environment,
        }
