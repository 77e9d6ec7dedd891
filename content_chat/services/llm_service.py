"""
LLM completion service.

Talks to OpenAI-compatible chat completion APIs (OpenRouter, OpenAI, Groq)
and to Anthropic's messages API, in both request/response and streaming
mode. Provider credentials are passed in at construction.
"""

import json
import time
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Dict, List, Optional, Tuple

import httpx
import structlog

from ..domain.entities import LLMProvider
from ..domain.exceptions import LLMProviderNotConfiguredException, LLMServiceException
from ..metrics import llm_requests_total

logger = structlog.get_logger(__name__)

MAX_TOKENS = 1000
TEMPERATURE = 0.7
ANTHROPIC_VERSION = "2023-06-01"


@dataclass(frozen=True)
class ProviderConfig:
    """Static description of one LLM provider plus its API key."""

    name: str
    display_name: str
    base_url: str
    default_model: str
    models: Tuple[str, ...]
    api_key: Optional[str] = None

    @property
    def available(self) -> bool:
        return bool(self.api_key)


PROVIDER_DEFAULTS: Dict[str, Dict[str, Any]] = {
    LLMProvider.OPENROUTER.value: {
        "display_name": "OpenRouter",
        "base_url": "https://openrouter.ai/api/v1",
        "default_model": "meta-llama/llama-3.1-8b-instruct:free",
        "models": (
            "meta-llama/llama-3.1-8b-instruct:free",
            "microsoft/wizardlm-2-8x22b",
            "anthropic/claude-3-haiku",
            "openai/gpt-3.5-turbo",
            "openai/gpt-4",
        ),
    },
    LLMProvider.OPENAI.value: {
        "display_name": "OpenAI",
        "base_url": "https://api.openai.com/v1",
        "default_model": "gpt-3.5-turbo",
        "models": ("gpt-3.5-turbo", "gpt-4", "gpt-4-turbo"),
    },
    LLMProvider.ANTHROPIC.value: {
        "display_name": "Anthropic",
        "base_url": "https://api.anthropic.com/v1",
        "default_model": "claude-3-haiku-20240307",
        "models": ("claude-3-sonnet-20240229", "claude-3-haiku-20240307"),
    },
    LLMProvider.GROQ.value: {
        "display_name": "Groq",
        "base_url": "https://api.groq.com/openai/v1",
        "default_model": "llama3-8b-8192",
        "models": ("llama3-8b-8192", "llama3-70b-8192", "mixtral-8x7b-32768"),
    },
}


@dataclass
class LLMResponse:
    """Result of a non-streaming completion."""

    content: str
    provider: str
    model: str
    usage: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "content": self.content,
            "provider": self.provider,
            "model": self.model,
            "usage": self.usage,
        }


class LLMService:
    """
    Multi-provider LLM client.

    Attributes:
        providers: Provider configurations keyed by provider name
        timeout: Request timeout in seconds
    """

    def __init__(
        self,
        api_keys: Dict[str, Optional[str]],
        timeout: float = 30.0,
        referer: str = "http://localhost:7000",
        app_title: str = "Content Chat Service",
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize LLM service.

        Args:
            api_keys: API key per provider name; missing keys disable a provider
            timeout: Request timeout in seconds
            referer: HTTP-Referer sent to OpenRouter
            app_title: X-Title sent to OpenRouter
            http_client: Pre-built client (tests inject a mock transport)
        """
        self.providers: Dict[str, ProviderConfig] = {
            name: ProviderConfig(name=name, api_key=api_keys.get(name), **defaults)
            for name, defaults in PROVIDER_DEFAULTS.items()
        }
        self.timeout = timeout
        self.referer = referer
        self.app_title = app_title
        self._client = http_client

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def close(self) -> None:
        """Close the HTTP client and release connections."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    def get_available_providers(self) -> List[str]:
        """Names of providers that have an API key."""
        return [name for name, config in self.providers.items() if config.available]

    def is_provider_available(self, provider: str) -> bool:
        config = self.providers.get(provider)
        return bool(config and config.available)

    def list_provider_catalog(self) -> List[Dict[str, Any]]:
        """Providers with their models and availability, for client UIs."""
        return [
            {
                "id": config.name,
                "name": config.display_name,
                "models": list(config.models),
                "available": config.available,
            }
            for config in self.providers.values()
        ]

    def _require_provider(self, provider: str) -> ProviderConfig:
        config = self.providers.get(provider)
        if config is None or not config.available:
            raise LLMProviderNotConfiguredException(provider)
        return config

    def _headers(self, config: ProviderConfig) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}

        if config.name == LLMProvider.ANTHROPIC.value:
            headers["x-api-key"] = config.api_key or ""
            headers["anthropic-version"] = ANTHROPIC_VERSION
            return headers

        headers["Authorization"] = f"Bearer {config.api_key}"
        if config.name == LLMProvider.OPENROUTER.value:
            headers["HTTP-Referer"] = self.referer
            headers["X-Title"] = self.app_title
        return headers

    def _build_request(
        self,
        config: ProviderConfig,
        model: str,
        messages: List[Dict[str, str]],
        stream: bool,
    ) -> Tuple[str, Dict[str, Any]]:
        """
        Build endpoint URL and payload for a provider.

        Anthropic takes system prompts as a top-level field rather than as
        messages, so they are lifted out of the message list.
        """
        if config.name == LLMProvider.ANTHROPIC.value:
            system = "\n\n".join(m["content"] for m in messages if m.get("role") == "system")
            payload: Dict[str, Any] = {
                "model": model,
                "max_tokens": MAX_TOKENS,
                "messages": [m for m in messages if m.get("role") != "system"],
            }
            if system:
                payload["system"] = system
            if stream:
                payload["stream"] = True
            return f"{config.base_url}/messages", payload

        payload = {
            "model": model,
            "messages": messages,
            "max_tokens": MAX_TOKENS,
            "temperature": TEMPERATURE,
        }
        if stream:
            payload["stream"] = True
        return f"{config.base_url}/chat/completions", payload

    @staticmethod
    def _build_messages(
        message: str, context: Optional[List[Dict[str, str]]]
    ) -> List[Dict[str, str]]:
        return [*(context or []), {"role": "user", "content": message}]

    @staticmethod
    def _parse_completion(provider: str, body: Dict[str, Any]) -> str:
        if provider == LLMProvider.ANTHROPIC.value:
            blocks = body.get("content") or []
            return "".join(
                block.get("text", "") for block in blocks if block.get("type") == "text"
            )
        return body["choices"][0]["message"]["content"]

    @staticmethod
    def _error_reason(error: Exception) -> str:
        if isinstance(error, httpx.HTTPStatusError):
            try:
                body = error.response.json()
            except ValueError:
                body = None
            if isinstance(body, dict):
                detail = body.get("error")
                if isinstance(detail, dict) and detail.get("message"):
                    return str(detail["message"])
            return f"HTTP {error.response.status_code}"
        return str(error) or error.__class__.__name__

    async def generate_response(
        self,
        message: str,
        provider: str = LLMProvider.OPENROUTER.value,
        model: Optional[str] = None,
        context: Optional[List[Dict[str, str]]] = None,
    ) -> LLMResponse:
        """
        Generate a chat completion.

        Args:
            message: User message
            provider: Provider name
            model: Model name, provider default if None
            context: Prior messages (system prompts, history)

        Returns:
            LLMResponse with the assistant reply

        Raises:
            LLMProviderNotConfiguredException: Unknown provider or no API key
            LLMServiceException: If the provider request fails
        """
        config = self._require_provider(provider)
        selected_model = model or config.default_model
        url, payload = self._build_request(
            config, selected_model, self._build_messages(message, context), stream=False
        )

        start_time = time.perf_counter()
        try:
            response = await self._get_client().post(
                url, json=payload, headers=self._headers(config)
            )
            response.raise_for_status()
            body = response.json()
            content = self._parse_completion(provider, body)
        except (httpx.HTTPError, ValueError, KeyError, IndexError, TypeError) as e:
            reason = self._error_reason(e)
            logger.error("LLM API error", provider=provider, model=selected_model, error=reason)
            llm_requests_total.labels(provider=provider, mode="complete", status="error").inc()
            raise LLMServiceException(provider, reason) from e

        llm_requests_total.labels(provider=provider, mode="complete", status="success").inc()
        logger.info(
            "LLM response generated",
            provider=provider,
            model=selected_model,
            duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
        )
        return LLMResponse(
            content=content,
            provider=provider,
            model=selected_model,
            usage=body.get("usage") or {},
        )

    async def stream_response(
        self,
        message: str,
        provider: str = LLMProvider.OPENROUTER.value,
        model: Optional[str] = None,
        context: Optional[List[Dict[str, str]]] = None,
    ) -> AsyncIterator[Dict[str, Any]]:
        """
        Stream a chat completion as content chunks.

        Yields:
            {"content": str, "provider": str, "model": str} per delta

        Raises:
            LLMProviderNotConfiguredException: Unknown provider or no API key
            LLMServiceException: If the provider request fails
        """
        config = self._require_provider(provider)
        selected_model = model or config.default_model
        url, payload = self._build_request(
            config, selected_model, self._build_messages(message, context), stream=True
        )

        try:
            async with self._get_client().stream(
                "POST", url, json=payload, headers=self._headers(config)
            ) as response:
                if response.is_error:
                    await response.aread()
                response.raise_for_status()

                async for line in response.aiter_lines():
                    if not line.strip():
                        continue
                    if "[DONE]" in line:
                        break
                    content = self._parse_stream_line(provider, line)
                    if content:
                        yield {"content": content, "provider": provider, "model": selected_model}
        except httpx.HTTPError as e:
            reason = self._error_reason(e)
            logger.error(
                "Streaming LLM API error", provider=provider, model=selected_model, error=reason
            )
            llm_requests_total.labels(provider=provider, mode="stream", status="error").inc()
            raise LLMServiceException(provider, reason) from e

        llm_requests_total.labels(provider=provider, mode="stream", status="success").inc()

    @staticmethod
    def _parse_stream_line(provider: str, line: str) -> Optional[str]:
        """Extract the text delta of one SSE line; malformed lines yield None."""
        if not line.startswith("data: "):
            return None
        try:
            data = json.loads(line[6:])
        except json.JSONDecodeError:
            return None
        if not isinstance(data, dict):
            return None

        if provider == LLMProvider.ANTHROPIC.value:
            if data.get("type") != "content_block_delta":
                return None
            return (data.get("delta") or {}).get("text")

        choices = data.get("choices") or []
        if not choices:
            return None
        return (choices[0].get("delta") or {}).get("content")
