"""
Configuration module for the content chat service.

This module provides centralized configuration management using Pydantic settings.
All configuration values can be overridden via environment variables or .env file.
Content store and LLM credentials are read here once and handed to the
clients that need them as explicit configuration objects.
"""

from dataclasses import dataclass
from functools import lru_cache
from typing import Dict, List, Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


@dataclass(frozen=True)
class ContentstackConfig:
    """
    Connection settings for the Contentstack content store.

    Attributes:
        api_key: Stack API key
        delivery_token: Token for the read-only delivery API
        management_token: Token for the management API (writes)
        environment: Publishing environment, also used as branch
        region: Region prefix of the API hosts (eu, us, azure-na, ...)
    """

    api_key: Optional[str] = None
    delivery_token: Optional[str] = None
    management_token: Optional[str] = None
    environment: str = "development"
    region: str = "eu"

    @property
    def delivery_base_url(self) -> str:
        return f"https://{self.region}-cdn.contentstack.com/v3"

    @property
    def management_base_url(self) -> str:
        return f"https://{self.region}-api.contentstack.com/v3"


class Settings(BaseSettings):
    """
    Application settings for the content chat service.

    All settings can be configured via environment variables.
    Settings are validated on instantiation to ensure correct configuration.

    Attributes:
        APP_NAME: Display name for the application
        DEBUG: Enable debug mode (includes error details in responses)
        HOST: Server bind address
        PORT: Server port number
        LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        LOG_JSON: Render logs as JSON instead of console output
        DATA_DIR: Directory for bots.json and upload_history.json
        TEMP_DIR: Directory for generated templates and uploads in flight
        REQUEST_TIMEOUT: Timeout for outbound HTTP requests in seconds
        MAX_RETRIES: Retry attempts for idempotent content store reads
        SEARCH_FETCH_LIMIT: Entries fetched per search call
        MAX_UPLOAD_BYTES: Upper bound for uploaded spreadsheets
    """

    # Application configuration
    APP_NAME: str = Field(
        default="Content Chat Service",
        description="Display name for the application",
    )
    VERSION: str = Field(default="1.0.0", description="Service version")
    DEBUG: bool = Field(
        default=False,
        description="Enable debug mode",
    )

    # Server configuration
    HOST: str = Field(
        default="0.0.0.0",
        description="Server bind address",
    )
    PORT: int = Field(
        default=7000,
        ge=1,
        le=65535,
        description="Server port number",
    )
    CORS_ORIGINS: str = Field(
        default="*",
        description="Comma-separated list of allowed origins",
    )

    # Logging configuration
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    LOG_JSON: bool = Field(
        default=True,
        description="Use JSON log renderer",
    )

    # Storage
    DATA_DIR: str = Field(default="./data", description="Local JSON storage directory")
    TEMP_DIR: str = Field(default="./temp", description="Temporary file directory")
    MAX_UPLOAD_BYTES: int = Field(
        default=10 * 1024 * 1024,
        gt=0,
        description="Maximum accepted upload size in bytes",
    )

    # HTTP client configuration
    REQUEST_TIMEOUT: float = Field(
        default=30.0,
        gt=0,
        le=120.0,
        description="Default timeout for HTTP requests in seconds",
    )
    MAX_RETRIES: int = Field(
        default=2,
        ge=0,
        le=5,
        description="Maximum number of retry attempts for failed reads",
    )

    # Search
    SEARCH_FETCH_LIMIT: int = Field(
        default=100,
        ge=1,
        le=100,
        description="Entries fetched from the content store per search",
    )

    # Contentstack
    CONTENTSTACK_API_KEY: Optional[str] = None
    CONTENTSTACK_DELIVERY_TOKEN: Optional[str] = None
    CONTENTSTACK_MANAGEMENT_TOKEN: Optional[str] = None
    CONTENTSTACK_ENVIRONMENT: str = "development"
    CONTENTSTACK_REGION: str = "eu"

    # LLM providers
    OPENROUTER_API_KEY: Optional[str] = None
    OPENAI_API_KEY: Optional[str] = None
    ANTHROPIC_API_KEY: Optional[str] = None
    GROQ_API_KEY: Optional[str] = None
    OPENROUTER_REFERER: str = Field(
        default="http://localhost:7000",
        description="HTTP-Referer header sent to OpenRouter",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    @field_validator("CONTENTSTACK_REGION")
    @classmethod
    def validate_region(cls, value: str) -> str:
        """
        Normalize the Contentstack region prefix.

        Raises:
            ValueError: If region is empty or contains invalid characters
        """
        value = value.strip().lower()
        if not value:
            raise ValueError("Contentstack region cannot be empty")
        if not all(char.isalnum() or char == "-" for char in value):
            raise ValueError(f"Invalid Contentstack region: {value}")
        return value

    @field_validator("OPENROUTER_REFERER")
    @classmethod
    def validate_url(cls, value: str) -> str:
        """Validate that URLs are properly formatted."""
        value = value.rstrip("/")
        if not (value.startswith("http://") or value.startswith("https://")):
            raise ValueError(f"URL must start with http:// or https://, got: {value}")
        return value

    @property
    def cors_origins(self) -> List[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    @property
    def contentstack(self) -> ContentstackConfig:
        """Contentstack connection settings as an explicit config object."""
        return ContentstackConfig(
            api_key=self.CONTENTSTACK_API_KEY,
            delivery_token=self.CONTENTSTACK_DELIVERY_TOKEN,
            management_token=self.CONTENTSTACK_MANAGEMENT_TOKEN,
            environment=self.CONTENTSTACK_ENVIRONMENT,
            region=self.CONTENTSTACK_REGION,
        )

    @property
    def llm_api_keys(self) -> Dict[str, Optional[str]]:
        """API keys per provider name."""
        return {
            "openrouter": self.OPENROUTER_API_KEY,
            "openai": self.OPENAI_API_KEY,
            "anthropic": self.ANTHROPIC_API_KEY,
            "groq": self.GROQ_API_KEY,
        }


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
