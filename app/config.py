"""
Funmi Gateway Configuration Module

This module manages application settings and environment variables using
pydantic-settings for type-safe configuration management.

Environment variables are loaded from .env file or system environment.
All provider credentials use SecretStr to prevent accidental logging.

The dispatcher core never reads settings directly: credentials reach it
through a SecretResolver built here, and provider chains are built once
from Settings by the provider registry.
"""

from collections.abc import Callable
from functools import lru_cache
from typing import Literal
import logging
import sys

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


SecretResolver = Callable[[str], str | None]

DEFAULT_SYSTEM_PROMPT = (
    "You are Funmi, a friendly and helpful AI assistant. "
    "Answer clearly and concisely."
)


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Pydantic Settings automatically reads from:
    1. Environment variables
    2. .env file in working directory
    3. Default values defined here

    Every provider key is optional. A provider whose key is missing is
    still attempted by its chain and fails fast, letting the next provider
    take over.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore unknown env vars
    )

    # Provider credentials
    groq_api_key: SecretStr | None = Field(
        default=None, description="Groq API key (primary chat)"
    )

    huggingface_api_key: SecretStr | None = Field(
        default=None, description="Hugging Face Inference API key (fallback chat)"
    )

    flux_api_key: SecretStr | None = Field(
        default=None, description="Flux image API key (primary image)"
    )

    stability_api_key: SecretStr | None = Field(
        default=None, description="Stability AI key (fallback image)"
    )

    exa_api_key: SecretStr | None = Field(
        default=None, description="Exa API key (research search)"
    )

    serper_api_key: SecretStr | None = Field(
        default=None, description="Serper API key (primary web search)"
    )

    google_cse_key: SecretStr | None = Field(
        default=None, description="Google Custom Search API key (fallback web search)"
    )

    google_cse_id: str | None = Field(
        default=None, description="Google Custom Search engine id (cx)"
    )

    # Provider endpoints and models
    groq_endpoint: str = Field(
        default="https://api.groq.com/openai/v1/chat/completions",
        description="Groq chat completions endpoint",
    )

    groq_chat_model: str = Field(
        default="llama-3.1-8b-instant", description="Groq chat model"
    )

    huggingface_endpoint: str = Field(
        default="https://api-inference.huggingface.co/models",
        description="Hugging Face Inference API base URL",
    )

    huggingface_chat_model: str = Field(
        default="mistralai/Mistral-7B-Instruct-v0.2",
        description="Hugging Face text generation model",
    )

    flux_endpoint: str = Field(
        default="https://api.together.xyz/v1/images/generations",
        description="Flux image generation endpoint",
    )

    flux_model: str = Field(
        default="black-forest-labs/FLUX.1-schnell", description="Flux model name"
    )

    stability_endpoint: str = Field(
        default=(
            "https://api.stability.ai/v1/generation/"
            "stable-diffusion-xl-1024-v1-0/text-to-image"
        ),
        description="Stability SDXL text-to-image endpoint",
    )

    exa_endpoint: str = Field(
        default="https://api.exa.ai/search", description="Exa search endpoint"
    )

    serper_endpoint: str = Field(
        default="https://google.serper.dev/search", description="Serper search endpoint"
    )

    google_cse_endpoint: str = Field(
        default="https://www.googleapis.com/customsearch/v1",
        description="Google Custom Search endpoint",
    )

    # Dispatcher behaviour
    system_prompt: str = Field(
        default=DEFAULT_SYSTEM_PROMPT,
        description="System prompt passed verbatim to chat providers",
    )

    provider_timeout_seconds: float | None = Field(
        default=30.0,
        ge=0,
        description="Per-provider call timeout in seconds (0 disables the timeout)",
    )

    image_size: str = Field(
        default="1024x1024", description="Default image size as WIDTHxHEIGHT"
    )

    file_analysis_max_chars: int = Field(
        default=5000, gt=0, description="Maximum characters of file text sent to chat"
    )

    max_message_length: int = Field(
        default=10000, gt=0, description="Maximum inbound message length"
    )

    # Capability inference
    classifier_strategy: Literal["keyword", "semantic"] = Field(
        default="keyword",
        description="Capability inference strategy for messages without a mode",
    )

    similarity_threshold: float = Field(
        default=0.5,
        ge=0.0,
        le=1.0,
        description="Minimum similarity score for semantic mode matching (0.0-1.0)",
    )

    embedding_model: str = Field(
        default="BAAI/bge-small-en-v1.5",
        description="FastEmbed model for local semantic classification (ONNX Runtime)",
    )

    embedding_cache_dir: str | None = Field(
        default=None,
        description="Directory to cache embedding model (default: fastembed cache)",
    )

    embedding_threads: int | None = Field(
        default=None, description="CPU threads for embedding (default: auto-detect)"
    )

    # Development user (authentication is not implemented yet)
    dev_user_id: str = Field(default="dev-user-001", description="Development user id")

    dev_user_email: str = Field(
        default="dev@funmi.ai", description="Development user email"
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Application log level"
    )

    host: str = Field(default="0.0.0.0", description="Server bind host")

    port: int = Field(default=5000, description="Server bind port")

    debug: bool = Field(default=False, description="Enable debug mode")

    @field_validator("image_size")
    @classmethod
    def validate_image_size(cls, v: str) -> str:
        """Ensure image_size looks like 1024x1024."""
        width, sep, height = v.lower().partition("x")
        if not sep or not width.isdigit() or not height.isdigit():
            raise ValueError("image_size must be formatted as WIDTHxHEIGHT")
        return v.lower()

    @field_validator("provider_timeout_seconds")
    @classmethod
    def disable_zero_timeout(cls, v: float | None) -> float | None:
        """A zero timeout means wait indefinitely."""
        return v or None


# Secret name -> Settings attribute. Provider specs refer to secrets by name only.
SECRET_FIELDS: dict[str, str] = {
    "groq-chat-key": "groq_api_key",
    "huggingface-chat-key": "huggingface_api_key",
    "flux-image-key": "flux_api_key",
    "stability-image-key": "stability_api_key",
    "exa-search-key": "exa_api_key",
    "serper-search-key": "serper_api_key",
    "google-cse-key": "google_cse_key",
}


def settings_secret_resolver(settings: Settings) -> SecretResolver:
    """
    Build a SecretResolver backed by the given settings.

    Args:
        settings: The application settings instance.

    Returns:
        Callable mapping a secret name to its value, or None when the
        secret is unknown or not configured.
    """

    def resolve(name: str) -> str | None:
        field_name = SECRET_FIELDS.get(name)
        if field_name is None:
            return None
        secret: SecretStr | None = getattr(settings, field_name)
        if secret is None:
            return None
        return secret.get_secret_value() or None

    return resolve


@lru_cache
def get_settings() -> Settings:
    """
    Returns cached settings instance.

    Using lru_cache ensures settings are loaded once and reused,
    avoiding repeated file reads and environment parsing.

    Returns:
        Settings: The application settings singleton.
    """
    return Settings()


def configure_logging(settings: Settings) -> None:
    """
    Configure application logging based on settings.

    Sets up structured logging with timestamps and reduces noise
    from third-party HTTP libraries.

    Args:
        settings: The application settings instance.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level),
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("fastembed").setLevel(logging.WARNING)
