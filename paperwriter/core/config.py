"""Configuration management for the position paper writer."""

from functools import lru_cache
from typing import Literal

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables from .env file (only if accessible)
try:
    load_dotenv()
except (PermissionError, OSError):
    # In sandboxed environments, .env might not be accessible
    # Environment variables should be set directly
    pass


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    # Environment
    PAPERWRITER_ENV: str = Field(default="dev", description="Environment: dev, test, prod")

    # Polish model configuration
    POLISH_PROVIDER: Literal["anthropic", "openai"] = Field(
        default="anthropic",
        description="Hosted model provider: anthropic, or openai for any OpenAI-compatible API",
    )
    POLISH_MODEL: str = Field(
        default="claude-haiku-4-5-20251001", description="Instruction-tuned model used for polishing"
    )
    ANTHROPIC_API_KEY: str | None = Field(default=None, description="Anthropic API key")
    LLM_API_KEY: str | None = Field(default=None, description="API key for an OpenAI-compatible provider")
    LLM_API_URL: str | None = Field(
        default=None, description="Base URL of an OpenAI-compatible provider (Groq, OpenRouter, ...)"
    )
    POLISH_MAX_TOKENS: int = Field(default=500, description="Output token ceiling for one polish call")
    POLISH_TEMPERATURE: float = Field(default=0.7, description="Sampling temperature for polishing")

    # Endpoint rate limiting
    POLISH_RATE_LIMIT: int = Field(default=20, description="Max polish requests per window per client IP")
    POLISH_RATE_WINDOW_SECONDS: float = Field(default=60.0, description="Rate limit window length")

    # Client configuration
    POLISH_ENDPOINT_URL: str = Field(
        default="http://localhost:8000/api/polish-text",
        description="Where the polish client sends requests",
    )
    POLISH_TIMEOUT_SECONDS: float = Field(default=30.0, description="Client timeout for one polish call")

    # Draft storage
    DRAFTS_DIR: str = Field(default=".paperwriter", description="Directory holding saved drafts")


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings instance

    Raises:
        ValidationError: If an environment variable has an invalid value
    """
    return Settings()
