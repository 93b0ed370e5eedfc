"""LLM client utilities for the polish endpoint."""

from anthropic import AsyncAnthropic
from openai import AsyncOpenAI

from paperwriter.core.config import get_settings
from paperwriter.core.logging import get_logger

logger = get_logger(__name__)


class LLMNotConfiguredError(RuntimeError):
    """Raised when the selected provider has no credentials."""


def get_anthropic_client() -> AsyncAnthropic:
    settings = get_settings()
    if not settings.ANTHROPIC_API_KEY:
        raise LLMNotConfiguredError("ANTHROPIC_API_KEY is not set")
    return AsyncAnthropic(api_key=settings.ANTHROPIC_API_KEY)


def get_openai_client() -> AsyncOpenAI:
    settings = get_settings()
    if not settings.LLM_API_KEY:
        raise LLMNotConfiguredError("LLM_API_KEY is not set")
    return AsyncOpenAI(api_key=settings.LLM_API_KEY, base_url=settings.LLM_API_URL)


async def generate_text(prompt: str, max_tokens: int | None = None) -> str:
    """
    Send a single-turn prompt to the configured provider.

    Args:
        prompt: Full prompt text, sent as one user message
        max_tokens: Output ceiling (defaults to POLISH_MAX_TOKENS)

    Returns:
        The model's text, stripped ("" if the model returned nothing)

    Raises:
        LLMNotConfiguredError: If the provider has no API key
    """
    settings = get_settings()
    max_tokens = max_tokens or settings.POLISH_MAX_TOKENS
    messages = [{"role": "user", "content": prompt}]

    if settings.POLISH_PROVIDER == "openai":
        client = get_openai_client()
        response = await client.chat.completions.create(
            model=settings.POLISH_MODEL,
            messages=messages,
            max_tokens=max_tokens,
            temperature=settings.POLISH_TEMPERATURE,
        )
        content = response.choices[0].message.content if response.choices else None
        return (content or "").strip()

    client = get_anthropic_client()
    response = await client.messages.create(
        model=settings.POLISH_MODEL,
        max_tokens=max_tokens,
        temperature=settings.POLISH_TEMPERATURE,
        messages=messages,
    )
    logger.debug(
        f"Polish call used {response.usage.input_tokens}/{response.usage.output_tokens} tokens"
    )
    if not response.content:
        return ""
    return (getattr(response.content[0], "text", "") or "").strip()
