"""Centralized OpenAI client initialization."""

from openai import AsyncOpenAI

from videomind.config import settings


def get_openai_client() -> AsyncOpenAI:
    """
    Get configured OpenAI async client instance.

    Returns:
        Configured AsyncOpenAI client with API key from settings

    Example:
        ```python
        client = get_openai_client()
        response = await client.chat.completions.create(...)
        ```
    """
    api_key = settings.openai_api_key.get_secret_value() if settings.openai_api_key else None
    return AsyncOpenAI(
        api_key=api_key,
        timeout=settings.analysis_timeout_seconds,
        max_retries=0,
    )
