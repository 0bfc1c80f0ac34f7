"""OpenAI client construction with PostHog LLM analytics attached."""

import logging
from typing import Optional

from posthog import Posthog
from posthog.ai.openai import AsyncOpenAI

from summer.utils.config import Settings

# Shared by every client built in this process
_analytics: Optional[Posthog] = None


def get_analytics(settings: Settings) -> Optional[Posthog]:
    """Returns the process-wide PostHog client, or None when analytics are off."""
    global _analytics

    if _analytics is not None:
        return _analytics
    if not settings.posthog_api_key:
        logging.warning("PostHog API key not set; LLM analytics disabled.")
        return None

    try:
        _analytics = Posthog(
            project_api_key=settings.posthog_api_key,
            host=settings.posthog_api_url,
        )
    except Exception as e:
        logging.error(f"Could not start PostHog: {e}")
        return None
    return _analytics


def build_llm_client(settings: Settings) -> AsyncOpenAI:
    """
    Builds the text-generation client.

    The SDK's own retries are disabled; the summarizer decides when to retry.
    """
    if not settings.openai_api_key and not settings.mock_llm_calls:
        logging.warning(
            "OpenAI API key not set. Summaries will use the extractive fallback."
        )

    return AsyncOpenAI(
        api_key=settings.openai_api_key or "not-configured",
        base_url=settings.openai_api_base_url,
        timeout=settings.llm_request_timeout_seconds,
        max_retries=0,
        posthog_client=get_analytics(settings),
    )


def close_analytics() -> None:
    """Flushes and drops the PostHog client, if one was started."""
    global _analytics
    client, _analytics = _analytics, None
    if client is None:
        return
    try:
        client.shutdown()
    except Exception as e:
        logging.error(f"Error shutting down PostHog: {e}")
