"""Helpers for reading OpenAI Chat Completions responses."""

from typing import Any


def completion_text(response: Any) -> str:
    """First choice's message content, or "" when the response carries none."""
    choices = getattr(response, "choices", None) or []
    if not choices:
        return ""
    message = getattr(choices[0], "message", None)
    return getattr(message, "content", None) or ""


def completion_metadata(response: Any) -> dict[str, Any]:
    """Model, token usage and response id, for log lines."""
    usage = getattr(response, "usage", None)
    if usage is not None and hasattr(usage, "model_dump"):
        usage = usage.model_dump()
    return {
        "model": getattr(response, "model", None),
        "usage": usage,
        "response_id": getattr(response, "id", None),
    }
