import logging
from pathlib import Path
from typing import Any, Optional

from summer.utils.errors import ErrorKind, UpstreamError
from summer.utils.llm_utils import completion_metadata, completion_text

# Constants
PROMPT_FILE_PATH = Path(__file__).with_name("prompt.md")
MAX_CONTENT_CHARS = 60_000
METADATA_DISCLOSURE = "• Based on video metadata:"


def _load_system_prompt() -> str:
    """Loads the system prompt from the prompt file."""
    try:
        return PROMPT_FILE_PATH.read_text(encoding="utf-8")
    except FileNotFoundError:
        logging.error("Summary prompt file not found.")
        raise


def _create_user_content(title: str, content: str, metadata_only: bool) -> str:
    """Creates the user message for one video."""
    source = "video metadata only (no transcript)" if metadata_only else "transcript"
    instructions = (
        f'This content is metadata only. Start the first bullet point with "{METADATA_DISCLOSURE}" '
        "and keep the summary concise."
        if metadata_only
        else "Summarize the transcript."
    )
    return f"""
        Title: {title}

        --- START OF CONTENT ({source}) ---
        {content[:MAX_CONTENT_CHARS]}
        --- END OF CONTENT ---

        {instructions}
        Please write the summary now, following all the instructions in the System Prompt.
    """


async def request_summary(
    client: Any,
    model: str,
    title: str,
    content: str,
    metadata_only: bool = False,
    distinct_id: Optional[str] = None,
    is_retry: bool = False,
) -> str:
    """
    Calls the text-generation endpoint once.

    Raises:
        UpstreamError: with a classified kind on any failure, including an
            empty completion (FATAL).
    """
    try:
        system_prompt = _load_system_prompt()
    except OSError as e:
        raise UpstreamError(f"Summary prompt unavailable: {e}", kind=ErrorKind.FATAL) from e

    messages = [
        {"role": "system", "content": system_prompt},
        {"role": "user", "content": _create_user_content(title, content, metadata_only)},
    ]
    posthog_properties = {
        "$ai_span_name": "video_summary",
        "video_title": title,
        "metadata_only": metadata_only,
    }
    if is_retry:
        posthog_properties["retry"] = True

    try:
        response = await client.chat.completions.create(
            model=model,
            messages=messages,
            posthog_distinct_id=distinct_id,
            posthog_properties=posthog_properties,
        )
    except Exception as e:
        raise UpstreamError.from_exception(e, "Text generation failed") from e

    summary = completion_text(response).strip()
    if not summary:
        logging.warning(
            f"The AI model returned an empty summary: {completion_metadata(response)}"
        )
        raise UpstreamError(
            "The AI model returned an empty summary.", kind=ErrorKind.FATAL
        )
    return summary
