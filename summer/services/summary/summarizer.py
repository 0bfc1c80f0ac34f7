import asyncio
import logging
from typing import Any, Optional

from summer.services.summary.llm_utils import request_summary
from summer.utils.errors import ErrorKind, UpstreamError
from summer.utils.text_utils import truncate

RETRY_DELAY_SECONDS = 2.0
FALLBACK_MAX_POINTS = 5
FALLBACK_POINT_MAX_CHARS = 280
FALLBACK_NOTE = "• Summary generated from transcript (AI service temporarily unavailable)"
METADATA_FALLBACK_NOTE = (
    "• Summary generated from video metadata (AI service temporarily unavailable)"
)


def build_extractive_summary(
    content: str, title: str, metadata_only: bool = False
) -> str:
    """
    Summary used when the model cannot be reached: the first five non-blank
    lines of the content as bullets, plus a note naming where they came from.
    """
    lines = [line.strip() for line in content.splitlines() if line.strip()]
    points = [
        f"• {truncate(line, FALLBACK_POINT_MAX_CHARS)}"
        for line in lines[:FALLBACK_MAX_POINTS]
    ]
    if not points:
        points = [f'• Summary temporarily unavailable for "{title}"']
    note = METADATA_FALLBACK_NOTE if metadata_only else FALLBACK_NOTE
    return "\n".join(points) + "\n\n" + note


class SummarizationService:
    """
    Turns a title and content into a short bullet summary.

    ``summarize`` is total: a single retry is made only when the endpoint
    reports overload, and any remaining failure yields the extractive
    fallback instead of an error.
    """

    def __init__(
        self,
        client: Any,
        model: str,
        retry_delay: float = RETRY_DELAY_SECONDS,
        mock_calls: bool = False,
    ):
        self._client = client
        self._model = model
        self._retry_delay = retry_delay
        self._mock_calls = mock_calls

    async def _generate(
        self,
        content: str,
        title: str,
        metadata_only: bool,
        distinct_id: Optional[str],
        is_retry: bool = False,
    ) -> str:
        return await request_summary(
            self._client,
            self._model,
            title,
            content,
            metadata_only=metadata_only,
            distinct_id=distinct_id,
            is_retry=is_retry,
        )

    async def summarize(
        self,
        content: str,
        title: str,
        metadata_only: bool = False,
        distinct_id: Optional[str] = None,
    ) -> str:
        if self._mock_calls:
            return build_extractive_summary(content, title, metadata_only)

        try:
            return await self._generate(content, title, metadata_only, distinct_id)
        except UpstreamError as e:
            if e.kind is not ErrorKind.OVERLOADED:
                logging.error(
                    f"AI summarization failed for '{title}' ({e.kind.value}): {e}"
                )
                return build_extractive_summary(content, title, metadata_only)
            logging.warning(
                f"AI service overloaded, retrying in {self._retry_delay} seconds..."
            )

        await asyncio.sleep(self._retry_delay)
        try:
            return await self._generate(
                content, title, metadata_only, distinct_id, is_retry=True
            )
        except UpstreamError as e:
            logging.error(f"Retry failed for '{title}' ({e.kind.value}): {e}")
            return build_extractive_summary(content, title, metadata_only)
