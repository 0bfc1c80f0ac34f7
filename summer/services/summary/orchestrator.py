import logging
from typing import Optional

from summer.schemas.channel import DEFAULT_AVATAR_URL
from summer.schemas.summary import Summary, SummarizeResponse
from summer.schemas.video import Video, VideoContent
from summer.services.content.resolver import ContentResolver
from summer.services.storage.base import SummaryStore
from summer.services.summary.summarizer import (
    SummarizationService,
    build_extractive_summary,
)
from summer.utils.errors import SummaryNotFoundError
from summer.utils.text_utils import make_hint, split_summary_points

UNKNOWN_CHANNEL = "Unknown Channel"


def _to_points(summary_text: str, content: VideoContent, title: str) -> list[str]:
    points = split_summary_points(summary_text)
    if points:
        return points
    return split_summary_points(
        build_extractive_summary(content.text, title, content.is_metadata_only)
    )


class SummaryOrchestrator:
    """Content resolution, summarization and persistence for a single video."""

    def __init__(
        self,
        store: SummaryStore,
        resolver: ContentResolver,
        summarizer: SummarizationService,
    ):
        self._store = store
        self._resolver = resolver
        self._summarizer = summarizer

    async def _generate(
        self,
        video_id: str,
        title: str,
        channel_name: str,
        distinct_id: Optional[str],
    ) -> tuple[str, VideoContent]:
        content = await self._resolver.resolve(video_id, title, channel_name)
        logging.info(
            f"Generating AI summary for: {title} "
            f"({len(content.text)} characters, source: {content.source})"
        )
        summary = await self._summarizer.summarize(
            content.text,
            title,
            metadata_only=content.is_metadata_only,
            distinct_id=distinct_id,
        )
        return summary, content

    async def summarize_video(
        self,
        user_id: str,
        video: Video,
        channel_avatar_url: Optional[str] = None,
        channel_avatar_hint: Optional[str] = None,
    ) -> tuple[Summary, bool]:
        """
        Summarises a video for a user unless it already has a summary.

        Returns the stored summary and whether this call created it.
        """
        # 1. Skip videos that are already summarised (no AI call)
        existing = await self._store.find_by_video_id(user_id, video.id)
        if existing is not None:
            return existing, False

        # 2. Resolve content and summarise
        summary_text, content = await self._generate(
            video.id, video.title, video.channel_name, user_id
        )

        # 3. Insert atomically; a concurrent insert for the same video wins
        summary = Summary(
            video_id=video.id,
            video_title=video.title,
            channel_name=video.channel_name,
            thumbnail_url=video.thumbnail_url,
            thumbnail_hint=video.thumbnail_hint or make_hint(video.title),
            summary_points=_to_points(summary_text, content, video.title),
            published_at=video.published_at,
            channel_avatar_url=channel_avatar_url or DEFAULT_AVATAR_URL,
            channel_avatar_hint=channel_avatar_hint or make_hint(video.channel_name),
            content_source=content.source,
        )
        stored, created = await self._store.insert_if_absent(user_id, summary)
        if not created:
            logging.info(
                f"Summary for video {video.id} was stored concurrently; keeping it."
            )
        return stored, created

    async def summarize_on_demand(
        self,
        video_id: str,
        title: str,
        channel_name: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> SummarizeResponse:
        """Summarises one video without touching the Summary Store."""
        summary_text, content = await self._generate(
            video_id, title, channel_name or UNKNOWN_CHANNEL, user_id
        )
        return SummarizeResponse(
            success=True,
            summary=summary_text,
            summary_points=_to_points(summary_text, content, title),
            content_source=content.source,
        )

    async def regenerate(self, user_id: str, summary_id: str) -> Summary:
        """Replaces a stored summary with a freshly generated one for the same video."""
        existing = await self._store.get(user_id, summary_id)
        if existing is None:
            raise SummaryNotFoundError(f"Summary {summary_id} not found")

        summary_text, content = await self._generate(
            existing.video_id, existing.video_title, existing.channel_name, user_id
        )
        replacement = existing.model_copy(
            update={
                "summary_points": _to_points(
                    summary_text, content, existing.video_title
                ),
                "content_source": content.source,
            }
        )
        # New identity and creation time
        replacement = Summary.model_validate(
            replacement.model_dump(exclude={"id", "created_at"})
        )

        stored = await self._store.replace(user_id, summary_id, replacement)
        if stored is None:
            raise SummaryNotFoundError(f"Summary {summary_id} was deleted during regeneration")
        logging.info(f"Regenerated summary for video {existing.video_id}")
        return stored
