import logging
from datetime import datetime, timezone
from typing import Optional

from summer.schemas.channel import Channel
from summer.schemas.summary import FailedVideo, SyncReport
from summer.schemas.video import Video
from summer.services.content.youtube_utils import YouTubeClient
from summer.services.default_channels import fallback_channels
from summer.services.storage.base import ChannelDirectory
from summer.services.summary.orchestrator import SummaryOrchestrator
from summer.utils.errors import StorageError, SyncInProgressError, UpstreamError
from summer.utils.locks import UserLocks

VIDEOS_PER_CHANNEL = 5
MAX_VIDEOS_PER_SYNC = 10


def select_recent_videos(videos: list[Video], limit: int) -> list[Video]:
    """Newest first by upload time, truncated to ``limit``. Ties keep input order."""
    ordered = sorted(videos, key=lambda video: video.published_time, reverse=True)
    return ordered[:limit]


class SyncOrchestrator:
    """
    Refreshes a user's channels from their subscriptions and summarises the
    newest uploads of the enabled ones.

    Every remote call is awaited in turn; videos are processed one at a time.
    """

    def __init__(
        self,
        channels: ChannelDirectory,
        youtube: YouTubeClient,
        summaries: SummaryOrchestrator,
        videos_per_channel: int = VIDEOS_PER_CHANNEL,
        max_videos: int = MAX_VIDEOS_PER_SYNC,
    ):
        self._channels = channels
        self._youtube = youtube
        self._summaries = summaries
        self._videos_per_channel = videos_per_channel
        self._max_videos = max_videos
        self._running = UserLocks()

    async def sync(self, user_id: str, access_token: Optional[str]) -> SyncReport:
        """
        Runs one sync for ``user_id``.

        Raises:
            SyncInProgressError: if a sync for this user is already running.
            StorageError: if the Channel Directory or Summary Store fails.
        """
        if self._running.is_locked(user_id):
            raise SyncInProgressError(f"A sync is already running for user {user_id}")
        async with self._running.hold(user_id):
            return await self._sync(user_id, access_token)

    async def _fetch_upstream_channels(
        self, access_token: Optional[str]
    ) -> tuple[list[Channel], bool]:
        """Returns the subscription list, or the fixed fallback set on any failure."""
        try:
            return await self._youtube.list_subscriptions(access_token), False
        except (UpstreamError, ValueError) as e:
            logging.warning(f"Using fallback channels, subscription listing failed: {e}")
            return fallback_channels(), True

    async def _collect_recent_videos(self, channel_ids: list[str]) -> list[Video]:
        videos: list[Video] = []
        for channel_id in channel_ids:
            try:
                channel_videos = await self._youtube.list_channel_videos(
                    channel_id, self._videos_per_channel
                )
            except (UpstreamError, ValueError) as e:
                logging.error(f"Skipping channel {channel_id}: {e}")
                continue
            logging.info(f"Got {len(channel_videos)} videos from channel {channel_id}")
            videos.extend(channel_videos)
        return videos

    async def _sync(self, user_id: str, access_token: Optional[str]) -> SyncReport:
        report = SyncReport()
        logging.info(f"Starting sync for user {user_id}")

        # 1-3. Merge upstream subscriptions into the stored directory
        upstream, report.used_fallback_channels = await self._fetch_upstream_channels(
            access_token
        )
        channels = await self._channels.merge_upstream(user_id, upstream)
        report.channels_total = len(channels)

        # 4. Enabled channels only
        enabled = [channel for channel in channels if channel.enabled]
        report.channels_enabled = len(enabled)
        by_id = {channel.id: channel for channel in enabled}

        # 5-6. Newest uploads across channels, capped
        videos = await self._collect_recent_videos([channel.id for channel in enabled])
        selected = select_recent_videos(videos, self._max_videos)
        report.videos_found = len(videos)
        report.videos_selected = len(selected)
        if len(videos) > len(selected):
            logging.info(
                f"Dropping {len(videos) - len(selected)} older videos beyond the cap"
            )

        # 7. Summarise each video in order; one failure does not stop the rest
        for video in selected:
            channel = by_id.get(video.channel_id)
            try:
                _, created = await self._summaries.summarize_video(
                    user_id,
                    video,
                    channel_avatar_url=channel.avatar_url if channel else None,
                    channel_avatar_hint=channel.avatar_hint if channel else None,
                )
            except StorageError:
                raise
            except Exception as e:
                logging.error(
                    f"Failed to summarise video {video.id} for user {user_id}: {e}",
                    exc_info=True,
                )
                report.failed.append(FailedVideo(video_id=video.id, error=str(e)))
                continue

            if created:
                report.created.append(video.id)
            else:
                report.skipped_existing.append(video.id)

        report.finished_at = datetime.now(timezone.utc)
        logging.info(
            f"Sync finished for user {user_id}: {len(report.created)} created, "
            f"{len(report.skipped_existing)} existing, {len(report.failed)} failed"
        )
        return report
