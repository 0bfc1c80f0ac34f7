from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock

from summer.schemas.channel import Channel
from summer.schemas.video import Video, VideoDetails
from summer.services.content.transcript_utils import TranscriptFragments
from summer.services.content.youtube_utils import format_published_date
from summer.utils.errors import ErrorKind, UpstreamError

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


def make_video(video_id, channel_id="4", channel_name="Fireship", hours_ago=1, title=None):
    published_time = NOW - timedelta(hours=hours_ago)
    return Video(
        id=video_id,
        title=title or f"Video {video_id}",
        channel_id=channel_id,
        channel_name=channel_name,
        published_time=published_time,
        published_at=format_published_date(published_time, NOW),
        description="",
    )


def make_channel(channel_id, name, enabled=True):
    return Channel(id=channel_id, name=name, enabled=enabled)


def completion(text):
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=text))],
        model="test-model",
        usage=None,
        id="resp-1",
    )


class FakeLLMClient:
    """Stands in for AsyncOpenAI; ``create`` is an AsyncMock to count calls."""

    def __init__(self, text="• First point\n• Second point\n• Third point"):
        self.create = AsyncMock(return_value=completion(text))
        self.chat = SimpleNamespace(completions=SimpleNamespace(create=self.create))


class FakeYouTubeClient:
    def __init__(self):
        self.subscriptions: list[Channel] = []
        self.videos: dict[str, list[Video]] = {}
        self.details: dict[str, VideoDetails] = {}
        self.failing_channels: set[str] = set()
        self.channel_calls: list[str] = []

    async def list_subscriptions(self, access_token):
        if not access_token:
            raise UpstreamError("no token", kind=ErrorKind.AUTH_FAILURE)
        return [channel.model_copy() for channel in self.subscriptions]

    async def list_channel_videos(self, channel_id, max_results):
        self.channel_calls.append(channel_id)
        if channel_id in self.failing_channels:
            raise UpstreamError("quota exceeded", kind=ErrorKind.TRANSIENT, status_code=429)
        return self.videos.get(channel_id, [])[:max_results]

    async def get_video_details(self, video_id):
        return self.details.get(video_id)


class FakeTranscriptSource:
    def __init__(self):
        self.transcripts: dict[str, list[str]] = {}

    async def fetch(self, video_id):
        fragments = self.transcripts.get(video_id)
        if not fragments:
            return None
        return TranscriptFragments(fragments=fragments, language="en")
