from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, Field

from summer.schemas.channel import DEFAULT_AVATAR_URL
from summer.schemas.video import ContentSource, DEFAULT_THUMBNAIL_URL


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Summary(BaseModel):
    """
    A generated summary of one video for one user.

    At most one Summary exists per (user, video_id).
    """

    id: str = Field(default_factory=lambda: str(uuid4()))
    video_id: str
    video_title: str
    channel_name: str
    thumbnail_url: str = DEFAULT_THUMBNAIL_URL
    thumbnail_hint: str = ""
    summary_points: list[str] = Field(..., min_length=1)
    published_at: str
    channel_avatar_url: str = DEFAULT_AVATAR_URL
    channel_avatar_hint: str = ""
    content_source: ContentSource = "transcript"
    created_at: datetime = Field(default_factory=_utc_now)


class SummaryListResponse(BaseModel):
    summaries: list[Summary]


class SummarizeRequest(BaseModel):
    video_id: str = Field(..., min_length=1)
    video_title: str = Field(..., min_length=1)
    channel_name: Optional[str] = None


class SummarizeResponse(BaseModel):
    success: bool = True
    summary: str
    summary_points: list[str]
    content_source: ContentSource


class FailedVideo(BaseModel):
    video_id: str
    error: str


class SyncReport(BaseModel):
    channels_total: int = 0
    channels_enabled: int = 0
    used_fallback_channels: bool = False
    videos_found: int = 0
    videos_selected: int = 0
    created: list[str] = []
    skipped_existing: list[str] = []
    failed: list[FailedVideo] = []
    started_at: datetime = Field(default_factory=_utc_now)
    finished_at: Optional[datetime] = None
