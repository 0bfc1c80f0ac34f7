from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field


DEFAULT_THUMBNAIL_URL = "https://placehold.co/600x400.png"

ContentSource = Literal["transcript", "metadata"]


class Video(BaseModel):
    """A recent upload, as returned by the upstream video listing. Not persisted."""

    id: str
    title: str
    channel_id: str
    channel_name: str
    thumbnail_url: str = DEFAULT_THUMBNAIL_URL
    thumbnail_hint: str = ""
    published_time: datetime = Field(
        ..., description="Upload time (UTC). Sort key for selection."
    )
    published_at: str = Field(
        ..., description="Relative display text, e.g. '3 hours ago'."
    )
    description: str = ""


class VideoDetails(BaseModel):
    duration: str = "Unknown"
    category: Optional[str] = None
    tags: list[str] = []
    description: Optional[str] = None
    view_count: Optional[int] = None
    like_count: Optional[int] = None


class VideoContent(BaseModel):
    """The text handed to the summarizer and where it came from."""

    text: str
    language: Optional[str] = None
    source: ContentSource

    @property
    def is_metadata_only(self) -> bool:
        return self.source == "metadata"
