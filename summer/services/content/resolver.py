import logging
from typing import Optional

from summer.schemas.video import VideoContent, VideoDetails
from summer.services.content.transcript_utils import TranscriptSource
from summer.services.content.youtube_utils import YouTubeClient
from summer.utils.text_utils import collapse_whitespace

# Checked in order; the first keyword found in the title wins.
TOPIC_KEYWORDS = (
    "tutorial",
    "guide",
    "review",
    "comparison",
    "unboxing",
    "setup",
    "coding",
    "programming",
    "development",
    "design",
    "art",
    "music",
    "gaming",
    "tech",
    "technology",
    "science",
    "education",
    "news",
    "vlog",
    "podcast",
    "interview",
    "lecture",
    "presentation",
)
DEFAULT_TOPIC = "general content"


def extract_topic(title: str) -> str:
    lower_title = title.lower()
    for topic in TOPIC_KEYWORDS:
        if topic in lower_title:
            return topic
    return DEFAULT_TOPIC


def build_metadata_narrative(
    title: str, channel_name: str, details: Optional[VideoDetails]
) -> str:
    lines = [f"Video Title: {title}", f"Channel: {channel_name}"]
    if details is not None:
        lines.append(f"Duration: {details.duration}")
        lines.append(f"Category: {details.category or 'Unknown'}")
        lines.append(f"Tags: {', '.join(details.tags) if details.tags else 'None'}")
        lines.append(
            f"Description: {details.description or 'No description available'}"
        )
    lines.append("")
    lines.append(
        f"Context: This appears to be a video about {extract_topic(title)}. "
        f"Based on the title and channel information, this video likely covers "
        f"topics related to {channel_name}'s typical content."
    )
    return "\n".join(lines)


def build_fallback_content(title: str, channel_name: str) -> str:
    return (
        f"Video Title: {title}\n"
        f"Channel: {channel_name}\n"
        f"Content Type: Video content from {channel_name}\n"
        f"Description: This video appears to be content from the {channel_name} "
        f"channel. Without a transcript or detailed description, this summary is "
        f"based on the available metadata and channel context."
    )


class ContentResolver:
    """
    Produces the best available text to summarise for a video.

    A transcript is preferred; otherwise a narrative is synthesised from the
    video's metadata. Resolution never fails.
    """

    def __init__(self, youtube: YouTubeClient, transcripts: TranscriptSource):
        self._youtube = youtube
        self._transcripts = transcripts

    async def _fetch_transcript_text(self, video_id: str) -> Optional[VideoContent]:
        try:
            transcript = await self._transcripts.fetch(video_id)
        except Exception as e:
            logging.warning(f"Transcript retrieval failed for video {video_id}: {e}")
            return None
        if transcript is None:
            return None

        text = collapse_whitespace(" ".join(transcript.fragments))
        if not text:
            return None
        logging.info(
            f"Transcript fetched for video {video_id}. Length: {len(text)} characters"
        )
        return VideoContent(text=text, language=transcript.language, source="transcript")

    async def describe(self, video_id: str, title: str, channel_name: str) -> str:
        """Synthesises a metadata narrative for a video without captions."""
        try:
            details = None
            try:
                details = await self._youtube.get_video_details(video_id)
            except Exception as e:
                logging.warning(f"Video details lookup failed for {video_id}: {e}")
            return build_metadata_narrative(title, channel_name, details)
        except Exception as e:
            logging.error(f"Failed to build metadata content for {video_id}: {e}")
            return build_fallback_content(title, channel_name)

    async def resolve(self, video_id: str, title: str, channel_name: str) -> VideoContent:
        content = await self._fetch_transcript_text(video_id)
        if content is not None:
            return content

        logging.info(f"No transcript available, using metadata for: {title}")
        text = await self.describe(video_id, title, channel_name)
        return VideoContent(text=text, language=None, source="metadata")
