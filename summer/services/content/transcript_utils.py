import asyncio
import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from youtube_transcript_api import (
    NoTranscriptFound,
    TranscriptsDisabled,
    VideoUnavailable,
    YouTubeTranscriptApi,
)

from summer.utils.errors import UpstreamError


@dataclass
class TranscriptFragments:
    """Ordered caption fragments of one video."""

    fragments: list[str]
    language: Optional[str]


class TranscriptSource:
    """
    Fetches captions with youtube-transcript-api.

    Returns None when the video definitely has no usable transcript; any
    other failure is raised as UpstreamError.
    """

    def __init__(self, languages: Sequence[str] = ("en",), api=None):
        self._languages = list(languages)
        self._api = api or YouTubeTranscriptApi()

    def _fetch_sync(self, video_id: str) -> Optional[TranscriptFragments]:
        transcript_list = self._api.list(video_id)
        try:
            transcript = transcript_list.find_transcript(self._languages)
        except NoTranscriptFound:
            # No preferred language; take whatever the video offers.
            transcript = next(iter(transcript_list), None)
            if transcript is None:
                return None

        fetched = transcript.fetch()
        fragments = [snippet.text for snippet in fetched]
        if not fragments:
            return None
        return TranscriptFragments(
            fragments=fragments,
            language=getattr(fetched, "language_code", None)
            or getattr(transcript, "language_code", None),
        )

    async def fetch(self, video_id: str) -> Optional[TranscriptFragments]:
        try:
            return await asyncio.to_thread(self._fetch_sync, video_id)
        except (TranscriptsDisabled, NoTranscriptFound, VideoUnavailable) as e:
            logging.info(
                f"No transcript available for video {video_id}: {type(e).__name__}"
            )
            return None
        except Exception as e:
            raise UpstreamError.from_exception(
                e, f"Failed to fetch transcript for video {video_id}"
            ) from e
