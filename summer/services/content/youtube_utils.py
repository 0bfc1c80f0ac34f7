import asyncio
import html
import logging
import re
from datetime import datetime, timezone
from typing import Any, Callable, Optional, TypeVar

import httplib2
from google.oauth2.credentials import Credentials
from google_auth_httplib2 import AuthorizedHttp
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from summer.schemas.channel import Channel, DEFAULT_AVATAR_URL
from summer.schemas.video import DEFAULT_THUMBNAIL_URL, Video, VideoDetails
from summer.utils.errors import ErrorKind, UpstreamError
from summer.utils.text_utils import make_hint

T = TypeVar("T")

SUBSCRIPTIONS_PAGE_SIZE = 50
DURATION_RE = re.compile(r"^PT(?:(\d+)H)?(?:(\d+)M)?(?:(\d+)S)?$")


def format_published_date(published: datetime, now: Optional[datetime] = None) -> str:
    """
    Renders an upload time relative to ``now``.

    Under 24 hours: "N hours ago"; under 48 hours: "1 day ago"; otherwise
    "N days ago". Hours and days are floored.
    """
    now = now or datetime.now(timezone.utc)
    hours = max(0, int((now - published).total_seconds() // 3600))
    if hours < 24:
        return f"{hours} hours ago"
    if hours < 48:
        return "1 day ago"
    return f"{hours // 24} days ago"


def format_duration(duration: str) -> str:
    """Formats an ISO-8601 duration such as PT1H2M3S as 1:02:03."""
    match = DURATION_RE.match(duration or "")
    if not match:
        return "Unknown"
    hours, minutes, seconds = match.groups()
    result = f"{hours}:" if hours else ""
    result += f"{(minutes or '').rjust(2, '0')}:"
    result += (seconds or "").rjust(2, "0")
    return result


def parse_published_datetime(value: str) -> datetime:
    """Parses a YouTube RFC 3339 timestamp as an aware UTC datetime."""
    parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _thumbnail_url(snippet: dict, size: str, default: str) -> str:
    thumbnails = snippet.get("thumbnails") or {}
    return (thumbnails.get(size) or {}).get("url") or default


def _parse_subscription(item: dict) -> Channel:
    try:
        snippet = item["snippet"]
        name = html.unescape(snippet["title"])
        return Channel(
            id=snippet["resourceId"]["channelId"],
            name=name,
            avatar_url=_thumbnail_url(snippet, "default", DEFAULT_AVATAR_URL),
            avatar_hint=make_hint(name),
            enabled=True,
        )
    except (KeyError, TypeError) as e:
        raise ValueError(f"Malformed subscription item: missing {e}") from e


def _parse_search_result(item: dict, now: datetime) -> Video:
    try:
        snippet = item["snippet"]
        title = html.unescape(snippet["title"])
        published_time = parse_published_datetime(snippet["publishedAt"])
        return Video(
            id=item["id"]["videoId"],
            title=title,
            channel_id=snippet["channelId"],
            channel_name=html.unescape(snippet.get("channelTitle", "")),
            thumbnail_url=_thumbnail_url(snippet, "medium", DEFAULT_THUMBNAIL_URL),
            thumbnail_hint=make_hint(title),
            published_time=published_time,
            published_at=format_published_date(published_time, now),
            description=snippet.get("description") or "",
        )
    except (KeyError, TypeError, ValueError) as e:
        raise ValueError(f"Malformed video search item: {e}") from e


def _parse_int(value: Any) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _parse_video_details(item: dict) -> VideoDetails:
    snippet = item.get("snippet") or {}
    content_details = item.get("contentDetails") or {}
    statistics = item.get("statistics") or {}
    return VideoDetails(
        duration=format_duration(content_details.get("duration", "")),
        category=snippet.get("categoryId"),
        tags=snippet.get("tags") or [],
        description=snippet.get("description"),
        view_count=_parse_int(statistics.get("viewCount")),
        like_count=_parse_int(statistics.get("likeCount")),
    )


class YouTubeClient:
    """Async facade over the YouTube Data API v3 discovery client."""

    def __init__(self, api_key: str, timeout: float = 15.0):
        self._api_key = api_key
        self._timeout = timeout
        self._public_service = None
        if not api_key:
            logging.warning(
                "YouTube API key not configured. Public video lookups will fail."
            )

    def _public(self):
        """Lazily builds the API-key client used for public lookups."""
        if self._public_service is None:
            self._public_service = build(
                "youtube",
                "v3",
                developerKey=self._api_key,
                http=httplib2.Http(timeout=self._timeout),
                cache_discovery=False,
            )
        return self._public_service

    def _authorized(self, access_token: str):
        """Builds a client acting as the signed-in user."""
        http = AuthorizedHttp(
            Credentials(token=access_token),
            http=httplib2.Http(timeout=self._timeout),
        )
        return build("youtube", "v3", http=http, cache_discovery=False)

    async def _run(self, call: Callable[[], T], context: str) -> T:
        """Runs a blocking API call off the event loop, classifying failures."""
        try:
            return await asyncio.to_thread(call)
        except HttpError as e:
            raise UpstreamError.from_exception(e, context) from e
        except (httplib2.HttpLib2Error, OSError) as e:
            raise UpstreamError(
                f"{context}: {e}", kind=ErrorKind.TRANSIENT
            ) from e

    async def list_subscriptions(self, access_token: Optional[str]) -> list[Channel]:
        """Returns every channel the signed-in user subscribes to."""
        if not access_token:
            raise UpstreamError(
                "No access token provided for subscription listing",
                kind=ErrorKind.AUTH_FAILURE,
            )

        def fetch_all() -> list[dict]:
            youtube = self._authorized(access_token)
            subscriptions = youtube.subscriptions()
            request = subscriptions.list(
                part="snippet", mine=True, maxResults=SUBSCRIPTIONS_PAGE_SIZE
            )
            items = []
            while request is not None:
                response = request.execute()
                items.extend(response.get("items", []))
                request = subscriptions.list_next(request, response)
            return items

        logging.info("Fetching subscribed channels from YouTube API...")
        items = await self._run(fetch_all, "Failed to fetch subscriptions")
        channels = [_parse_subscription(item) for item in items]
        logging.info(f"Fetched {len(channels)} subscribed channels")
        return channels

    async def list_channel_videos(self, channel_id: str, max_results: int) -> list[Video]:
        """Returns up to ``max_results`` of the channel's newest uploads."""
        request = self._public().search().list(
            part="snippet",
            channelId=channel_id,
            order="date",
            type="video",
            maxResults=max_results,
        )
        response = await self._run(
            request.execute, f"Failed to fetch videos for channel {channel_id}"
        )
        now = datetime.now(timezone.utc)
        videos = []
        for item in response.get("items", []):
            try:
                videos.append(_parse_search_result(item, now))
            except ValueError as e:
                logging.warning(f"Skipping video item from channel {channel_id}: {e}")
        return videos

    async def get_video_details(self, video_id: str) -> Optional[VideoDetails]:
        request = self._public().videos().list(
            part="snippet,contentDetails,statistics", id=video_id
        )
        response = await self._run(
            request.execute, f"Failed to fetch details for video {video_id}"
        )
        items = response.get("items") or []
        if not items:
            return None
        return _parse_video_details(items[0])
