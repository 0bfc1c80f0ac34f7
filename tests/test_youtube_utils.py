import asyncio
from datetime import datetime, timedelta, timezone

import httplib2
import pytest
from googleapiclient.errors import HttpError

from summer.services.content.youtube_utils import (
    YouTubeClient,
    format_duration,
    format_published_date,
    parse_published_datetime,
)
from summer.utils.errors import ErrorKind, UpstreamError

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "delta, expected",
    [
        (timedelta(minutes=10), "0 hours ago"),
        (timedelta(hours=1, minutes=59), "1 hours ago"),
        (timedelta(hours=23, minutes=59), "23 hours ago"),
        (timedelta(hours=24), "1 day ago"),
        (timedelta(hours=47), "1 day ago"),
        (timedelta(hours=48), "2 days ago"),
        (timedelta(days=9, hours=5), "9 days ago"),
        (timedelta(hours=-3), "0 hours ago"),
    ],
)
def test_format_published_date(delta, expected):
    assert format_published_date(NOW - delta, NOW) == expected


@pytest.mark.parametrize(
    "duration, expected",
    [
        ("PT1H2M3S", "1:02:03"),
        ("PT4M5S", "04:05"),
        ("PT45S", "00:45"),
        ("PT2H", "2:00:00"),
        ("P1D", "Unknown"),
        ("", "Unknown"),
    ],
)
def test_format_duration(duration, expected):
    assert format_duration(duration) == expected


def test_parse_published_datetime_is_utc():
    parsed = parse_published_datetime("2026-10-19T11:00:00Z")
    assert parsed == datetime(2026, 10, 19, 11, 0, tzinfo=timezone.utc)


def _mock_build(mocker):
    return mocker.patch("summer.services.content.youtube_utils.build").return_value


def test_list_channel_videos_parses_search_results(mocker):
    service = _mock_build(mocker)
    published = (datetime.now(timezone.utc) - timedelta(hours=1, minutes=5)).isoformat()
    service.search.return_value.list.return_value.execute.return_value = {
        "items": [
            {
                "id": {"videoId": "abc"},
                "snippet": {
                    "title": "Rust &amp; WebAssembly",
                    "channelId": "UC1",
                    "channelTitle": "Fireship",
                    "publishedAt": published,
                    "thumbnails": {"medium": {"url": "https://img/abc.jpg"}},
                },
            }
        ]
    }
    videos = asyncio.run(YouTubeClient("key").list_channel_videos("UC1", 5))
    assert len(videos) == 1
    assert videos[0].title == "Rust & WebAssembly"
    assert videos[0].thumbnail_url == "https://img/abc.jpg"
    assert videos[0].published_at == "1 hours ago"
    service.search.return_value.list.assert_called_once_with(
        part="snippet", channelId="UC1", order="date", type="video", maxResults=5
    )


def test_list_subscriptions_follows_pages(mocker):
    service = _mock_build(mocker)
    subscriptions = service.subscriptions.return_value
    subscriptions.list.return_value.execute.return_value = {
        "items": [
            {
                "snippet": {
                    "title": "Veritasium",
                    "resourceId": {"channelId": "UC5"},
                    "thumbnails": {"default": {"url": "https://img/v.jpg"}},
                }
            }
        ]
    }
    second_page = mocker.MagicMock()
    second_page.execute.return_value = {
        "items": [{"snippet": {"title": "Kurzgesagt", "resourceId": {"channelId": "UC7"}}}]
    }
    subscriptions.list_next.side_effect = [second_page, None]

    channels = asyncio.run(YouTubeClient("key").list_subscriptions("token"))
    assert [channel.id for channel in channels] == ["UC5", "UC7"]
    assert channels[0].avatar_hint == "veritasium"
    assert all(channel.enabled for channel in channels)


def test_list_subscriptions_without_token():
    with pytest.raises(UpstreamError) as exc_info:
        asyncio.run(YouTubeClient("key").list_subscriptions(None))
    assert exc_info.value.kind is ErrorKind.AUTH_FAILURE


def test_http_errors_are_classified(mocker):
    service = _mock_build(mocker)
    service.videos.return_value.list.return_value.execute.side_effect = HttpError(
        httplib2.Response({"status": 403}), b"quotaExceeded"
    )
    with pytest.raises(UpstreamError) as exc_info:
        asyncio.run(YouTubeClient("key").get_video_details("abc"))
    assert exc_info.value.kind is ErrorKind.AUTH_FAILURE
    assert exc_info.value.status_code == 403


def test_video_details_missing(mocker):
    service = _mock_build(mocker)
    service.videos.return_value.list.return_value.execute.return_value = {"items": []}
    assert asyncio.run(YouTubeClient("key").get_video_details("abc")) is None
