import asyncio
import json
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone

import pytest

from summer.schemas.summary import Summary
from summer.services.storage.db_utils import PostgresSummaryStore
from summer.utils.errors import StorageError


class FakePool:
    def __init__(self, conn):
        self.conn = conn

    @asynccontextmanager
    async def acquire(self):
        yield self.conn


def _row(video_id="v1", summary_id=None):
    return {
        "id": summary_id or uuid.uuid4(),
        "user_id": "u1",
        "video_id": video_id,
        "video_title": "Title",
        "channel_name": "Fireship",
        "thumbnail_url": "https://placehold.co/600x400.png",
        "thumbnail_hint": "title",
        "summary_points": json.dumps(["one", "two"]),
        "published_at": "1 hours ago",
        "channel_avatar_url": "https://placehold.co/40x40.png",
        "channel_avatar_hint": "fireship",
        "content_source": "transcript",
        "created_at": datetime(2026, 10, 19, tzinfo=timezone.utc),
    }


def _summary(video_id="v1"):
    return Summary(
        video_id=video_id,
        video_title="Title\x00",
        channel_name="Fireship",
        summary_points=["one"],
        published_at="1 hours ago",
    )


def test_insert_if_absent_returns_existing_on_conflict(mocker):
    conn = mocker.AsyncMock()
    existing = _row()
    conn.fetchrow.side_effect = [None, existing]

    stored, created = asyncio.run(
        PostgresSummaryStore(FakePool(conn)).insert_if_absent("u1", _summary())
    )

    assert created is False
    assert stored.id == str(existing["id"])
    assert stored.summary_points == ["one", "two"]
    insert_args = conn.fetchrow.await_args_list[0].args
    assert "ON CONFLICT (user_id, video_id) DO NOTHING" in insert_args[0]
    assert insert_args[4] == "Title"


def test_insert_if_absent_creates(mocker):
    conn = mocker.AsyncMock()
    conn.fetchrow.return_value = _row()
    _, created = asyncio.run(
        PostgresSummaryStore(FakePool(conn)).insert_if_absent("u1", _summary())
    )
    assert created is True
    assert conn.fetchrow.await_count == 1


def test_driver_errors_become_storage_errors(mocker):
    conn = mocker.AsyncMock()
    conn.fetch.side_effect = ConnectionRefusedError("connection refused")
    with pytest.raises(StorageError):
        asyncio.run(PostgresSummaryStore(FakePool(conn)).list("u1", 10))


def test_delete_with_invalid_id_does_not_query(mocker):
    conn = mocker.AsyncMock()
    store = PostgresSummaryStore(FakePool(conn))
    assert asyncio.run(store.delete("u1", "not-a-uuid")) is False
    conn.execute.assert_not_awaited()


def test_delete_reports_affected_rows(mocker):
    conn = mocker.AsyncMock()
    conn.execute.side_effect = ["DELETE 1", "DELETE 0"]
    store = PostgresSummaryStore(FakePool(conn))
    summary_id = str(uuid.uuid4())
    assert asyncio.run(store.delete("u1", summary_id)) is True
    assert asyncio.run(store.delete("u1", summary_id)) is False


def test_replace_swaps_rows_in_one_transaction(mocker):
    conn = mocker.AsyncMock()
    conn.transaction = mocker.Mock(return_value=mocker.AsyncMock())
    conn.execute.side_effect = ["DELETE 1", "INSERT 0 1"]
    store = PostgresSummaryStore(FakePool(conn))

    replacement = _summary()
    stored = asyncio.run(store.replace("u1", str(uuid.uuid4()), replacement))

    assert stored is replacement
    conn.transaction.assert_called_once()
    statements = [call.args[0] for call in conn.execute.await_args_list]
    assert statements[0].startswith("DELETE FROM summaries")
    assert "INSERT INTO summaries" in statements[1]


def test_replace_unknown_summary_inserts_nothing(mocker):
    conn = mocker.AsyncMock()
    conn.transaction = mocker.Mock(return_value=mocker.AsyncMock())
    conn.execute.return_value = "DELETE 0"
    store = PostgresSummaryStore(FakePool(conn))

    assert asyncio.run(store.replace("u1", str(uuid.uuid4()), _summary())) is None
    assert conn.execute.await_count == 1
