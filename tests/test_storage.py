import asyncio
from datetime import datetime, timedelta, timezone

from fakes import make_channel
from summer.schemas.summary import Summary
from summer.services.storage.base import merge_channels
from summer.services.storage.memory import InMemoryChannelDirectory, InMemorySummaryStore

T0 = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


def _summary(video_id, minutes=0):
    return Summary(
        video_id=video_id,
        video_title=f"Video {video_id}",
        channel_name="Fireship",
        summary_points=["point"],
        published_at="1 hours ago",
        created_at=T0 + timedelta(minutes=minutes),
    )


def test_merge_keeps_toggles_and_upstream_order():
    existing = [make_channel("a", "A", enabled=False), make_channel("b", "B")]
    upstream = [make_channel("c", "C"), make_channel("a", "A renamed"), make_channel("b", "B")]
    merged = merge_channels(existing, upstream)
    assert [(c.id, c.name, c.enabled) for c in merged] == [
        ("c", "C", True),
        ("a", "A renamed", False),
        ("b", "B", True),
    ]


def test_merge_drops_unsubscribed_channels():
    existing = [make_channel("a", "A"), make_channel("gone", "Gone", enabled=False)]
    merged = merge_channels(existing, [make_channel("a", "A")])
    assert [c.id for c in merged] == ["a"]


def test_channel_directory_toggle():
    async def scenario():
        directory = InMemoryChannelDirectory()
        await directory.upsert("u1", [make_channel("a", "A"), make_channel("b", "B")])
        toggled = await directory.toggle("u1", "b", False)
        missing = await directory.toggle("u1", "zzz", False)
        return toggled, missing, await directory.list("u1"), await directory.list("u2")

    toggled, missing, channels, other_user = asyncio.run(scenario())
    assert toggled.enabled is False
    assert missing is None
    assert [c.enabled for c in channels] == [True, False]
    assert other_user == []


def test_merge_upstream_persists():
    async def scenario():
        directory = InMemoryChannelDirectory()
        await directory.upsert("u1", [make_channel("a", "A", enabled=False)])
        await directory.merge_upstream("u1", [make_channel("a", "A"), make_channel("b", "B")])
        return await directory.list("u1")

    channels = asyncio.run(scenario())
    assert [(c.id, c.enabled) for c in channels] == [("a", False), ("b", True)]


def test_summary_list_newest_first_with_limit():
    async def scenario():
        store = InMemorySummaryStore()
        for i in range(5):
            await store.insert("u1", _summary(f"v{i}", minutes=i))
        return await store.list("u1", 3)

    summaries = asyncio.run(scenario())
    assert [s.video_id for s in summaries] == ["v4", "v3", "v2"]


def test_insert_if_absent_is_idempotent_per_video():
    async def scenario():
        store = InMemorySummaryStore()
        first = await store.insert_if_absent("u1", _summary("v1"))
        second = await store.insert_if_absent("u1", _summary("v1", minutes=5))
        other_user = await store.insert_if_absent("u2", _summary("v1"))
        return first, second, other_user, await store.list("u1", 10)

    first, second, other_user, stored = asyncio.run(scenario())
    assert first[1] is True
    assert second == (first[0], False)
    assert other_user[1] is True
    assert len(stored) == 1


def test_concurrent_inserts_store_one_summary():
    async def scenario():
        store = InMemorySummaryStore()
        results = await asyncio.gather(
            *(store.insert_if_absent("u1", _summary("v1", minutes=i)) for i in range(5))
        )
        return results, await store.list("u1", 10)

    results, stored = asyncio.run(scenario())
    assert sum(1 for _, created in results if created) == 1
    assert len(stored) == 1


def test_delete_is_scoped_to_user():
    async def scenario():
        store = InMemorySummaryStore()
        summary = _summary("v1")
        await store.insert("u1", summary)
        wrong_user = await store.delete("u2", summary.id)
        deleted = await store.delete("u1", summary.id)
        again = await store.delete("u1", summary.id)
        return wrong_user, deleted, again

    assert asyncio.run(scenario()) == (False, True, False)


def test_merge_keeps_flag_of_new_upstream_channel():
    upstream = [make_channel("3", "Lex Fridman", enabled=False), make_channel("4", "Fireship")]
    merged = merge_channels([], upstream)
    assert [(c.id, c.enabled) for c in merged] == [("3", False), ("4", True)]
