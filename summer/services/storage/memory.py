from __future__ import annotations

from typing import Optional

from summer.schemas.channel import Channel
from summer.schemas.summary import Summary
from summer.services.storage.base import (
    ChannelDirectory,
    SummaryStore,
    apply_toggle,
    merge_channels,
)
from summer.utils.locks import UserLocks


class InMemoryChannelDirectory(ChannelDirectory):
    """Process-local directory for local development and tests."""

    def __init__(self):
        self._channels: dict[str, list[Channel]] = {}
        self._locks = UserLocks()

    async def list(self, user_id: str) -> list[Channel]:
        return [channel.model_copy() for channel in self._channels.get(user_id, [])]

    async def upsert(self, user_id: str, channels: list[Channel]) -> list[Channel]:
        async with self._locks.hold(user_id):
            self._channels[user_id] = [channel.model_copy() for channel in channels]
        return await self.list(user_id)

    async def toggle(
        self, user_id: str, channel_id: str, enabled: bool
    ) -> Optional[Channel]:
        async with self._locks.hold(user_id):
            channels, updated = apply_toggle(
                self._channels.get(user_id, []), channel_id, enabled
            )
            if updated is None:
                return None
            self._channels[user_id] = channels
        return updated.model_copy()

    async def merge_upstream(
        self, user_id: str, upstream: list[Channel]
    ) -> list[Channel]:
        async with self._locks.hold(user_id):
            merged = merge_channels(self._channels.get(user_id, []), upstream)
            self._channels[user_id] = merged
        return [channel.model_copy() for channel in merged]


class InMemorySummaryStore(SummaryStore):
    def __init__(self):
        self._summaries: dict[str, list[Summary]] = {}
        self._locks = UserLocks()

    async def list(self, user_id: str, limit: int) -> list[Summary]:
        summaries = sorted(
            self._summaries.get(user_id, []),
            key=lambda summary: summary.created_at,
            reverse=True,
        )
        return [summary.model_copy() for summary in summaries[:limit]]

    async def get(self, user_id: str, summary_id: str) -> Optional[Summary]:
        for summary in self._summaries.get(user_id, []):
            if summary.id == summary_id:
                return summary.model_copy()
        return None

    async def find_by_video_id(self, user_id: str, video_id: str) -> Optional[Summary]:
        for summary in self._summaries.get(user_id, []):
            if summary.video_id == video_id:
                return summary.model_copy()
        return None

    async def insert(self, user_id: str, summary: Summary) -> Summary:
        self._summaries.setdefault(user_id, []).append(summary.model_copy())
        return summary

    async def insert_if_absent(
        self, user_id: str, summary: Summary
    ) -> tuple[Summary, bool]:
        async with self._locks.hold(user_id):
            existing = await self.find_by_video_id(user_id, summary.video_id)
            if existing is not None:
                return existing, False
            await self.insert(user_id, summary)
        return summary, True

    async def delete(self, user_id: str, summary_id: str) -> bool:
        async with self._locks.hold(user_id):
            summaries = self._summaries.get(user_id, [])
            remaining = [summary for summary in summaries if summary.id != summary_id]
            if len(remaining) == len(summaries):
                return False
            self._summaries[user_id] = remaining
        return True

    async def replace(
        self, user_id: str, summary_id: str, summary: Summary
    ) -> Optional[Summary]:
        async with self._locks.hold(user_id):
            summaries = self._summaries.get(user_id, [])
            for index, stored in enumerate(summaries):
                if stored.id == summary_id:
                    summaries[index] = summary.model_copy()
                    return summary
        return None
