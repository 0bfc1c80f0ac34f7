"""
Per-user persistence contracts.

Both stores are partitioned by user id; no operation reads or writes another
user's data.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from summer.schemas.channel import Channel
from summer.schemas.summary import Summary


def merge_channels(existing: list[Channel], upstream: list[Channel]) -> list[Channel]:
    """
    Reconciles the stored directory with an upstream subscription list.

    Output follows upstream order. A channel already stored keeps its
    ``enabled`` flag and takes name/avatar from upstream; a new channel keeps
    the flag it arrived with (subscriptions arrive enabled).
    """
    stored = {channel.id: channel for channel in existing}
    merged = []
    for channel in upstream:
        previous = stored.get(channel.id)
        if previous is None:
            merged.append(channel.model_copy())
        else:
            merged.append(channel.model_copy(update={"enabled": previous.enabled}))
    return merged


def apply_toggle(
    channels: list[Channel], channel_id: str, enabled: bool
) -> tuple[list[Channel], Optional[Channel]]:
    """Returns the updated sequence and the toggled channel (None if absent)."""
    updated = None
    result = []
    for channel in channels:
        if channel.id == channel_id:
            channel = channel.model_copy(update={"enabled": enabled})
            updated = channel
        result.append(channel)
    return result, updated


class ChannelDirectory(ABC):
    @abstractmethod
    async def list(self, user_id: str) -> list[Channel]:
        """Returns the stored sequence in stored order."""

    @abstractmethod
    async def upsert(self, user_id: str, channels: list[Channel]) -> list[Channel]:
        """Replaces the stored sequence wholesale."""

    @abstractmethod
    async def toggle(
        self, user_id: str, channel_id: str, enabled: bool
    ) -> Optional[Channel]:
        """Sets one channel's flag. Returns None when the channel is not stored."""

    @abstractmethod
    async def merge_upstream(
        self, user_id: str, upstream: list[Channel]
    ) -> list[Channel]:
        """Atomically merges an upstream list into the stored sequence and persists it."""


class SummaryStore(ABC):
    @abstractmethod
    async def list(self, user_id: str, limit: int) -> list[Summary]:
        """Newest first by created_at, at most ``limit`` items."""

    @abstractmethod
    async def get(self, user_id: str, summary_id: str) -> Optional[Summary]:
        pass

    @abstractmethod
    async def find_by_video_id(self, user_id: str, video_id: str) -> Optional[Summary]:
        pass

    @abstractmethod
    async def insert(self, user_id: str, summary: Summary) -> Summary:
        """Unchecked insert. Callers must already know the video is not summarised."""

    @abstractmethod
    async def insert_if_absent(
        self, user_id: str, summary: Summary
    ) -> tuple[Summary, bool]:
        """
        Inserts unless a summary for the same video exists, as one atomic step.

        Returns the stored summary and whether it was created by this call.
        """

    @abstractmethod
    async def delete(self, user_id: str, summary_id: str) -> bool:
        pass

    @abstractmethod
    async def replace(
        self, user_id: str, summary_id: str, summary: Summary
    ) -> Optional[Summary]:
        """
        Swaps a stored summary for ``summary`` as one atomic step.

        Returns None, leaving the store untouched, when ``summary_id`` is unknown.
        """
