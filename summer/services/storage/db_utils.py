from __future__ import annotations

import json
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, Callable, Optional
from uuid import UUID

import asyncpg

from summer.schemas.channel import Channel
from summer.schemas.summary import Summary
from summer.services.storage.base import (
    ChannelDirectory,
    SummaryStore,
    apply_toggle,
    merge_channels,
)
from summer.utils.errors import StorageError
from summer.utils.text_utils import sanitize_text

SCHEMA_FILE_PATH = Path(__file__).with_name("schema.sql")
DRIVER_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError)

SUMMARY_COLUMNS = """
    id, user_id, video_id, video_title, channel_name, thumbnail_url,
    thumbnail_hint, summary_points, published_at, channel_avatar_url,
    channel_avatar_hint, content_source, created_at
"""


async def create_pool(dsn: str) -> asyncpg.Pool:
    """Creates the connection pool and applies the schema."""
    if not dsn:
        raise StorageError("POSTGRES_DSN is not configured.")
    try:
        pool = await asyncpg.create_pool(dsn, statement_cache_size=0)
        async with pool.acquire() as conn:
            await conn.execute(SCHEMA_FILE_PATH.read_text(encoding="utf-8"))
    except DRIVER_ERRORS as e:
        logging.error(f"Failed to initialise Postgres storage: {e}")
        raise StorageError(f"Failed to initialise Postgres storage: {e}") from e
    return pool


def _load_json(value: Any) -> Any:
    """asyncpg returns JSONB as text unless a codec is registered."""
    if value is None:
        return None
    if isinstance(value, (str, bytes)):
        return json.loads(value)
    return value


def _dump_channels(channels: list[Channel]) -> str:
    return json.dumps([channel.model_dump() for channel in channels])


def _load_channels(value: Any) -> list[Channel]:
    raw = _load_json(value) or []
    return [Channel.model_validate(item) for item in raw]


def _parse_uuid(value: str) -> Optional[UUID]:
    try:
        return UUID(value)
    except (TypeError, ValueError):
        return None


def _record_to_summary(record: asyncpg.Record) -> Summary:
    data = dict(record)
    data.pop("user_id", None)
    data["id"] = str(data["id"])
    data["summary_points"] = _load_json(data["summary_points"])
    return Summary.model_validate(data)


class _PostgresBackend:
    def __init__(self, pool: asyncpg.Pool):
        self._pool = pool

    @asynccontextmanager
    async def _acquire(self, operation: str):
        try:
            async with self._pool.acquire() as conn:
                yield conn
        except DRIVER_ERRORS as e:
            logging.error(f"Postgres {operation} failed: {e}")
            raise StorageError(f"Postgres {operation} failed: {e}") from e


class PostgresChannelDirectory(_PostgresBackend, ChannelDirectory):
    """Stores each user's channel sequence as one JSONB document."""

    async def list(self, user_id: str) -> list[Channel]:
        async with self._acquire("channel list") as conn:
            value = await conn.fetchval(
                "SELECT channels FROM channel_directories WHERE user_id = $1",
                user_id,
            )
        return _load_channels(value)

    async def upsert(self, user_id: str, channels: list[Channel]) -> list[Channel]:
        async with self._acquire("channel upsert") as conn:
            await conn.execute(
                """
                INSERT INTO channel_directories (user_id, channels, updated_at)
                VALUES ($1, $2::jsonb, NOW())
                ON CONFLICT (user_id) DO UPDATE
                SET channels = EXCLUDED.channels,
                    updated_at = NOW()
                """,
                user_id,
                _dump_channels(channels),
            )
        return [channel.model_copy() for channel in channels]

    async def _read_modify_write(
        self,
        user_id: str,
        operation: str,
        mutate: Callable[[list[Channel]], Optional[list[Channel]]],
    ) -> Optional[list[Channel]]:
        """
        Runs ``mutate`` on the stored sequence while holding the user's row lock.

        ``mutate`` returns the sequence to write, or None to leave it unchanged.
        """
        async with self._acquire(operation) as conn:
            async with conn.transaction():
                await conn.execute(
                    """
                    INSERT INTO channel_directories (user_id, channels)
                    VALUES ($1, '[]'::jsonb)
                    ON CONFLICT (user_id) DO NOTHING
                    """,
                    user_id,
                )
                value = await conn.fetchval(
                    """
                    SELECT channels FROM channel_directories
                    WHERE user_id = $1
                    FOR UPDATE
                    """,
                    user_id,
                )
                updated = mutate(_load_channels(value))
                if updated is None:
                    return None
                await conn.execute(
                    """
                    UPDATE channel_directories
                    SET channels = $2::jsonb, updated_at = NOW()
                    WHERE user_id = $1
                    """,
                    user_id,
                    _dump_channels(updated),
                )
        return updated

    async def toggle(
        self, user_id: str, channel_id: str, enabled: bool
    ) -> Optional[Channel]:
        toggled: dict[str, Channel] = {}

        def mutate(channels: list[Channel]) -> Optional[list[Channel]]:
            updated_channels, channel = apply_toggle(channels, channel_id, enabled)
            if channel is None:
                return None
            toggled["channel"] = channel
            return updated_channels

        await self._read_modify_write(user_id, "channel toggle", mutate)
        return toggled.get("channel")

    async def merge_upstream(
        self, user_id: str, upstream: list[Channel]
    ) -> list[Channel]:
        merged = await self._read_modify_write(
            user_id,
            "channel merge",
            lambda existing: merge_channels(existing, upstream),
        )
        return merged or []


class PostgresSummaryStore(_PostgresBackend, SummaryStore):
    async def list(self, user_id: str, limit: int) -> list[Summary]:
        async with self._acquire("summary list") as conn:
            records = await conn.fetch(
                f"""
                SELECT {SUMMARY_COLUMNS} FROM summaries
                WHERE user_id = $1
                ORDER BY created_at DESC
                LIMIT $2
                """,
                user_id,
                limit,
            )
        return [_record_to_summary(record) for record in records]

    async def get(self, user_id: str, summary_id: str) -> Optional[Summary]:
        summary_uuid = _parse_uuid(summary_id)
        if summary_uuid is None:
            return None
        async with self._acquire("summary get") as conn:
            record = await conn.fetchrow(
                f"SELECT {SUMMARY_COLUMNS} FROM summaries WHERE id = $1 AND user_id = $2",
                summary_uuid,
                user_id,
            )
        return _record_to_summary(record) if record else None

    async def find_by_video_id(self, user_id: str, video_id: str) -> Optional[Summary]:
        async with self._acquire("summary lookup") as conn:
            record = await conn.fetchrow(
                f"""
                SELECT {SUMMARY_COLUMNS} FROM summaries
                WHERE user_id = $1 AND video_id = $2
                """,
                user_id,
                video_id,
            )
        return _record_to_summary(record) if record else None

    def _insert_args(self, user_id: str, summary: Summary) -> list[Any]:
        return [
            UUID(summary.id),
            user_id,
            summary.video_id,
            sanitize_text(summary.video_title),
            sanitize_text(summary.channel_name),
            summary.thumbnail_url,
            sanitize_text(summary.thumbnail_hint),
            json.dumps([sanitize_text(point) for point in summary.summary_points]),
            summary.published_at,
            summary.channel_avatar_url,
            sanitize_text(summary.channel_avatar_hint),
            summary.content_source,
            summary.created_at,
        ]

    async def insert(self, user_id: str, summary: Summary) -> Summary:
        async with self._acquire("summary insert") as conn:
            await conn.execute(
                f"""
                INSERT INTO summaries ({SUMMARY_COLUMNS})
                VALUES ($1, $2, $3, $4, $5, $6, $7, $8::jsonb, $9, $10, $11, $12, $13)
                """,
                *self._insert_args(user_id, summary),
            )
        return summary

    async def insert_if_absent(
        self, user_id: str, summary: Summary
    ) -> tuple[Summary, bool]:
        async with self._acquire("summary insert") as conn:
            record = await conn.fetchrow(
                f"""
                INSERT INTO summaries ({SUMMARY_COLUMNS})
                VALUES ($1, $2, $3, $4, $5, $6, $7, $8::jsonb, $9, $10, $11, $12, $13)
                ON CONFLICT (user_id, video_id) DO NOTHING
                RETURNING {SUMMARY_COLUMNS}
                """,
                *self._insert_args(user_id, summary),
            )
            if record is not None:
                return _record_to_summary(record), True
            existing = await conn.fetchrow(
                f"""
                SELECT {SUMMARY_COLUMNS} FROM summaries
                WHERE user_id = $1 AND video_id = $2
                """,
                user_id,
                summary.video_id,
            )
        if existing is None:
            # Deleted between the conflict and the lookup.
            raise StorageError(
                f"Summary for video {summary.video_id} vanished during insert"
            )
        return _record_to_summary(existing), False

    async def delete(self, user_id: str, summary_id: str) -> bool:
        summary_uuid = _parse_uuid(summary_id)
        if summary_uuid is None:
            return False
        async with self._acquire("summary delete") as conn:
            result = await conn.execute(
                "DELETE FROM summaries WHERE id = $1 AND user_id = $2",
                summary_uuid,
                user_id,
            )
        return result.endswith(" 1")

    async def replace(
        self, user_id: str, summary_id: str, summary: Summary
    ) -> Optional[Summary]:
        summary_uuid = _parse_uuid(summary_id)
        if summary_uuid is None:
            return None
        async with self._acquire("summary replace") as conn:
            async with conn.transaction():
                result = await conn.execute(
                    "DELETE FROM summaries WHERE id = $1 AND user_id = $2",
                    summary_uuid,
                    user_id,
                )
                if not result.endswith(" 1"):
                    return None
                await conn.execute(
                    f"""
                    INSERT INTO summaries ({SUMMARY_COLUMNS})
                    VALUES ($1, $2, $3, $4, $5, $6, $7, $8::jsonb, $9, $10, $11, $12, $13)
                    """,
                    *self._insert_args(user_id, summary),
                )
        return summary
