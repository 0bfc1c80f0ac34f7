import logging
from dataclasses import dataclass
from typing import Any, Optional

import asyncpg

from summer.services.content.resolver import ContentResolver
from summer.services.content.transcript_utils import TranscriptSource
from summer.services.content.youtube_utils import YouTubeClient
from summer.services.storage.base import ChannelDirectory, SummaryStore
from summer.services.storage.db_utils import (
    PostgresChannelDirectory,
    PostgresSummaryStore,
    create_pool,
)
from summer.services.storage.memory import InMemoryChannelDirectory, InMemorySummaryStore
from summer.services.summary.orchestrator import SummaryOrchestrator
from summer.services.summary.summarizer import SummarizationService
from summer.services.sync.orchestrator import SyncOrchestrator
from summer.utils.config import Settings
from summer.utils.llm_client import build_llm_client


@dataclass
class Services:
    """Service objects shared by every request, built once at startup."""

    channels: ChannelDirectory
    summaries: SummaryStore
    youtube: YouTubeClient
    summary_orchestrator: SummaryOrchestrator
    sync_orchestrator: SyncOrchestrator
    pool: Optional[asyncpg.Pool] = None

    async def close(self) -> None:
        if self.pool is not None:
            await self.pool.close()
            self.pool = None


def assemble_services(
    settings: Settings,
    channels: ChannelDirectory,
    summaries: SummaryStore,
    youtube: YouTubeClient,
    transcripts: TranscriptSource,
    llm_client: Any,
    pool: Optional[asyncpg.Pool] = None,
) -> Services:
    """Wires the orchestrators from already-constructed collaborators."""
    resolver = ContentResolver(youtube, transcripts)
    summarizer = SummarizationService(
        llm_client,
        settings.summary_model,
        retry_delay=settings.llm_retry_delay_seconds,
        mock_calls=settings.mock_llm_calls,
    )
    summary_orchestrator = SummaryOrchestrator(summaries, resolver, summarizer)
    sync_orchestrator = SyncOrchestrator(
        channels,
        youtube,
        summary_orchestrator,
        videos_per_channel=settings.videos_per_channel,
        max_videos=settings.max_videos_per_sync,
    )
    return Services(
        channels=channels,
        summaries=summaries,
        youtube=youtube,
        summary_orchestrator=summary_orchestrator,
        sync_orchestrator=sync_orchestrator,
        pool=pool,
    )


async def build_services(settings: Settings) -> Services:
    """Builds the production service graph for ``settings.storage_backend``."""
    pool = None
    if settings.storage_backend == "memory":
        logging.warning("Using in-memory storage; data is lost on restart.")
        channels, summaries = InMemoryChannelDirectory(), InMemorySummaryStore()
    elif settings.storage_backend == "postgres":
        pool = await create_pool(settings.postgres_dsn)
        channels, summaries = PostgresChannelDirectory(pool), PostgresSummaryStore(pool)
    else:
        raise ValueError(f"Unknown storage backend: {settings.storage_backend}")

    return assemble_services(
        settings,
        channels=channels,
        summaries=summaries,
        youtube=YouTubeClient(
            settings.youtube_api_key, timeout=settings.youtube_api_timeout_seconds
        ),
        transcripts=TranscriptSource(settings.transcript_languages),
        llm_client=build_llm_client(settings),
        pool=pool,
    )
