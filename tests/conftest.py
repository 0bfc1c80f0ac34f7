import pytest
from fastapi.testclient import TestClient

from fakes import FakeLLMClient, FakeTranscriptSource, FakeYouTubeClient
from summer.main import create_app
from summer.services.registry import assemble_services
from summer.services.storage.memory import InMemoryChannelDirectory, InMemorySummaryStore
from summer.utils.config import Settings


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        app_env="local",
        storage_backend="memory",
        llm_retry_delay_seconds=0,
        mock_llm_calls=False,
        seed_default_channels=False,
    )


@pytest.fixture
def youtube():
    return FakeYouTubeClient()


@pytest.fixture
def transcripts():
    return FakeTranscriptSource()


@pytest.fixture
def llm():
    return FakeLLMClient()


@pytest.fixture
def services(settings, youtube, transcripts, llm):
    return assemble_services(
        settings,
        channels=InMemoryChannelDirectory(),
        summaries=InMemorySummaryStore(),
        youtube=youtube,
        transcripts=transcripts,
        llm_client=llm,
    )


@pytest.fixture
def client(settings, services):
    app = create_app(settings, services=services)
    with TestClient(app) as test_client:
        yield test_client
