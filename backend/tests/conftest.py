"""
EchoNote Backend: Test Configuration (conftest.py)
===================================================

What:  Shared pytest fixtures for the test suite.
How:   Each test gets its own SQLite database (aiosqlite) and audio storage
       directory under tmp_path, real repositories and services, and fake
       AI providers. No network access and no Gemini calls.

Fixture Hierarchy (all function-scoped):
    settings ──▶ engine ──▶ session_factory ──┬─▶ note_repository / job_repository
                                               ├─▶ note_service / audio_service
                                               └─▶ container ──▶ app ──▶ test_client
    fake_transcriber, fake_summarizer ─────────────▶ container
"""

import os
import tempfile
from typing import List, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Set before any echonote import: echonote.main builds a module-level app
# from the environment.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test.db")
os.environ.setdefault("GEMINI_API_KEY", "test-key-not-real")
os.environ.setdefault("STORAGE_ROOT", tempfile.mkdtemp(prefix="echonote_test_"))
os.environ.setdefault("LOG_LEVEL", "WARNING")

from echonote.config import Settings  # noqa: E402
from echonote.database import (  # noqa: E402
    create_engine_from_settings,
    create_session_factory,
    init_models,
)
from echonote.dependencies import build_container  # noqa: E402
from echonote.exceptions import SummaryError, TranscriptionError  # noqa: E402
from echonote.main import create_app  # noqa: E402
from echonote.repositories.audio_job_repository import AudioJobRepository  # noqa: E402
from echonote.repositories.note_repository import NoteRepository  # noqa: E402
from echonote.services.audio_service import AudioService  # noqa: E402
from echonote.services.note_service import NoteService  # noqa: E402
from echonote.services.providers import SummaryProvider, TranscriptionProvider  # noqa: E402
from echonote.services.storage_service import AudioStorage  # noqa: E402


# ══════════════════════════════════════════════════════════════════════════
# Fake AI Providers
# ══════════════════════════════════════════════════════════════════════════

class FakeTranscriber(TranscriptionProvider):
    """Returns a canned transcript, or raises `error` when set."""

    def __init__(self, transcript: str = "we agreed to ship the budget plan on friday"):
        self.transcript = transcript
        self.error: Optional[Exception] = None
        self.calls: List[str] = []

    async def transcribe(self, audio_path: str) -> str:
        self.calls.append(audio_path)
        if self.error is not None:
            raise self.error
        return self.transcript


class FakeSummarizer(SummaryProvider):
    def __init__(self, summary: str = "• Budget plan ships on Friday"):
        self.summary = summary
        self.error: Optional[Exception] = None
        self.calls: List[str] = []

    async def summarize(self, text: str) -> str:
        self.calls.append(text)
        if self.error is not None:
            raise self.error
        return self.summary


# ══════════════════════════════════════════════════════════════════════════
# Configuration & Database
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        gemini_api_key="test-key-not-real",
        storage_root=str(tmp_path / "audio"),
        rate_limit_enabled=False,
        log_level="WARNING",
    )


@pytest_asyncio.fixture
async def engine(settings):
    engine = create_engine_from_settings(settings)
    await init_models(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
def note_repository(session_factory) -> NoteRepository:
    return NoteRepository(session_factory)


@pytest.fixture
def job_repository(session_factory) -> AudioJobRepository:
    return AudioJobRepository(session_factory)


@pytest.fixture
def storage(settings) -> AudioStorage:
    return AudioStorage(settings.storage_root, settings.max_audio_size)


@pytest.fixture
def note_service(note_repository) -> NoteService:
    return NoteService(note_repository)


@pytest.fixture
def audio_service(job_repository, note_service, storage) -> AudioService:
    return AudioService(job_repository, note_service, storage)


# ══════════════════════════════════════════════════════════════════════════
# Providers, Container & HTTP Client
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def fake_transcriber() -> FakeTranscriber:
    return FakeTranscriber()


@pytest.fixture
def fake_summarizer() -> FakeSummarizer:
    return FakeSummarizer()


@pytest.fixture
def container(settings, session_factory, fake_transcriber, fake_summarizer):
    return build_container(
        settings,
        session_factory,
        transcriber=fake_transcriber,
        summarizer=fake_summarizer,
    )


@pytest.fixture
def app(settings, container):
    return create_app(settings=settings, container=container)


@pytest_asyncio.fixture
async def test_client(app):
    """
    HTTPX AsyncClient talking to the app in-process.

    ASGITransport does not run the lifespan; the container fixture stands
    in for what startup would build.
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def sample_audio_bytes() -> bytes:
    """A few bytes with a WAV header; only the extension is checked."""
    return b"RIFF\x24\x00\x00\x00WAVEfmt " + b"\x00" * 32


@pytest.fixture
def mock_gemini_client():
    """Stand-in for GeminiClient with an awaitable `generate`."""
    client = MagicMock()
    client.generate = AsyncMock(return_value="")
    client.is_configured = True
    return client


@pytest.fixture
def transcription_error() -> TranscriptionError:
    return TranscriptionError(message="Transcription failed: Transcription returned empty result")


@pytest.fixture
def summary_error() -> SummaryError:
    return SummaryError(message="Summary generation failed: quota exceeded")
