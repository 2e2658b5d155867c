"""
EchoNote Backend: Service Wiring
=================================

What:  Builds every service once from Settings and a session factory, and
       exposes them to route handlers through FastAPI dependencies.
How:   `build_container()` returns a `ServiceContainer`; the application
       stores it on `app.state.container`. Route handlers declare
       `Depends(get_note_service)` etc. and receive the shared instance.

Object Graph:
    Settings ─┬─▶ AudioStorage ───────────────┬─▶ AudioService
              └─▶ GeminiClient ─┬─▶ Transcription provider ─┐
                                └─▶ Summary provider ───────┤
    session_factory ─┬─▶ NoteRepository ─▶ NoteService ─────┼─▶ AudioPipeline
                     └─▶ AudioJobRepository ────────────────┘     ChatService

Tests pass fake providers and a SQLite session factory to the same builder.
"""

from dataclasses import dataclass
from typing import List, Optional

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from echonote.config import Settings
from echonote.repositories.audio_job_repository import AudioJobRepository
from echonote.repositories.note_repository import NoteRepository
from echonote.services.audio_pipeline import AudioPipeline, CompletionListener
from echonote.services.audio_service import AudioService
from echonote.services.chat_service import ChatService
from echonote.services.gemini_client import GeminiClient
from echonote.services.note_service import NoteService
from echonote.services.providers import SummaryProvider, TranscriptionProvider
from echonote.services.storage_service import AudioStorage
from echonote.services.summary_service import GeminiSummaryProvider
from echonote.services.transcription_service import GeminiTranscriptionProvider


@dataclass
class ServiceContainer:
    settings: Settings
    session_factory: async_sessionmaker[AsyncSession]
    note_service: NoteService
    audio_service: AudioService
    pipeline: AudioPipeline
    chat_service: ChatService
    storage: AudioStorage
    gemini_client: Optional[GeminiClient] = None


def build_container(
    settings: Settings,
    session_factory: async_sessionmaker[AsyncSession],
    gemini_client: Optional[GeminiClient] = None,
    transcriber: Optional[TranscriptionProvider] = None,
    summarizer: Optional[SummaryProvider] = None,
    listeners: Optional[List[CompletionListener]] = None,
) -> ServiceContainer:
    """
    Assemble all services.

    The Gemini client is only created when at least one provider is not
    supplied by the caller.
    """
    storage = AudioStorage(settings.storage_root, settings.max_audio_size)

    if transcriber is None or summarizer is None:
        gemini_client = gemini_client or GeminiClient(settings)
    if transcriber is None:
        transcriber = GeminiTranscriptionProvider(gemini_client, storage)
    if summarizer is None:
        summarizer = GeminiSummaryProvider(gemini_client)

    note_service = NoteService(NoteRepository(session_factory))
    job_repository = AudioJobRepository(session_factory)
    return ServiceContainer(
        settings=settings,
        session_factory=session_factory,
        note_service=note_service,
        audio_service=AudioService(job_repository, note_service, storage),
        pipeline=AudioPipeline(
            job_repository,
            note_service,
            transcriber,
            summarizer,
            listeners=listeners,
        ),
        chat_service=ChatService(note_service),
        storage=storage,
        gemini_client=gemini_client,
    )


# ── FastAPI Dependencies ──────────────────────────────────────────────────

def get_container(request: Request) -> ServiceContainer:
    return request.app.state.container


def get_note_service(request: Request) -> NoteService:
    return get_container(request).note_service


def get_audio_service(request: Request) -> AudioService:
    return get_container(request).audio_service


def get_pipeline(request: Request) -> AudioPipeline:
    return get_container(request).pipeline


def get_chat_service(request: Request) -> ChatService:
    return get_container(request).chat_service
