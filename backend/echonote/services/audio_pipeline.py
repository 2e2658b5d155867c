"""
EchoNote Backend: Audio Processing Pipeline
============================================

What:  Runs one audio job end to end: transcribe, summarize, write both onto
       the owning note, and track the job status throughout.
How:   Synchronous within the calling request. The job is claimed with a
       conditional `pending → processing` update so a job is processed at
       most once, even under concurrent `/process` calls.
Who:   Called by POST /notes/{id}/process.

Orchestration Flow:
    ┌───────────┐   ┌───────────┐   ┌────────────┐   ┌───────────┐   ┌──────────┐
    │ Claim job │──▶│ Load note │──▶│ Transcribe │──▶│ Summarize │──▶│ Update   │
    └─────┬─────┘   └───────────┘   └────────────┘   └───────────┘   │ note     │
          │                                                          └────┬─────┘
          │ already done: return it unchanged                             ▼
          │ processing / failed: JobStateError (409)                 job → done

    Any error after the claim marks the job `failed` and is re-raised as-is.
    Nothing is retried; a failed job needs a new upload.
"""

import logging
import time
import uuid
from typing import Awaitable, Callable, List, Optional

from echonote.exceptions import EchoNoteError, JobStateError, NotFoundError
from echonote.repositories.audio_job_repository import AudioJobRepository
from echonote.schemas.audio import AudioJobResponse, AudioJobStatus
from echonote.services.note_service import IdLike, NoteService, parse_id
from echonote.services.providers import SummaryProvider, TranscriptionProvider

logger = logging.getLogger(__name__)

# Called with the final job after it reaches `done` or `failed`
CompletionListener = Callable[[AudioJobResponse], Awaitable[None]]


class AudioPipeline:
    """
    Job state machine over the note service and the two AI providers.

    Completion listeners are notified after the terminal transition; a
    listener that raises is logged and does not affect the outcome.
    """

    def __init__(
        self,
        job_repository: AudioJobRepository,
        note_service: NoteService,
        transcriber: TranscriptionProvider,
        summarizer: SummaryProvider,
        listeners: Optional[List[CompletionListener]] = None,
    ):
        self.job_repository = job_repository
        self.note_service = note_service
        self.transcriber = transcriber
        self.summarizer = summarizer
        self.listeners: List[CompletionListener] = list(listeners or [])

    def add_listener(self, listener: CompletionListener) -> None:
        self.listeners.append(listener)

    async def process(self, job_id: IdLike) -> AudioJobResponse:
        """
        Process one audio job.

        Returns:
            The job in `done` state (or unchanged if it was already done)

        Raises:
            NotFoundError: job missing, or its note missing (job → failed)
            JobStateError: job is `processing` or `failed`
            TranscriptionError / SummaryError: provider failure (job → failed)
            DatabaseError / StorageError: infrastructure failure
        """
        parsed_id = parse_id(job_id, label="Audio job ID")

        job = await self.job_repository.find_by_id(parsed_id)
        if job is None:
            raise NotFoundError(resource="audio job", resource_id=str(parsed_id))

        claimed = await self.job_repository.transition_status(
            parsed_id, AudioJobStatus.PENDING, AudioJobStatus.PROCESSING
        )
        if claimed is None:
            return await self._handle_unclaimable(parsed_id)

        start_time = time.time()
        logger.info("Processing audio job %s for note %s", parsed_id, claimed.note_id)

        try:
            await self._run_steps(claimed)
            done = await self._complete(parsed_id)
        except Exception as e:
            logger.error(
                "Audio job %s failed after %.0fms: %s",
                parsed_id,
                (time.time() - start_time) * 1000,
                e,
            )
            failed = await self._mark_failed(parsed_id)
            if failed is not None:
                await self._notify(failed)
            raise

        logger.info(
            "Audio job %s done in %.0fms",
            parsed_id,
            (time.time() - start_time) * 1000,
        )
        await self._notify(done)
        return done

    async def _run_steps(self, job: AudioJobResponse) -> None:
        note = await self.note_service.get_note(job.note_id)
        if note is None:
            raise NotFoundError(resource="note", resource_id=str(job.note_id))

        transcript = await self.transcriber.transcribe(job.audio_path)
        summary = await self.summarizer.summarize(transcript)

        updated = await self.note_service.update_note(
            job.note_id,
            {"content": transcript, "summary": summary},
        )
        # Note deleted between load and update
        if updated is None:
            raise NotFoundError(resource="note", resource_id=str(job.note_id))

    async def _complete(self, job_id: uuid.UUID) -> AudioJobResponse:
        done = await self.job_repository.transition_status(
            job_id, AudioJobStatus.PROCESSING, AudioJobStatus.DONE
        )
        if done is None:
            current = await self.job_repository.find_by_id(job_id)
            raise JobStateError(
                job_id=str(job_id),
                status=current.status.value if current else "missing",
            )
        return done

    async def _handle_unclaimable(self, job_id: uuid.UUID) -> AudioJobResponse:
        current = await self.job_repository.find_by_id(job_id)
        if current is None:
            raise NotFoundError(resource="audio job", resource_id=str(job_id))
        if current.status == AudioJobStatus.DONE:
            logger.info("Audio job %s already done, nothing to process", job_id)
            return current
        logger.warning("Audio job %s cannot be claimed (status=%s)", job_id, current.status.value)
        raise JobStateError(job_id=str(job_id), status=current.status.value)

    async def _mark_failed(self, job_id: uuid.UUID) -> Optional[AudioJobResponse]:
        """
        Best-effort `processing → failed`.

        A database error here is logged; the caller re-raises the original
        pipeline error.
        """
        try:
            return await self.job_repository.transition_status(
                job_id, AudioJobStatus.PROCESSING, AudioJobStatus.FAILED
            )
        except EchoNoteError as e:
            logger.error("Could not mark audio job %s as failed: %s", job_id, e.message)
            return None

    async def _notify(self, job: AudioJobResponse) -> None:
        for listener in self.listeners:
            try:
                await listener(job)
            except Exception:
                logger.exception("Completion listener failed for audio job %s", job.id)
