"""
EchoNote Backend: Audio Service
================================

What:  Audio upload and latest-job lookup for a note.
How:   Validates the note ID and the file, verifies the note exists, writes
       the blob, then inserts a `pending` job pointing at it.
Who:   Called by the audio router and the `/process` endpoint.

Upload Flow:
    ┌──────────┐    ┌─────────────┐    ┌──────────────┐    ┌──────────┐
    │ Validate │───▶│ Note exists │───▶│ Store blob   │───▶│ Job row  │
    │ id, file │    │ (NoteServ.) │    │ (AudioStor.) │    │ pending  │
    └──────────┘    └─────────────┘    └──────────────┘    └──────────┘

    The blob is written before the row. If the insert fails the blob is
    left behind; nothing references it.
"""

import logging
from typing import Optional

from echonote.exceptions import ValidationError
from echonote.repositories.audio_job_repository import AudioJobRepository
from echonote.schemas.audio import AudioJobResponse
from echonote.services.note_service import IdLike, NoteService, parse_id
from echonote.services.storage_service import AudioStorage

logger = logging.getLogger(__name__)


class AudioService:
    """Audio upload and job queries."""

    def __init__(
        self,
        repository: AudioJobRepository,
        note_service: NoteService,
        storage: AudioStorage,
    ):
        self.repository = repository
        self.note_service = note_service
        self.storage = storage

    async def upload_audio(
        self,
        note_id: IdLike,
        filename: Optional[str],
        content: Optional[bytes],
        content_length: Optional[int] = None,
    ) -> AudioJobResponse:
        """
        Store an uploaded recording for a note and create its job.

        Raises:
            ValidationError: missing/invalid note ID, missing/empty/oversized
                             file, unsupported format, note does not exist
            StorageError: blob write failed
            DatabaseError: job insert failed
        """
        parsed_id = parse_id(note_id)
        if content is None:
            raise ValidationError(message="Audio file is required", field="audio")

        ext = self.storage.validate_extension(filename)
        self.storage.validate_size(content_length, len(content))

        note = await self.note_service.get_note(parsed_id)
        if note is None:
            raise ValidationError(
                message="Note not found",
                field="id",
                context={"note_id": str(parsed_id)},
            )

        audio_path = await self.storage.store(parsed_id, content, ext)
        job = await self.repository.create(note_id=parsed_id, audio_path=audio_path)
        logger.info("Audio uploaded for note %s: job=%s", parsed_id, job.id)
        return job

    async def get_latest_job_for_note(self, note_id: IdLike) -> Optional[AudioJobResponse]:
        """Most recently created job for the note, or None."""
        return await self.repository.find_latest_by_note_id(parse_id(note_id))
