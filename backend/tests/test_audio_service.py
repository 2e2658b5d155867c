"""
EchoNote Backend: Audio Service Tests
======================================

What:  Upload validation order and job creation.

What we test:
    ✅ Upload for an existing note stores the blob and creates a pending job
    ✅ Missing/malformed note ID, missing/empty/unsupported file → ValidationError
    ✅ Upload for an unknown note → ValidationError("Note not found"), nothing stored
    ✅ Latest job lookup
"""

import uuid
from unittest.mock import AsyncMock

import pytest

from echonote.exceptions import DatabaseError, ValidationError
from echonote.schemas.audio import AudioJobStatus
from echonote.schemas.note import NoteCreate


class TestUploadAudio:

    @pytest.mark.asyncio
    async def test_upload_creates_pending_job(self, audio_service, note_service, storage, sample_audio_bytes):
        note = await note_service.create_note(NoteCreate(type="voice"))

        job = await audio_service.upload_audio(str(note.id), "memo.wav", sample_audio_bytes)

        assert job.status == AudioJobStatus.PENDING
        assert job.note_id == note.id
        assert job.audio_path.startswith(f"{note.id}/")
        assert (storage.storage_root / job.audio_path).read_bytes() == sample_audio_bytes

    @pytest.mark.asyncio
    async def test_missing_note_id(self, audio_service, sample_audio_bytes):
        with pytest.raises(ValidationError, match="Note ID is required"):
            await audio_service.upload_audio("", "memo.wav", sample_audio_bytes)

    @pytest.mark.asyncio
    async def test_missing_file(self, audio_service):
        with pytest.raises(ValidationError, match="Audio file is required"):
            await audio_service.upload_audio(uuid.uuid4(), "memo.wav", None)

    @pytest.mark.asyncio
    async def test_empty_file(self, audio_service):
        with pytest.raises(ValidationError, match="empty"):
            await audio_service.upload_audio(uuid.uuid4(), "memo.wav", b"")

    @pytest.mark.asyncio
    async def test_unsupported_format(self, audio_service, sample_audio_bytes):
        with pytest.raises(ValidationError, match="not supported"):
            await audio_service.upload_audio(uuid.uuid4(), "memo.pdf", sample_audio_bytes)

    @pytest.mark.asyncio
    async def test_unknown_note_rejected_before_storing(self, audio_service, storage, sample_audio_bytes):
        with pytest.raises(ValidationError, match="Note not found"):
            await audio_service.upload_audio(uuid.uuid4(), "memo.wav", sample_audio_bytes)

        assert list(storage.storage_root.iterdir()) == []

    @pytest.mark.asyncio
    async def test_row_failure_leaves_blob(self, audio_service, note_service, storage, sample_audio_bytes):
        """No compensating delete: the blob stays when the job insert fails."""
        note = await note_service.create_note(NoteCreate(type="voice"))
        audio_service.repository.create = AsyncMock(side_effect=DatabaseError("Failed to create audio job"))

        with pytest.raises(DatabaseError):
            await audio_service.upload_audio(note.id, "memo.wav", sample_audio_bytes)

        assert len(list((storage.storage_root / str(note.id)).iterdir())) == 1


class TestJobLookup:

    @pytest.mark.asyncio
    async def test_latest_job_for_note(self, audio_service, note_service, sample_audio_bytes):
        note = await note_service.create_note(NoteCreate(type="voice"))
        job = await audio_service.upload_audio(note.id, "memo.wav", sample_audio_bytes)

        latest = await audio_service.get_latest_job_for_note(str(note.id))

        assert latest.id == job.id

    @pytest.mark.asyncio
    async def test_note_without_jobs(self, audio_service):
        assert await audio_service.get_latest_job_for_note(uuid.uuid4()) is None
