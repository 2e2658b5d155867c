"""
EchoNote Backend: Repository Tests
===================================

What:  NoteRepository and AudioJobRepository against SQLite.

What we test:
    ✅ Absence is None, never an exception
    ✅ Immutable note columns are ignored by update()
    ✅ Latest job per note
    ✅ Conditional status transitions (wrong state → None, updated_at refreshed)
    ✅ SQL failures surface as DatabaseError
"""

import asyncio
import uuid
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from echonote.exceptions import DatabaseError
from echonote.repositories.audio_job_repository import AudioJobRepository
from echonote.repositories.note_repository import NoteRepository
from echonote.schemas.audio import AudioJobStatus


class TestNoteRepository:

    @pytest.mark.asyncio
    async def test_update_ignores_immutable_fields(self, note_repository):
        note = await note_repository.create("text", title="a")

        updated = await note_repository.update(
            note.id, {"type": "voice", "id": uuid.uuid4(), "summary": "• s"}
        )

        assert updated.id == note.id
        assert updated.type.value == "text"
        assert updated.summary == "• s"

    @pytest.mark.asyncio
    async def test_find_all_empty(self, note_repository):
        assert await note_repository.find_all() == []

    @pytest.mark.asyncio
    async def test_delete_missing_succeeds(self, note_repository):
        assert await note_repository.delete(uuid.uuid4()) is True

    @pytest.mark.asyncio
    async def test_sql_failure_raises_database_error(self):
        factory = MagicMock(side_effect=OperationalError("SELECT", {}, Exception("db down")))
        repository = NoteRepository(factory)

        with pytest.raises(DatabaseError):
            await repository.find_all()


class TestAudioJobRepository:

    @pytest.mark.asyncio
    async def test_create_starts_pending(self, job_repository):
        note_id = uuid.uuid4()

        job = await job_repository.create(note_id, f"{note_id}/1.webm")

        assert job.status == AudioJobStatus.PENDING
        assert job.note_id == note_id
        assert await job_repository.find_by_id(job.id) == job

    @pytest.mark.asyncio
    async def test_find_missing_returns_none(self, job_repository):
        assert await job_repository.find_by_id(uuid.uuid4()) is None
        assert await job_repository.find_latest_by_note_id(uuid.uuid4()) is None

    @pytest.mark.asyncio
    async def test_latest_job_for_note(self, job_repository):
        note_id = uuid.uuid4()
        await job_repository.create(note_id, f"{note_id}/1.webm")
        await asyncio.sleep(0.01)
        newest = await job_repository.create(note_id, f"{note_id}/2.webm")
        await job_repository.create(uuid.uuid4(), "other/3.webm")

        latest = await job_repository.find_latest_by_note_id(note_id)

        assert latest.id == newest.id

    @pytest.mark.asyncio
    async def test_transition_applies_from_expected_state(self, job_repository):
        job = await job_repository.create(uuid.uuid4(), "n/1.webm")
        await asyncio.sleep(0.01)

        moved = await job_repository.transition_status(
            job.id, AudioJobStatus.PENDING, AudioJobStatus.PROCESSING
        )

        assert moved.status == AudioJobStatus.PROCESSING
        assert moved.updated_at > job.updated_at

    @pytest.mark.asyncio
    async def test_transition_from_wrong_state_is_noop(self, job_repository):
        job = await job_repository.create(uuid.uuid4(), "n/1.webm")

        result = await job_repository.transition_status(
            job.id, AudioJobStatus.PROCESSING, AudioJobStatus.DONE
        )

        assert result is None
        assert (await job_repository.find_by_id(job.id)).status == AudioJobStatus.PENDING

    @pytest.mark.asyncio
    async def test_transition_missing_job(self, job_repository):
        assert await job_repository.transition_status(
            uuid.uuid4(), AudioJobStatus.PENDING, AudioJobStatus.PROCESSING
        ) is None

    @pytest.mark.asyncio
    async def test_concurrent_claims_succeed_once(self, job_repository):
        job = await job_repository.create(uuid.uuid4(), "n/1.webm")

        results = await asyncio.gather(*[
            job_repository.transition_status(
                job.id, AudioJobStatus.PENDING, AudioJobStatus.PROCESSING
            )
            for _ in range(5)
        ])

        assert sum(r is not None for r in results) == 1

    @pytest.mark.asyncio
    async def test_sql_failure_raises_database_error(self):
        factory = MagicMock(side_effect=OperationalError("INSERT", {}, Exception("db down")))
        repository = AudioJobRepository(factory)

        with pytest.raises(DatabaseError, match="Failed to create audio job"):
            await repository.create(uuid.uuid4(), "n/1.webm")
