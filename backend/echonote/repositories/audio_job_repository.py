"""
EchoNote Backend: Audio Job Repository
=======================================

What:  Data access for the `audio_jobs` table.
How:   Same session-per-call pattern as NoteRepository. Status changes go
       through `transition_status()`, a conditional UPDATE that only
       succeeds when the row is still in the expected state.

Status Transitions:
    UPDATE audio_jobs
       SET status = :new, updated_at = now()
     WHERE id = :id AND status = :expected

    rowcount 1 → transition applied, the refreshed job is returned
    rowcount 0 → job missing or in another state, None is returned

    Two concurrent `pending → processing` claims therefore cannot both win.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import desc, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from echonote.database import session_scope
from echonote.exceptions import DatabaseError
from echonote.models.audio_job import AudioJob
from echonote.schemas.audio import AudioJobResponse, AudioJobStatus

logger = logging.getLogger(__name__)


class AudioJobRepository:
    """CRUD and conditional status transitions on audio jobs."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def create(self, note_id: uuid.UUID, audio_path: str) -> AudioJobResponse:
        """Insert a job in `pending` state for an already stored blob."""
        try:
            async with session_scope(self._session_factory) as session:
                job = AudioJob(
                    note_id=note_id,
                    audio_path=audio_path,
                    status=AudioJobStatus.PENDING.value,
                )
                session.add(job)
                await session.flush()
                await session.refresh(job)
                record = AudioJobResponse.model_validate(job)
        except SQLAlchemyError as e:
            logger.error("Failed to create audio job for note %s: %s", note_id, e, exc_info=True)
            raise DatabaseError(
                message="Failed to create audio job",
                context={"note_id": str(note_id)},
            ) from e

        logger.info("Audio job created: %s (note=%s, path=%s)", record.id, note_id, audio_path)
        return record

    async def find_by_id(self, job_id: uuid.UUID) -> Optional[AudioJobResponse]:
        try:
            async with session_scope(self._session_factory) as session:
                job = await session.get(AudioJob, job_id)
                return AudioJobResponse.model_validate(job) if job is not None else None
        except SQLAlchemyError as e:
            logger.error("Failed to fetch audio job %s: %s", job_id, e, exc_info=True)
            raise DatabaseError(
                message="Failed to fetch audio job",
                context={"job_id": str(job_id)},
            ) from e

    async def find_latest_by_note_id(self, note_id: uuid.UUID) -> Optional[AudioJobResponse]:
        """
        Most recently created job for a note.

        Query plan:
            SELECT * FROM audio_jobs WHERE note_id = :id
            ORDER BY created_at DESC LIMIT 1
            → idx_audio_jobs_note_created
        """
        try:
            async with session_scope(self._session_factory) as session:
                result = await session.execute(
                    select(AudioJob)
                    .where(AudioJob.note_id == note_id)
                    .order_by(desc(AudioJob.created_at))
                    .limit(1)
                )
                job = result.scalar_one_or_none()
                return AudioJobResponse.model_validate(job) if job is not None else None
        except SQLAlchemyError as e:
            logger.error("Failed to fetch latest job for note %s: %s", note_id, e, exc_info=True)
            raise DatabaseError(
                message="Failed to fetch audio job",
                context={"note_id": str(note_id)},
            ) from e

    async def transition_status(
        self,
        job_id: uuid.UUID,
        expected: AudioJobStatus,
        new: AudioJobStatus,
    ) -> Optional[AudioJobResponse]:
        """
        Move a job from `expected` to `new` atomically.

        Returns the updated job, or None if the job does not exist or is no
        longer in `expected` state.
        """
        try:
            async with session_scope(self._session_factory) as session:
                result = await session.execute(
                    update(AudioJob)
                    .where(AudioJob.id == job_id, AudioJob.status == expected.value)
                    .values(status=new.value, updated_at=datetime.now(timezone.utc))
                    .execution_options(synchronize_session=False)
                )
                if result.rowcount != 1:
                    return None
                job = await session.get(AudioJob, job_id, populate_existing=True)
                record = AudioJobResponse.model_validate(job)
        except SQLAlchemyError as e:
            logger.error(
                "Failed to move audio job %s from %s to %s: %s",
                job_id, expected.value, new.value, e, exc_info=True,
            )
            raise DatabaseError(
                message="Failed to update audio job",
                context={"job_id": str(job_id), "status": new.value},
            ) from e

        logger.info("Audio job %s: %s → %s", job_id, expected.value, new.value)
        return record
