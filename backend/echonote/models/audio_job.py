"""
EchoNote Backend: AudioJob SQLAlchemy Model
============================================

What:  ORM model representing the `audio_jobs` table.
Who:   Used by AudioJobRepository and by Alembic.

Table Design:
    - note_id: plain indexed UUID column, no foreign key. Deleting a note
      leaves its jobs behind; processing such a job fails with NotFoundError
      and marks the job `failed`.
    - status: pending → processing → done | failed (CHECK constraint on values;
      ordering enforced by the repository's conditional updates)
    - audio_path: blob key inside the audio storage root
    - updated_at: refreshed on every status or path change
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, DateTime, Index, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from echonote.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AudioJob(Base):
    """One uploaded audio blob and its transcription/summary lifecycle."""

    __tablename__ = "audio_jobs"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    note_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        nullable=False,
        comment="Owning note (not a foreign key; jobs outlive deleted notes)",
    )

    status: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        default="pending",
        comment="pending, processing, done, failed",
    )

    audio_path: Mapped[str] = mapped_column(
        String(512),
        nullable=False,
        comment="Blob key: {note_id}/{timestamp}.{ext}",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
    )

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'processing', 'done', 'failed')",
            name="ck_audio_jobs_status",
        ),
        # Latest job for a note: WHERE note_id = :id ORDER BY created_at DESC LIMIT 1
        Index("idx_audio_jobs_note_created", note_id, created_at.desc()),
    )

    def __repr__(self) -> str:
        return f"<AudioJob(id={self.id}, note_id={self.note_id}, status='{self.status}')>"
