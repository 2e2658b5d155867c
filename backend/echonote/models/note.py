"""
EchoNote Backend: Note SQLAlchemy Model
========================================

What:  ORM model representing the `notes` table.
Who:   Used by NoteRepository for CRUD and by Alembic for schema management.

Table Design:
    - UUID primary key generated in Python (portable across PostgreSQL and SQLite)
    - type: 'text' | 'voice', immutable after creation (CHECK constraint)
    - title / content / summary: nullable; content and summary of voice notes
      are filled in by the audio processing pipeline
    - created_at: UTC, timezone-aware; index DESC for "newest first" listing
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import CheckConstraint, DateTime, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from echonote.database import Base


class Note(Base):
    """
    A text or voice note.

    Lifecycle:
        1. Created with a type and optional title/content
        2. Updated any number of times (partial merge of title/content/summary)
        3. Deleted on demand; audio jobs referencing it are left in place
    """

    __tablename__ = "notes"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    type: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        comment="Note kind: text or voice",
    )

    title: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Voice notes: transcript written by the audio pipeline
    content: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Voice notes: bullet summary written by the audio pipeline
    summary: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        comment="When this note was created (UTC)",
    )

    __table_args__ = (
        CheckConstraint("type IN ('text', 'voice')", name="ck_notes_type"),
        Index("idx_notes_created_at", created_at.desc()),
    )

    def __repr__(self) -> str:
        return f"<Note(id={self.id}, type='{self.type}', created_at='{self.created_at}')>"
