"""
EchoNote Backend: Note Repository
==================================

What:  Data access for the `notes` table.
How:   Each method opens its own `session_scope()` and maps ORM rows to
       `NoteResponse` records, so no session or ORM object leaks upward.
Who:   Called by NoteService (and indirectly by the chat engine and the
       audio pipeline).

Absence Contract:
    find_by_id() and update() return None for a missing row. delete() of a
    missing row succeeds. Only driver/SQL failures raise DatabaseError.
"""

import logging
import uuid
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, desc, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from echonote.database import session_scope
from echonote.exceptions import DatabaseError
from echonote.models.note import Note
from echonote.schemas.note import NoteResponse

logger = logging.getLogger(__name__)

# Columns a partial update may touch; id, type and created_at are immutable.
UPDATABLE_FIELDS = ("title", "content", "summary")


class NoteRepository:
    """CRUD on notes over an async session factory."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def create(
        self,
        note_type: str,
        title: Optional[str] = None,
        content: Optional[str] = None,
        summary: Optional[str] = None,
    ) -> NoteResponse:
        """
        Insert a note and return the stored record.

        `id` and `created_at` are generated here, never taken from the caller.
        """
        try:
            async with session_scope(self._session_factory) as session:
                note = Note(type=note_type, title=title, content=content, summary=summary)
                session.add(note)
                await session.flush()
                await session.refresh(note)
                record = NoteResponse.model_validate(note)
        except SQLAlchemyError as e:
            logger.error("Failed to create note: %s", e, exc_info=True)
            raise DatabaseError(
                message="Failed to create note",
                context={"error_type": type(e).__name__},
            ) from e

        logger.info("Note created: %s (type=%s)", record.id, record.type.value)
        return record

    async def find_by_id(self, note_id: uuid.UUID) -> Optional[NoteResponse]:
        try:
            async with session_scope(self._session_factory) as session:
                note = await session.get(Note, note_id)
                return NoteResponse.model_validate(note) if note is not None else None
        except SQLAlchemyError as e:
            logger.error("Failed to fetch note %s: %s", note_id, e, exc_info=True)
            raise DatabaseError(
                message="Failed to fetch note",
                context={"note_id": str(note_id)},
            ) from e

    async def find_all(self) -> List[NoteResponse]:
        """
        All notes, newest first.

        Query plan:
            SELECT * FROM notes ORDER BY created_at DESC
            → idx_notes_created_at
        """
        try:
            async with session_scope(self._session_factory) as session:
                result = await session.execute(
                    select(Note).order_by(desc(Note.created_at))
                )
                return [NoteResponse.model_validate(n) for n in result.scalars().all()]
        except SQLAlchemyError as e:
            logger.error("Failed to list notes: %s", e, exc_info=True)
            raise DatabaseError(
                message="Failed to fetch notes",
                context={"error_type": type(e).__name__},
            ) from e

    async def update(
        self,
        note_id: uuid.UUID,
        changes: Dict[str, Any],
    ) -> Optional[NoteResponse]:
        """
        Apply a partial update.

        Only keys present in `changes` are written; a None value clears the
        column. Unknown or immutable keys are ignored. Returns None when the
        note does not exist.
        """
        try:
            async with session_scope(self._session_factory) as session:
                note = await session.get(Note, note_id)
                if note is None:
                    return None
                for field, value in changes.items():
                    if field in UPDATABLE_FIELDS:
                        setattr(note, field, value)
                await session.flush()
                return NoteResponse.model_validate(note)
        except SQLAlchemyError as e:
            logger.error("Failed to update note %s: %s", note_id, e, exc_info=True)
            raise DatabaseError(
                message="Failed to update note",
                context={"note_id": str(note_id)},
            ) from e

    async def delete(self, note_id: uuid.UUID) -> bool:
        """Delete a note. Deleting a missing note is not an error."""
        try:
            async with session_scope(self._session_factory) as session:
                result = await session.execute(delete(Note).where(Note.id == note_id))
        except SQLAlchemyError as e:
            logger.error("Failed to delete note %s: %s", note_id, e, exc_info=True)
            raise DatabaseError(
                message="Failed to delete note",
                context={"note_id": str(note_id)},
            ) from e

        logger.info("Note deleted: %s (rows=%d)", note_id, result.rowcount)
        return True
