"""
EchoNote Backend: Note Service
===============================

What:  Validation and orchestration for note CRUD.
How:   Checks input (note type, IDs), normalizes empty strings, and delegates
       persistence to NoteRepository.
Who:   Called by the notes router, AudioService, ChatService and the audio
       pipeline.

Validation Rules:
    - type must be 'text' or 'voice' (no row is written otherwise)
    - empty title/content strings are stored as NULL
    - every ID must be present and parse as a UUID
    - update with an empty payload is a read
"""

import logging
import uuid
from typing import Any, Dict, List, Optional, Union

from echonote.exceptions import ValidationError
from echonote.repositories.note_repository import NoteRepository
from echonote.schemas.note import NoteCreate, NoteResponse, NoteType, NoteUpdate

logger = logging.getLogger(__name__)

IdLike = Union[str, uuid.UUID, None]


def parse_id(value: IdLike, label: str = "Note ID") -> uuid.UUID:
    """
    Normalize an ID argument to a UUID.

    Raises:
        ValidationError: "<label> is required" for None/blank,
                         "Invalid <label>" for anything that is not a UUID
    """
    if isinstance(value, uuid.UUID):
        return value
    if value is None or not str(value).strip():
        raise ValidationError(message=f"{label} is required", field="id")
    try:
        return uuid.UUID(str(value).strip())
    except ValueError as e:
        raise ValidationError(
            message=f"Invalid {label}: {value}",
            field="id",
            context={"value": str(value)},
        ) from e


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    return value if value else None


class NoteService:
    """Note business rules over a NoteRepository."""

    def __init__(self, repository: NoteRepository):
        self.repository = repository

    async def create_note(self, data: NoteCreate) -> NoteResponse:
        """
        Create a text or voice note.

        Raises:
            ValidationError: type missing or not 'text'/'voice'
            DatabaseError: insert failed
        """
        valid_types = {t.value for t in NoteType}
        if data.type not in valid_types:
            logger.warning("Rejected note with invalid type: %r", data.type)
            raise ValidationError(
                message='Invalid note type. Must be "text" or "voice"',
                field="type",
                context={"type": data.type},
            )

        return await self.repository.create(
            note_type=data.type,
            title=_blank_to_none(data.title),
            content=_blank_to_none(data.content),
        )

    async def get_note(self, note_id: IdLike) -> Optional[NoteResponse]:
        """Fetch one note; None if it does not exist."""
        return await self.repository.find_by_id(parse_id(note_id))

    async def get_all_notes(self) -> List[NoteResponse]:
        """All notes, newest first."""
        return await self.repository.find_all()

    async def update_note(
        self,
        note_id: IdLike,
        data: Union[NoteUpdate, Dict[str, Any]],
    ) -> Optional[NoteResponse]:
        """
        Partially update a note.

        Only explicitly provided fields change; an explicit None clears the
        field. Returns None when the note does not exist.
        """
        parsed_id = parse_id(note_id)
        changes: Dict[str, Any] = data.changes() if isinstance(data, NoteUpdate) else dict(data)

        if not changes:
            return await self.repository.find_by_id(parsed_id)

        return await self.repository.update(parsed_id, changes)

    async def delete_note(self, note_id: IdLike) -> bool:
        """
        Delete a note. Idempotent.

        Audio jobs and blobs of the note are left in place.
        """
        return await self.repository.delete(parse_id(note_id))
