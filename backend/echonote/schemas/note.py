"""
EchoNote Backend: Note Schemas
===============================

What:  Pydantic models for the note API contract and the note domain record.
How:   `NoteResponse` doubles as the record returned by NoteRepository
       (built from ORM rows via from_attributes). `NoteCreate` and
       `NoteUpdate` are both request bodies and service inputs.

Partial Update Semantics:
    `NoteUpdate` distinguishes "field omitted" from "field set to null" through
    Pydantic's `model_fields_set`. Omitted fields are left unchanged; an
    explicit null clears the column.
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class NoteType(str, Enum):
    """Kinds of note. Fixed at creation."""

    TEXT = "text"
    VOICE = "voice"


class NoteResponse(BaseModel):
    """
    What:  Full representation of a note.
    Who:   Returned by every /notes endpoint and by NoteRepository.
    """
    id: uuid.UUID = Field(description="Unique note identifier (UUID)")
    type: NoteType = Field(description="Note kind: text or voice")
    title: Optional[str] = Field(default=None, description="Optional title")
    content: Optional[str] = Field(
        default=None,
        description="Note body; for voice notes, the transcript once processed",
    )
    summary: Optional[str] = Field(
        default=None,
        description="Bullet-point summary; filled in by audio processing for voice notes",
    )
    created_at: datetime = Field(description="When the note was created (UTC ISO 8601)")

    model_config = {"from_attributes": True}


class NoteCreate(BaseModel):
    """
    Body of POST /notes.

    `type` is a plain string here so that an unknown value reaches the
    service and is rejected with a 400 ValidationError.
    """
    type: Optional[str] = Field(default=None, description="'text' or 'voice'")
    title: Optional[str] = Field(default=None)
    content: Optional[str] = Field(default=None)


class NoteUpdate(BaseModel):
    """Body of PATCH /notes/{id}. Only explicitly provided fields change."""
    title: Optional[str] = Field(default=None)
    content: Optional[str] = Field(default=None)
    summary: Optional[str] = Field(default=None)

    def changes(self) -> Dict[str, Any]:
        """Fields explicitly present in the payload (explicit nulls included)."""
        return self.model_dump(exclude_unset=True)


class DeleteResponse(BaseModel):
    """Body returned by DELETE /notes/{id}."""
    success: bool = Field(default=True)
