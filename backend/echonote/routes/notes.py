"""
EchoNote Backend: Notes Route Handlers
=======================================

What:  CRUD endpoints for notes.
How:   Delegates to NoteService; a None result becomes NotFoundError (404).
       IDs are taken as strings so malformed values are reported by the
       service as 400 instead of a path-parameter validation error.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, status

from echonote.dependencies import get_note_service
from echonote.exceptions import NotFoundError
from echonote.schemas.common import ErrorResponse
from echonote.schemas.note import DeleteResponse, NoteCreate, NoteResponse, NoteUpdate
from echonote.services.note_service import NoteService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Notes"])


@router.post(
    "/notes",
    response_model=NoteResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"description": "Invalid note type", "model": ErrorResponse}},
    summary="Create a text or voice note",
)
async def create_note(
    body: NoteCreate,
    notes: NoteService = Depends(get_note_service),
) -> NoteResponse:
    return await notes.create_note(body)


@router.get(
    "/notes",
    response_model=List[NoteResponse],
    summary="List all notes, newest first",
)
async def list_notes(notes: NoteService = Depends(get_note_service)) -> List[NoteResponse]:
    return await notes.get_all_notes()


@router.get(
    "/notes/{note_id}",
    response_model=NoteResponse,
    responses={
        400: {"description": "Malformed note ID", "model": ErrorResponse},
        404: {"description": "Note not found", "model": ErrorResponse},
    },
    summary="Get a single note",
)
async def get_note(
    note_id: str,
    notes: NoteService = Depends(get_note_service),
) -> NoteResponse:
    note = await notes.get_note(note_id)
    if note is None:
        raise NotFoundError(resource="note", resource_id=note_id)
    return note


@router.patch(
    "/notes/{note_id}",
    response_model=NoteResponse,
    responses={
        400: {"description": "Malformed note ID or body", "model": ErrorResponse},
        404: {"description": "Note not found", "model": ErrorResponse},
    },
    summary="Partially update a note",
    description=(
        "Only fields present in the body change. An explicit null clears the "
        "field. An empty body returns the note unchanged."
    ),
)
async def update_note(
    note_id: str,
    body: NoteUpdate,
    notes: NoteService = Depends(get_note_service),
) -> NoteResponse:
    note = await notes.update_note(note_id, body)
    if note is None:
        raise NotFoundError(resource="note", resource_id=note_id)
    return note


@router.delete(
    "/notes/{note_id}",
    response_model=DeleteResponse,
    summary="Delete a note",
    description="Idempotent. Audio jobs and recordings of the note are kept.",
)
async def delete_note(
    note_id: str,
    notes: NoteService = Depends(get_note_service),
) -> DeleteResponse:
    await notes.delete_note(note_id)
    return DeleteResponse(success=True)
