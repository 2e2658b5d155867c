"""
EchoNote Backend: Audio Route Handlers
=======================================

What:  Upload a recording for a note, then run the processing pipeline.
How:   Multipart upload (field `audio`) → AudioService; `/process` picks the
       note's most recent job and runs AudioPipeline on it synchronously.

Status Codes (POST /notes/{id}/process):
    200  job done (or was already done)
    404  note has no audio job
    409  job is processing or failed
    500  transcription, summary, storage or database failure (job → failed)
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile, status

from echonote.dependencies import get_audio_service, get_pipeline
from echonote.exceptions import NotFoundError, ValidationError
from echonote.schemas.audio import AudioJobResponse, ProcessResponse
from echonote.schemas.common import ErrorResponse
from echonote.services.audio_pipeline import AudioPipeline
from echonote.services.audio_service import AudioService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Audio"])


@router.post(
    "/notes/{note_id}/audio",
    response_model=AudioJobResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"description": "Invalid upload or unknown note", "model": ErrorResponse}},
    summary="Upload a recording for a note",
)
async def upload_audio(
    note_id: str,
    audio: Optional[UploadFile] = File(default=None, description="Audio recording"),
    audio_service: AudioService = Depends(get_audio_service),
) -> AudioJobResponse:
    if audio is None:
        raise ValidationError(message="Audio file is required", field="audio")

    content = await audio.read()
    return await audio_service.upload_audio(
        note_id,
        filename=audio.filename,
        content=content,
        content_length=audio.size,
    )


@router.post(
    "/notes/{note_id}/process",
    response_model=ProcessResponse,
    responses={
        404: {"description": "No audio job for this note", "model": ErrorResponse},
        409: {"description": "Job is not pending", "model": ErrorResponse},
        500: {"description": "Processing failed", "model": ErrorResponse},
    },
    summary="Transcribe and summarize the note's latest recording",
)
async def process_audio(
    note_id: str,
    audio_service: AudioService = Depends(get_audio_service),
    pipeline: AudioPipeline = Depends(get_pipeline),
) -> ProcessResponse:
    job = await audio_service.get_latest_job_for_note(note_id)
    if job is None:
        raise NotFoundError(resource="audio job", context={"note_id": note_id})

    processed = await pipeline.process(job.id)
    return ProcessResponse(message="Audio processing completed", audio_job=processed)
