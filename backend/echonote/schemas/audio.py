"""
EchoNote Backend: Audio Job Schemas
====================================

What:  Pydantic models for audio jobs and the processing endpoint.
"""

import uuid
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class AudioJobStatus(str, Enum):
    """
    Job lifecycle states.

    pending ──(claim)──▶ processing ──(success)──▶ done
                             │
                             └──(any error)──▶ failed
    """

    PENDING = "pending"
    PROCESSING = "processing"
    DONE = "done"
    FAILED = "failed"


class AudioJobResponse(BaseModel):
    """
    What:  Representation of one audio job.
    Who:   Returned by POST /notes/{id}/audio and AudioJobRepository.
    """
    id: uuid.UUID = Field(description="Unique job identifier")
    note_id: uuid.UUID = Field(description="Note the audio belongs to")
    status: AudioJobStatus = Field(description="pending, processing, done, failed")
    audio_path: str = Field(description="Blob key of the uploaded audio")
    created_at: datetime = Field(description="Upload time (UTC)")
    updated_at: datetime = Field(description="Last status or path change (UTC)")

    model_config = {"from_attributes": True}


class ProcessResponse(BaseModel):
    """Body returned by POST /notes/{id}/process."""
    message: str = Field(default="Audio processing completed")
    audio_job: AudioJobResponse = Field(description="The job after processing")
