"""
EchoNote Backend: Custom Exception Hierarchy
=============================================

What:  Application-specific exceptions for the different failure scenarios.
How:   Each exception carries a human-readable message and an optional
       context dict. Global exception handlers (registered in main.py) map
       them to HTTP status codes and a JSON `{"error": message}` body.
Who:   Raised by services, repositories, providers and the pipeline.

Exception Hierarchy:
    EchoNoteError (base)
    ├── ValidationError          → 400 Bad Request (client can fix)
    ├── NotFoundError            → 404 Not Found
    ├── JobStateError            → 409 Conflict (audio job not pending)
    ├── ProviderError            → 500 (AI provider failed)
    │   ├── TranscriptionError
    │   ├── SummaryError
    │   └── CircuitBreakerOpenError
    ├── StorageError             → 500 (audio blob store I/O)
    └── DatabaseError            → 500 (generic message, details logged)

Repositories never raise NotFoundError: absence is returned as None, and the
service or route layer decides whether absence is an error.
"""

from typing import Any, Dict, Optional


class EchoNoteError(Exception):
    """
    Base exception for all EchoNote application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(EchoNoteError):
    """
    Raised when client input fails validation.

    When:  Invalid note type, missing or malformed ID, missing audio file,
           unsupported audio format, audio upload for a note that does not exist.
    HTTP:  400 Bad Request
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class NotFoundError(EchoNoteError):
    """
    Raised when a requested resource does not exist.

    When:  GET/PATCH on a missing note, processing a missing job, a job whose
           note has been deleted.
    HTTP:  404 Not Found
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource.capitalize()} not found: {resource_id}"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)
        self.resource = resource
        self.resource_id = resource_id


class JobStateError(EchoNoteError):
    """
    Raised when an audio job cannot be claimed for processing.

    When:  The job is already `processing` (another run owns it) or `failed`
           (terminal; the audio must be re-uploaded).
    HTTP:  409 Conflict
    """

    def __init__(
        self,
        job_id: str,
        status: str,
        context: Optional[Dict[str, Any]] = None,
    ):
        if status == "failed":
            message = (
                f"Audio job {job_id} has failed and cannot be processed again. "
                f"Upload the audio again to retry."
            )
        else:
            message = f"Audio job {job_id} is already {status}"
        ctx = context or {}
        ctx.update({"job_id": job_id, "status": status})
        super().__init__(message=message, context=ctx)
        self.job_id = job_id
        self.status = status


class ProviderError(EchoNoteError):
    """
    Raised when the generative AI provider fails.

    When:  Gemini returned an error, timed out, or returned an empty result.
    HTTP:  500 (surfaces as a pipeline failure; the job is marked `failed`)
    """

    def __init__(
        self,
        message: str = "AI service request failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class TranscriptionError(ProviderError):
    """Transcription of an uploaded audio blob failed or returned nothing."""


class SummaryError(ProviderError):
    """Summary generation failed or returned nothing."""


class CircuitBreakerOpenError(ProviderError):
    """
    Raised when the Gemini circuit breaker is OPEN.

    How the circuit breaker works:
        CLOSED (normal) → failures increment counter
        → After N failures → OPEN (reject all calls for the recovery timeout)
        → After the timeout → HALF-OPEN (allow one test call)
        → Test succeeds → CLOSED; test fails → OPEN again
    """

    def __init__(
        self,
        recovery_time: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"AI service is temporarily unavailable due to repeated failures. "
            f"Try again in approximately {recovery_time} seconds."
        )
        ctx = context or {}
        ctx["recovery_time"] = recovery_time
        super().__init__(message=message, context=ctx)
        self.recovery_time = recovery_time


class StorageError(EchoNoteError):
    """
    Raised when the audio blob store cannot read or write a file.

    When:  Disk full, permission denied, blob missing at transcription time.
    HTTP:  500 Internal Server Error
    """

    def __init__(
        self,
        message: str = "Audio storage operation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(EchoNoteError):
    """
    Raised when database operations fail unexpectedly.

    The message returned to the client is generic; SQL details stay in the
    server log.
    HTTP:  500 Internal Server Error
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
