"""
EchoNote Backend: Audio Blob Storage
=====================================

What:  Validates uploaded audio and stores it under a local storage root.
How:   Extension and size checks, then an async write via aiofiles to the
       key `{note_id}/{epoch_millis}.{ext}`. The key is what gets stored in
       `audio_jobs.audio_path`; `read()` resolves it back to bytes.
Who:   AudioService (write) and GeminiTranscriptionProvider (read).

Directory Structure:
    storage/audio/
    └── 3f2b9c1e-.../
        ├── 1717171717171.webm
        └── 1717171800000.m4a

Security:
    Keys are built from the note UUID and a timestamp, never from the
    uploaded filename; only the lowercase extension is taken from it.
    `read()` refuses keys that resolve outside the storage root.
"""

import logging
import time
import uuid
from pathlib import Path
from typing import Optional, Tuple

import aiofiles

from echonote.exceptions import StorageError, ValidationError

logger = logging.getLogger(__name__)

# Extension → MIME type sent to Gemini alongside the audio bytes
AUDIO_MIME_TYPES = {
    "webm": "audio/webm",
    "wav": "audio/wav",
    "mp3": "audio/mp3",
    "m4a": "audio/mp4",
    "mp4": "audio/mp4",
    "ogg": "audio/ogg",
    "flac": "audio/flac",
    "aac": "audio/aac",
}

# Browser MediaRecorder output; used when the upload has no extension
DEFAULT_EXTENSION = "webm"
DEFAULT_MIME_TYPE = "audio/webm"


class AudioStorage:
    """
    Blob store for uploaded audio.

    Lifecycle of an upload:
        1. validate_extension(): allowed audio format
        2. validate_size(): non-empty, within the configured maximum
        3. store(): async write to {root}/{note_id}/{millis}.{ext}
    Blobs are never deleted by the application.
    """

    def __init__(self, storage_root: str, max_audio_size: int):
        self.storage_root = Path(storage_root).resolve()
        self.max_audio_size = max_audio_size
        self.storage_root.mkdir(parents=True, exist_ok=True)
        logger.info("AudioStorage initialized with storage_root=%s", self.storage_root)

    def validate_extension(self, filename: Optional[str]) -> str:
        """
        Return the normalized extension (lowercase, no dot).

        Filenames without an extension are treated as webm recordings.
        """
        suffix = Path(filename or "").suffix.lower().lstrip(".")
        ext = suffix or DEFAULT_EXTENSION
        if ext not in AUDIO_MIME_TYPES:
            raise ValidationError(
                message=(
                    f"Audio format '.{ext}' is not supported. "
                    f"Allowed formats: {', '.join(sorted(AUDIO_MIME_TYPES))}"
                ),
                field="audio",
                context={"extension": ext},
            )
        return ext

    def validate_size(self, content_length: Optional[int], actual_size: int) -> None:
        """Reject empty uploads and anything above `max_audio_size`."""
        max_mb = self.max_audio_size / (1024 * 1024)

        if actual_size == 0:
            raise ValidationError(
                message="Audio file is empty",
                field="audio",
            )

        # Content-Length can disagree with the body; check both
        if content_length and content_length > self.max_audio_size:
            raise ValidationError(
                message=f"Audio file exceeds maximum of {max_mb:.0f}MB.",
                field="audio",
                context={"max_size_mb": max_mb, "reported_size": content_length},
            )

        if actual_size > self.max_audio_size:
            raise ValidationError(
                message=(
                    f"Audio file size ({actual_size / (1024 * 1024):.1f}MB) "
                    f"exceeds maximum of {max_mb:.0f}MB."
                ),
                field="audio",
                context={"max_size_mb": max_mb, "actual_size": actual_size},
            )

    def build_key(self, note_id: uuid.UUID, extension: str) -> str:
        return f"{note_id}/{int(time.time() * 1000)}.{extension}"

    def resolve(self, key: str) -> Path:
        """Absolute path for a key; keys escaping the root are rejected."""
        path = (self.storage_root / key).resolve()
        if not path.is_relative_to(self.storage_root):
            raise StorageError(
                message="Invalid audio path",
                context={"key": key},
            )
        return path

    async def store(self, note_id: uuid.UUID, content: bytes, extension: str) -> str:
        """
        Write audio bytes and return the blob key.

        Raises:
            StorageError: directory creation or write failed
        """
        key = self.build_key(note_id, extension)
        path = self.resolve(key)

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(path, "wb") as f:
                await f.write(content)
        except OSError as e:
            logger.error("Failed to store audio at %s: %s", path, e)
            raise StorageError(
                message="Failed to upload audio",
                context={"key": key, "os_error": str(e)},
            ) from e

        logger.info("Audio stored: %s (%d bytes)", key, len(content))
        return key

    async def read(self, key: str) -> Tuple[bytes, str]:
        """
        Load a stored blob.

        Returns:
            (audio bytes, MIME type derived from the key's extension)

        Raises:
            StorageError: blob missing or unreadable
        """
        path = self.resolve(key)
        try:
            async with aiofiles.open(path, "rb") as f:
                data = await f.read()
        except OSError as e:
            logger.error("Failed to read audio %s: %s", key, e)
            raise StorageError(
                message=f"Failed to download audio: {key}",
                context={"key": key, "os_error": str(e)},
            ) from e

        ext = path.suffix.lower().lstrip(".")
        return data, AUDIO_MIME_TYPES.get(ext, DEFAULT_MIME_TYPE)
