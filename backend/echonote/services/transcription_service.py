"""
EchoNote Backend: Gemini Transcription Provider
================================================

What:  Turns a stored audio blob into transcript text.
How:   Reads the blob from AudioStorage, sends prompt + inline audio to
       Gemini, collapses whitespace.
"""

import logging
import re

from echonote.exceptions import CircuitBreakerOpenError, EchoNoteError, TranscriptionError
from echonote.services.gemini_client import GeminiClient
from echonote.services.providers import TranscriptionProvider
from echonote.services.storage_service import AudioStorage

logger = logging.getLogger(__name__)

TRANSCRIPTION_PROMPT = (
    "Transcribe this audio file. Return only the transcript text, "
    "without any additional commentary or formatting."
)

_WHITESPACE = re.compile(r"\s+")


class GeminiTranscriptionProvider(TranscriptionProvider):

    def __init__(self, client: GeminiClient, storage: AudioStorage):
        self.client = client
        self.storage = storage

    async def transcribe(self, audio_path: str) -> str:
        if not audio_path:
            raise TranscriptionError(message="Transcription failed: Audio path is required")

        try:
            audio, mime_type = await self.storage.read(audio_path)
            if not audio:
                raise TranscriptionError(message="Failed to download audio: No data returned")

            transcript = await self.client.generate(
                [TRANSCRIPTION_PROMPT, {"mime_type": mime_type, "data": audio}],
                label="transcription",
            )
            if not transcript.strip():
                raise TranscriptionError(message="Transcription returned empty result")
        except CircuitBreakerOpenError:
            # Re-raised as-is: the handler reads recovery_time for Retry-After
            raise
        except EchoNoteError as e:
            raise TranscriptionError(
                message=f"Transcription failed: {e.message}",
                context={"audio_path": audio_path, **e.context},
            ) from e

        transcript = _WHITESPACE.sub(" ", transcript.strip())
        logger.info("Transcribed %s: %d chars", audio_path, len(transcript))
        return transcript
