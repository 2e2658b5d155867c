"""
EchoNote Backend: AI Provider Interfaces
=========================================

What:  Abstract contracts for the two AI capabilities the audio pipeline needs.
How:   Concrete providers (Gemini today) implement these; the pipeline only
       sees the interfaces, so tests substitute fakes.
Who:   AudioPipeline depends on both.
"""

from abc import ABC, abstractmethod


class TranscriptionProvider(ABC):
    """
    Speech-to-text over a stored audio blob.

    Contract:
        - transcribe() returns non-empty text with whitespace collapsed
        - every failure (blob missing, API error, empty result) raises
          TranscriptionError
    """

    @abstractmethod
    async def transcribe(self, audio_path: str) -> str:
        """
        Args:
            audio_path: blob key as stored in `audio_jobs.audio_path`

        Raises:
            TranscriptionError: message prefixed "Transcription failed: "
        """
        ...


class SummaryProvider(ABC):
    """
    Bullet-point summary of a transcript.

    Contract:
        - empty/whitespace input returns "No content to summarize." without
          calling the model
        - otherwise returns 3-5 lines, each starting with "• "
        - failures raise SummaryError
    """

    @abstractmethod
    async def summarize(self, text: str) -> str:
        ...
