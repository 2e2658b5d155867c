"""
EchoNote Backend: AI Provider Tests
====================================

What:  Gemini transcription and summary providers over a mocked GeminiClient.
How:   `mock_gemini_client.generate` is an AsyncMock; transcription reads
       real blobs from a temporary AudioStorage.
"""

import uuid

import pytest

from echonote.exceptions import CircuitBreakerOpenError, ProviderError, SummaryError, TranscriptionError
from echonote.services.summary_service import (
    EMPTY_CONTENT_SUMMARY,
    GeminiSummaryProvider,
    normalize_bullets,
)
from echonote.services.transcription_service import (
    TRANSCRIPTION_PROMPT,
    GeminiTranscriptionProvider,
)


class TestTranscription:

    @pytest.fixture
    def provider(self, mock_gemini_client, storage):
        return GeminiTranscriptionProvider(mock_gemini_client, storage)

    @pytest.mark.asyncio
    async def test_sends_inline_audio_and_collapses_whitespace(
        self, provider, mock_gemini_client, storage, sample_audio_bytes
    ):
        key = await storage.store(uuid.uuid4(), sample_audio_bytes, "wav")
        mock_gemini_client.generate.return_value = "  we agreed\n\nto   ship \t friday "

        transcript = await provider.transcribe(key)

        assert transcript == "we agreed to ship friday"
        parts = mock_gemini_client.generate.call_args.args[0]
        assert parts[0] == TRANSCRIPTION_PROMPT
        assert parts[1] == {"mime_type": "audio/wav", "data": sample_audio_bytes}

    @pytest.mark.asyncio
    async def test_empty_result(self, provider, mock_gemini_client, storage, sample_audio_bytes):
        key = await storage.store(uuid.uuid4(), sample_audio_bytes, "webm")
        mock_gemini_client.generate.return_value = "   "

        with pytest.raises(TranscriptionError) as exc_info:
            await provider.transcribe(key)

        assert exc_info.value.message == (
            "Transcription failed: Transcription returned empty result"
        )

    @pytest.mark.asyncio
    async def test_missing_blob(self, provider, mock_gemini_client):
        with pytest.raises(TranscriptionError, match="Transcription failed: Failed to download audio"):
            await provider.transcribe(f"{uuid.uuid4()}/1700000000000.webm")
        mock_gemini_client.generate.assert_not_called()

    @pytest.mark.asyncio
    async def test_empty_path(self, provider):
        with pytest.raises(TranscriptionError, match="Audio path is required"):
            await provider.transcribe("")

    @pytest.mark.asyncio
    async def test_provider_error_prefixed(self, provider, mock_gemini_client, storage, sample_audio_bytes):
        key = await storage.store(uuid.uuid4(), sample_audio_bytes, "mp3")
        mock_gemini_client.generate.side_effect = ProviderError(message="quota exceeded")

        with pytest.raises(TranscriptionError) as exc_info:
            await provider.transcribe(key)

        assert exc_info.value.message == "Transcription failed: quota exceeded"
        assert exc_info.value.context["audio_path"] == key

    @pytest.mark.asyncio
    async def test_open_circuit_not_wrapped(self, provider, mock_gemini_client, storage, sample_audio_bytes):
        key = await storage.store(uuid.uuid4(), sample_audio_bytes, "webm")
        mock_gemini_client.generate.side_effect = CircuitBreakerOpenError(recovery_time=45)

        with pytest.raises(CircuitBreakerOpenError) as exc_info:
            await provider.transcribe(key)

        assert not isinstance(exc_info.value, TranscriptionError)
        assert exc_info.value.recovery_time == 45


class TestSummary:

    @pytest.fixture
    def provider(self, mock_gemini_client):
        return GeminiSummaryProvider(mock_gemini_client)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("text", ["", "   \n"])
    async def test_empty_input_skips_api(self, provider, mock_gemini_client, text):
        assert await provider.summarize(text) == EMPTY_CONTENT_SUMMARY
        mock_gemini_client.generate.assert_not_called()

    @pytest.mark.asyncio
    async def test_bullets_normalized(self, provider, mock_gemini_client):
        mock_gemini_client.generate.return_value = "- Budget approved\n\n* Ships Friday\n•Owner: Sam\nFollow up next week"

        summary = await provider.summarize("long transcript")

        assert summary == (
            "• Budget approved\n"
            "• Ships Friday\n"
            "• Owner: Sam\n"
            "• Follow up next week"
        )
        prompt = mock_gemini_client.generate.call_args.args[0][0]
        assert prompt.endswith("long transcript\n\nSummary:")

    @pytest.mark.asyncio
    async def test_empty_result(self, provider, mock_gemini_client):
        mock_gemini_client.generate.return_value = ""

        with pytest.raises(SummaryError) as exc_info:
            await provider.summarize("some text")

        assert exc_info.value.message == (
            "Summary generation failed: Summary generation returned empty result"
        )

    @pytest.mark.asyncio
    async def test_open_circuit_not_wrapped(self, provider, mock_gemini_client):
        mock_gemini_client.generate.side_effect = CircuitBreakerOpenError(recovery_time=30)

        with pytest.raises(CircuitBreakerOpenError) as exc_info:
            await provider.summarize("some text")

        assert not isinstance(exc_info.value, SummaryError)
        assert exc_info.value.recovery_time == 30


class TestNormalizeBullets:

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("• already", "• already"),
            ("-   spaced", "• spaced"),
            ("  * indented  ", "• indented"),
            ("- - nested dash", "• - nested dash"),
        ],
    )
    def test_single_line(self, raw, expected):
        assert normalize_bullets(raw) == expected
