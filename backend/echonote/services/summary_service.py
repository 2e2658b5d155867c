"""
EchoNote Backend: Gemini Summary Provider
==========================================

What:  Summarizes a transcript into 3-5 factual bullet points.
How:   Prompts Gemini, then normalizes each non-empty line to start with "• ".

Normalization:
    "- point"  → "• point"
    "* point"  → "• point"
    "•point"   → "• point"
    "point"    → "• point"
"""

import logging
import re

from echonote.exceptions import CircuitBreakerOpenError, EchoNoteError, SummaryError
from echonote.services.gemini_client import GeminiClient
from echonote.services.providers import SummaryProvider

logger = logging.getLogger(__name__)

EMPTY_CONTENT_SUMMARY = "No content to summarize."

SUMMARY_PROMPT = (
    "Summarize the following text in 3-5 concise bullet points. "
    "Be factual and only include information present in the text. "
    "Do not add any information not in the source text. "
    "Format each point with a bullet (•) followed by a space.\n\n"
    "Text to summarize:\n"
    "{text}\n\n"
    "Summary:"
)

_BULLET_MARKER = re.compile(r"^[-*•]\s*")


def normalize_bullets(raw: str) -> str:
    """Trim, drop blank lines, and give every line a "• " marker."""
    lines = (line.strip() for line in raw.strip().splitlines())
    return "\n".join(
        "• " + _BULLET_MARKER.sub("", line, count=1)
        for line in lines
        if line
    )


class GeminiSummaryProvider(SummaryProvider):

    def __init__(self, client: GeminiClient):
        self.client = client

    async def summarize(self, text: str) -> str:
        if not text or not text.strip():
            return EMPTY_CONTENT_SUMMARY

        try:
            raw = await self.client.generate(
                [SUMMARY_PROMPT.format(text=text)],
                label="summary",
            )
            if not raw.strip():
                raise SummaryError(message="Summary generation returned empty result")
        except CircuitBreakerOpenError:
            # Re-raised as-is: the handler reads recovery_time for Retry-After
            raise
        except EchoNoteError as e:
            raise SummaryError(
                message=f"Summary generation failed: {e.message}",
                context=e.context,
            ) from e

        summary = normalize_bullets(raw)
        logger.info("Summary generated: %d lines", summary.count("\n") + 1)
        return summary
