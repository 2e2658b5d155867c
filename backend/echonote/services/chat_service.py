"""
EchoNote Backend: Chat Query Engine
====================================

What:  Answers free-text questions about the stored notes.
How:   Keyword relevance scoring over title, summary and content, then a
       fixed text template. No model is called; every sentence of the answer
       is either boilerplate or copied from a stored note.
Who:   Called by POST /chat/query.

Scoring:
    For each query word (lowercased, whitespace-split) that occurs as a
    substring of a field:
        title   +3
        summary +2
        content +1
    Notes scoring 0 are dropped; the rest are sorted by score (stable, so
    ties keep the newest-first fetch order) and capped at MAX_RESULTS.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Sequence

from echonote.schemas.note import NoteResponse
from echonote.services.note_service import NoteService

logger = logging.getLogger(__name__)

MAX_RESULTS = 5
CONTENT_PREVIEW_CHARS = 200

EMPTY_QUERY_ANSWER = "Please ask a question about your notes."
NO_NOTES_ANSWER = (
    "You don't have any notes yet. Create some notes first to search through them."
)
NO_MATCH_ANSWER = (
    'I couldn\'t find any notes matching "{query}". '
    "Try asking about something else, or check your notes list."
)

# (field name, weight) in scoring order
FIELD_WEIGHTS = (("title", 3), ("summary", 2), ("content", 1))


@dataclass
class RelevantNote:
    note: NoteResponse
    score: int
    matched_fields: List[str] = field(default_factory=list)


def tokenize(query: str) -> List[str]:
    return query.lower().split()


def score_note(note: NoteResponse, words: Sequence[str]) -> RelevantNote:
    """Weighted count of query words found in each non-empty field."""
    result = RelevantNote(note=note, score=0)
    for name, weight in FIELD_WEIGHTS:
        value = getattr(note, name)
        if not value:
            continue
        haystack = value.lower()
        hits = sum(1 for word in words if word in haystack)
        if hits:
            result.score += hits * weight
            result.matched_fields.append(name)
    return result


def rank_notes(query: str, notes: Sequence[NoteResponse]) -> List[RelevantNote]:
    """Top MAX_RESULTS notes with a positive score, highest first."""
    words = tokenize(query)
    scored = [score_note(note, words) for note in notes]
    relevant = [r for r in scored if r.score > 0]
    # sorted() is stable: equal scores keep input order
    relevant = sorted(relevant, key=lambda r: r.score, reverse=True)
    return relevant[:MAX_RESULTS]


def format_date(value: datetime) -> str:
    """e.g. "Mar 5, 2024" """
    return f"{value:%b} {value.day}, {value.year}"


def render_answer(matches: Sequence[RelevantNote]) -> str:
    count = len(matches)
    noun = "note" if count == 1 else "notes"
    lines = [f"I found {count} {noun} related to your query:", ""]

    for index, match in enumerate(matches, start=1):
        note = match.note
        note_type = note.type.value
        title = note.title or f"Untitled {note_type} note"
        lines.append(f"{index}. **{title}** ({format_date(note.created_at)}, {note_type})")

        if note.summary and "summary" in match.matched_fields:
            lines.append(f"   Summary: {note.summary}")
        elif note.content and "content" in match.matched_fields:
            preview = note.content
            if len(preview) > CONTENT_PREVIEW_CHARS:
                preview = preview[:CONTENT_PREVIEW_CHARS] + "..."
            lines.append(f"   Content: {preview}")

        lines.append("")

    return "\n".join(lines).strip()


class ChatService:
    """Deterministic question answering over NoteService."""

    def __init__(self, note_service: NoteService):
        self.note_service = note_service

    async def query(self, query: str) -> str:
        if not query or not query.strip():
            return EMPTY_QUERY_ANSWER

        notes = await self.note_service.get_all_notes()
        if not notes:
            return NO_NOTES_ANSWER

        matches = rank_notes(query, notes)
        logger.info(
            "Chat query matched %d of %d notes (%d words)",
            len(matches),
            len(notes),
            len(tokenize(query)),
        )
        if not matches:
            return NO_MATCH_ANSWER.format(query=query)

        return render_answer(matches)
