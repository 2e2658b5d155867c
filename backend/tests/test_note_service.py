"""
EchoNote Backend: Note Service Tests
=====================================

What:  NoteService validation and CRUD semantics.
How:   Mostly against a real SQLite database; a few tests use a mocked
       repository to assert that invalid input never reaches storage.

What we test:
    ✅ Type validation (no row written on failure)
    ✅ Empty title/content stored as NULL
    ✅ ID validation (missing, blank, malformed)
    ✅ Partial update: omitted fields kept, explicit null clears, empty payload is a read
    ✅ Newest-first listing, idempotent delete
"""

import asyncio
import uuid
from unittest.mock import AsyncMock

import pytest

from echonote.exceptions import ValidationError
from echonote.schemas.note import NoteCreate, NoteType, NoteUpdate
from echonote.services.note_service import NoteService, parse_id


class TestParseId:

    def test_accepts_uuid_and_string(self):
        value = uuid.uuid4()
        assert parse_id(value) == value
        assert parse_id(str(value)) == value

    @pytest.mark.parametrize("value", [None, "", "   "])
    def test_missing_id(self, value):
        with pytest.raises(ValidationError, match="Note ID is required"):
            parse_id(value)

    def test_malformed_id(self):
        with pytest.raises(ValidationError, match="Invalid Note ID"):
            parse_id("not-a-uuid")

    def test_custom_label(self):
        with pytest.raises(ValidationError, match="Audio job ID is required"):
            parse_id("", label="Audio job ID")


class TestNoteServiceValidation:
    """Invalid input is rejected before the repository is touched."""

    def setup_method(self):
        self.repository = AsyncMock()
        self.service = NoteService(self.repository)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("note_type", [None, "", "audio", "TEXT"])
    async def test_invalid_type_rejected(self, note_type):
        with pytest.raises(ValidationError) as exc_info:
            await self.service.create_note(NoteCreate(type=note_type, title="x"))

        assert exc_info.value.message == 'Invalid note type. Must be "text" or "voice"'
        self.repository.create.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_empty_strings_become_none(self):
        await self.service.create_note(NoteCreate(type="text", title="", content=""))

        self.repository.create.assert_awaited_once_with(
            note_type="text", title=None, content=None
        )

    @pytest.mark.asyncio
    async def test_get_with_malformed_id_does_not_query(self):
        with pytest.raises(ValidationError):
            await self.service.get_note("123")
        self.repository.find_by_id.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_empty_update_is_a_read(self):
        note_id = uuid.uuid4()
        self.repository.find_by_id.return_value = None

        result = await self.service.update_note(note_id, NoteUpdate())

        assert result is None
        self.repository.find_by_id.assert_awaited_once_with(note_id)
        self.repository.update.assert_not_awaited()


class TestNoteServiceCrud:
    """Round trips through NoteRepository on SQLite."""

    @pytest.mark.asyncio
    async def test_create_and_get(self, note_service):
        created = await note_service.create_note(
            NoteCreate(type="text", title="Groceries", content="milk, eggs")
        )

        assert created.type == NoteType.TEXT
        assert created.summary is None
        fetched = await note_service.get_note(str(created.id))
        assert fetched == created

    @pytest.mark.asyncio
    async def test_voice_note_without_content(self, note_service):
        created = await note_service.create_note(NoteCreate(type="voice"))

        assert created.type == NoteType.VOICE
        assert created.title is None
        assert created.content is None

    @pytest.mark.asyncio
    async def test_get_missing_returns_none(self, note_service):
        assert await note_service.get_note(uuid.uuid4()) is None

    @pytest.mark.asyncio
    async def test_list_is_newest_first(self, note_service):
        first = await note_service.create_note(NoteCreate(type="text", title="first"))
        await asyncio.sleep(0.01)
        second = await note_service.create_note(NoteCreate(type="text", title="second"))

        notes = await note_service.get_all_notes()

        assert [n.id for n in notes] == [second.id, first.id]

    @pytest.mark.asyncio
    async def test_update_only_touches_given_fields(self, note_service):
        note = await note_service.create_note(
            NoteCreate(type="text", title="Plan", content="draft")
        )

        updated = await note_service.update_note(note.id, NoteUpdate(content="final"))

        assert updated.title == "Plan"
        assert updated.content == "final"
        assert updated.created_at == note.created_at
        assert updated.type == note.type

    @pytest.mark.asyncio
    async def test_explicit_null_clears_field(self, note_service):
        note = await note_service.create_note(NoteCreate(type="text", title="Plan"))

        updated = await note_service.update_note(note.id, {"title": None})

        assert updated.title is None

    @pytest.mark.asyncio
    async def test_update_missing_returns_none(self, note_service):
        assert await note_service.update_note(uuid.uuid4(), {"title": "x"}) is None

    @pytest.mark.asyncio
    async def test_delete_is_idempotent(self, note_service):
        note = await note_service.create_note(NoteCreate(type="text"))

        assert await note_service.delete_note(note.id) is True
        assert await note_service.get_note(note.id) is None
        assert await note_service.delete_note(note.id) is True
