"""
EchoNote Backend: HTTP API Client
==================================

What:  Async client for the EchoNote REST API, plus the recording workflow
       a capture UI runs: create a voice note, upload, process, poll.
How:   httpx.AsyncClient; responses are parsed into the same Pydantic
       schemas the server returns. Non-2xx responses raise ApiClientError
       carrying the server's `error` message.

Usage:
    async with EchoNoteClient("http://localhost:8000") as client:
        note = await client.create_note("voice")
        await client.upload_audio(note.id, "memo.webm", data)
        await client.process_audio(note.id)
        note = await client.wait_for_processing(note.id)
"""

import asyncio
import logging
import uuid
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

import httpx

from echonote.schemas.audio import AudioJobResponse, ProcessResponse
from echonote.schemas.note import NoteResponse

logger = logging.getLogger(__name__)

NoteId = Union[str, uuid.UUID]

DEFAULT_POLL_INTERVAL = 1.0
DEFAULT_POLL_ATTEMPTS = 20


class ApiClientError(Exception):
    """Non-2xx response from the API."""

    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        self.message = message
        super().__init__(f"{status_code}: {message}")


class EchoNoteClient:
    """
    Thin wrapper over the EchoNote endpoints.

    Args:
        base_url: server root, e.g. "http://localhost:8000"
        http_client: externally managed httpx.AsyncClient (tests pass one
                     built on MockTransport or ASGITransport)
        api_prefix: prefix the resource routers are mounted under
        sleep: coroutine used between polls
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        http_client: Optional[httpx.AsyncClient] = None,
        api_prefix: str = "/api",
        timeout: float = 120.0,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(base_url=base_url, timeout=timeout)
        self.api_prefix = api_prefix.rstrip("/")
        self._sleep = sleep

    async def __aenter__(self) -> "EchoNoteClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    # ── Transport ─────────────────────────────────────────────────────────

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        response = await self._http.request(method, f"{self.api_prefix}{path}", **kwargs)
        if response.is_error:
            raise ApiClientError(response.status_code, self._error_message(response))
        return response.json()

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text or response.reason_phrase
        if isinstance(body, dict) and body.get("error"):
            return str(body["error"])
        return response.reason_phrase

    # ── Notes ─────────────────────────────────────────────────────────────

    async def list_notes(self) -> List[NoteResponse]:
        data = await self._request("GET", "/notes")
        return [NoteResponse.model_validate(item) for item in data]

    async def get_note(self, note_id: NoteId) -> NoteResponse:
        return NoteResponse.model_validate(await self._request("GET", f"/notes/{note_id}"))

    async def create_note(
        self,
        note_type: str,
        title: Optional[str] = None,
        content: Optional[str] = None,
    ) -> NoteResponse:
        payload: Dict[str, Any] = {"type": note_type}
        if title is not None:
            payload["title"] = title
        if content is not None:
            payload["content"] = content
        return NoteResponse.model_validate(await self._request("POST", "/notes", json=payload))

    async def update_note(self, note_id: NoteId, changes: Dict[str, Any]) -> NoteResponse:
        """PATCH with exactly the given keys; a None value clears the field."""
        data = await self._request("PATCH", f"/notes/{note_id}", json=changes)
        return NoteResponse.model_validate(data)

    async def delete_note(self, note_id: NoteId) -> bool:
        data = await self._request("DELETE", f"/notes/{note_id}")
        return bool(data.get("success"))

    # ── Audio ─────────────────────────────────────────────────────────────

    async def upload_audio(
        self,
        note_id: NoteId,
        filename: str,
        content: bytes,
        mime_type: str = "audio/webm",
    ) -> AudioJobResponse:
        data = await self._request(
            "POST",
            f"/notes/{note_id}/audio",
            files={"audio": (filename, content, mime_type)},
        )
        return AudioJobResponse.model_validate(data)

    async def process_audio(self, note_id: NoteId) -> ProcessResponse:
        return ProcessResponse.model_validate(
            await self._request("POST", f"/notes/{note_id}/process")
        )

    async def wait_for_processing(
        self,
        note_id: NoteId,
        interval: float = DEFAULT_POLL_INTERVAL,
        max_attempts: int = DEFAULT_POLL_ATTEMPTS,
    ) -> Optional[NoteResponse]:
        """
        Poll a note until both `content` and `summary` are filled in.

        Returns:
            The note once both fields are non-empty; None when the API
            answers with an error or after `max_attempts` polls.
            Connection errors count as an attempt and polling continues.
        """
        for attempt in range(1, max_attempts + 1):
            try:
                note = await self.get_note(note_id)
            except ApiClientError as e:
                logger.warning("Polling note %s stopped: %s", note_id, e)
                return None
            except httpx.TransportError as e:
                logger.warning("Polling note %s failed (attempt %d): %s", note_id, attempt, e)
            else:
                if note.content and note.summary:
                    return note

            if attempt < max_attempts:
                await self._sleep(interval)

        logger.info("Note %s not processed after %d attempts", note_id, max_attempts)
        return None

    async def record_voice_note(
        self,
        filename: str,
        content: bytes,
        note_id: Optional[NoteId] = None,
        mime_type: str = "audio/webm",
    ) -> Optional[NoteResponse]:
        """
        Full capture workflow: create a voice note (unless `note_id` is
        given), upload the recording, process it, then wait for the
        transcript and summary.
        """
        if note_id is None:
            note_id = (await self.create_note("voice")).id
        await self.upload_audio(note_id, filename, content, mime_type)
        await self.process_audio(note_id)
        return await self.wait_for_processing(note_id)

    # ── Chat ──────────────────────────────────────────────────────────────

    async def query_chat(self, query: str) -> str:
        data = await self._request("POST", "/chat/query", json={"query": query})
        return data["answer"]
