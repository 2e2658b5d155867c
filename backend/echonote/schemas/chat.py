"""EchoNote Backend: chat query request/response schemas."""

from pydantic import BaseModel, Field, StrictStr


class ChatQueryRequest(BaseModel):
    """Body of POST /chat/query. Non-string queries are rejected with 400."""
    query: StrictStr = Field(description="Free-text question about the stored notes")


class ChatQueryResponse(BaseModel):
    answer: str = Field(description="Deterministic answer built only from stored note fields")
