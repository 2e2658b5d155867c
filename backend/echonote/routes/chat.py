"""EchoNote Backend: chat query endpoint."""

from fastapi import APIRouter, Depends

from echonote.dependencies import get_chat_service
from echonote.schemas.chat import ChatQueryRequest, ChatQueryResponse
from echonote.schemas.common import ErrorResponse
from echonote.services.chat_service import ChatService

router = APIRouter(tags=["Chat"])


@router.post(
    "/chat/query",
    response_model=ChatQueryResponse,
    responses={400: {"description": "Query missing or not a string", "model": ErrorResponse}},
    summary="Ask a question about your notes",
    description=(
        "Keyword search over note titles, summaries and content. The answer "
        "only quotes stored notes; no AI model is involved."
    ),
)
async def query_notes(
    body: ChatQueryRequest,
    chat: ChatService = Depends(get_chat_service),
) -> ChatQueryResponse:
    return ChatQueryResponse(answer=await chat.query(body.query))
