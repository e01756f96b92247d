"""Chat API endpoints."""

from fastapi import APIRouter

from .deps import ChatServiceDep
from .models import (
    ChatRequest,
    ChatResponse,
    ClearResponse,
    ErrorResponse,
    MessageOut,
    MessagesResponse,
    SessionOut,
    SessionsResponse,
)

router = APIRouter(prefix="/api", tags=["chat"])

_ERROR_RESPONSES: dict[int | str, dict] = {
    400: {"model": ErrorResponse, "description": "Missing or invalid input"},
    502: {"model": ErrorResponse, "description": "Remote model failed"},
    503: {"model": ErrorResponse, "description": "Session busy"},
}


@router.get("/messages/{session_id}")
async def get_messages(
    session_id: str, chat_service: ChatServiceDep
) -> MessagesResponse:
    """Full history of one session, oldest first."""
    messages = await chat_service.history(session_id)
    return MessagesResponse(messages=[MessageOut.from_message(m) for m in messages])


@router.get("/sessions")
async def get_sessions(chat_service: ChatServiceDep) -> SessionsResponse:
    """Most recently active sessions for the sidebar."""
    summaries = await chat_service.sessions()
    return SessionsResponse(sessions=[SessionOut.from_summary(s) for s in summaries])


@router.post("/chat", responses=_ERROR_RESPONSES)
async def chat(
    chat_request: ChatRequest, chat_service: ChatServiceDep
) -> ChatResponse:
    """Answer one user message in the context of its session.

    The user message is stored before the model is called and removed
    again if the call fails, so a failed request leaves history as it
    was.
    """
    result = await chat_service.send(
        chat_request.session_id, chat_request.user_message
    )
    return ChatResponse(reply=result.reply)


@router.delete("/messages/{session_id}")
async def clear_messages(
    session_id: str, chat_service: ChatServiceDep
) -> ClearResponse:
    deleted = await chat_service.clear(session_id)
    return ClearResponse(deleted_count=deleted)
