"""Pydantic models for the chat API.

Field names on the wire are camelCase (``sessionId``, ``lastMessage``)
to stay compatible with the existing web frontend.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from novachat.core.budget import Message, Role
from novachat.infra.store import SessionSummary


class ChatRequest(BaseModel):
    """Request body of ``POST /api/chat``.

    Both fields are optional at the schema level so that a missing
    field is reported by the service as a 400, not a 422.
    """

    model_config = ConfigDict(populate_by_name=True)

    session_id: str | None = Field(
        default=None, alias="sessionId", description="Conversation id"
    )
    user_message: str | None = Field(
        default=None, alias="userMessage", description="New user message"
    )


class MessageOut(BaseModel):
    role: Role = Field(description="Message author")
    content: str = Field(description="Message text")
    timestamp: datetime = Field(description="Creation instant (UTC)")

    @classmethod
    def from_message(cls, message: Message) -> "MessageOut":
        return cls(
            role=message.role, content=message.content, timestamp=message.timestamp
        )


class SessionOut(BaseModel):
    """One row of the session sidebar."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(serialization_alias="_id", description="Session id")
    last_message: str = Field(
        serialization_alias="lastMessage", description="Preview of the newest message"
    )
    last_time: datetime = Field(
        serialization_alias="lastTime", description="Timestamp of the newest message"
    )
    message_count: int = Field(
        serialization_alias="messageCount", description="Messages in the session"
    )

    @classmethod
    def from_summary(cls, summary: SessionSummary) -> "SessionOut":
        return cls(
            id=summary.id,
            last_message=summary.last_message_preview,
            last_time=summary.last_timestamp,
            message_count=summary.count,
        )


class ChatResponse(BaseModel):
    success: bool = True
    reply: str


class MessagesResponse(BaseModel):
    success: bool = True
    messages: list[MessageOut]


class SessionsResponse(BaseModel):
    success: bool = True
    sessions: list[SessionOut]


class ClearResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    message: str = "Session cleared"
    deleted_count: int = Field(serialization_alias="deletedCount")


class ErrorResponse(BaseModel):
    success: bool = False
    error: str
