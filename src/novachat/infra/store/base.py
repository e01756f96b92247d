"""Session store interface shared by every persistence backend."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from pydantic import BaseModel, Field

from novachat.core.budget.models import Message

DEFAULT_SUMMARY_LIMIT = 20
DEFAULT_PREVIEW_LENGTH = 50
EMPTY_PREVIEW = "New chat"


class SessionSummary(BaseModel):
    """One row of the session list (sidebar)."""

    id: str = Field(description="Session id")
    last_message_preview: str = Field(description="Start of the last message")
    last_timestamp: datetime = Field(description="When the last message was sent")
    count: int = Field(description="Number of messages in the session")


def make_preview(content: str, length: int = DEFAULT_PREVIEW_LENGTH) -> str:
    """Return the first *length* characters, or a placeholder when empty."""
    return content[:length] or EMPTY_PREVIEW


class SessionStore(ABC):
    """Append-only message log per session id.

    Messages of one session are returned in insertion order.  Writers for
    the same session must be serialized by the caller (see
    ``SessionLocks``); stores do not lock.
    """

    @abstractmethod
    async def append(self, session_id: str, message: Message) -> None:
        """Append *message*; creates the session on first use."""

    @abstractmethod
    async def list_messages(
        self, session_id: str, limit: int | None = None
    ) -> list[Message]:
        """Return the session's messages, oldest first.

        With *limit*, only the *limit* most recent messages are returned.
        Unknown sessions yield ``[]``.
        """

    @abstractmethod
    async def list_sessions(
        self, limit: int = DEFAULT_SUMMARY_LIMIT
    ) -> list[SessionSummary]:
        """Return summaries ordered by last message time, newest first."""

    @abstractmethod
    async def clear(self, session_id: str) -> int:
        """Delete the session; return how many messages were removed."""

    @abstractmethod
    async def discard(self, session_id: str, message_id: str) -> bool:
        """Remove one message (rollback of an optimistic append)."""

    async def aclose(self) -> None:
        """Release any resources held by the store."""
