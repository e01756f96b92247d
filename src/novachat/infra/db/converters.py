"""Conversions between ``Message`` and ``chat_messages`` rows."""

from datetime import timezone

from novachat.core.budget.models import Message, Role

from .models import ChatMessage


def message_to_row(session_id: str, message: Message) -> ChatMessage:
    """Build an ORM row for *message* in *session_id*."""
    return ChatMessage(
        session_id=session_id,
        message_id=message.id,
        role=message.role.value,
        content=message.content,
        created_at=message.timestamp,
    )


def row_to_message(row: ChatMessage) -> Message:
    """Rebuild a ``Message`` from a stored row.

    Backends without timezone support (SQLite) return naive datetimes;
    those are stored as UTC.
    """
    created_at = row.created_at
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)
    return Message(
        id=row.message_id,
        role=Role(row.role),
        content=row.content,
        timestamp=created_at,
    )
