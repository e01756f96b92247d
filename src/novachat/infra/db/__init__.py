"""Async SQL persistence (ORM models and the SQL session store)."""

from .models import TABLE_CHAT_MESSAGES, Base, ChatMessage
from .store import SqlSessionStore

__all__ = [
    "Base",
    "ChatMessage",
    "SqlSessionStore",
    "TABLE_CHAT_MESSAGES",
]
