"""Session store backed by the ``chat_messages`` table.

Each operation opens its own short-lived ``AsyncSession`` from the
injected factory.  Database errors are logged and re-raised.
"""

import logging

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from novachat.core.budget.models import Message
from novachat.infra.store.base import (
    DEFAULT_PREVIEW_LENGTH,
    DEFAULT_SUMMARY_LIMIT,
    SessionStore,
    SessionSummary,
    make_preview,
)

from .converters import message_to_row, row_to_message
from .models import ChatMessage

logger = logging.getLogger(__name__)


class SqlSessionStore(SessionStore):
    """SQLAlchemy async implementation of ``SessionStore``."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        preview_length: int = DEFAULT_PREVIEW_LENGTH,
    ) -> None:
        self._session_factory = session_factory
        self._preview_length = preview_length

    async def append(self, session_id: str, message: Message) -> None:
        try:
            async with self._session_factory() as session:
                session.add(message_to_row(session_id, message))
                await session.commit()
        except Exception:
            logger.warning(
                "Failed to record %s message for session %s",
                message.role.value,
                session_id,
                exc_info=True,
            )
            raise

    async def list_messages(
        self, session_id: str, limit: int | None = None
    ) -> list[Message]:
        stmt = select(ChatMessage).where(ChatMessage.session_id == session_id)
        if limit is not None:
            stmt = stmt.order_by(ChatMessage.id.desc()).limit(max(limit, 0))
        else:
            stmt = stmt.order_by(ChatMessage.id)
        async with self._session_factory() as session:
            rows = (await session.execute(stmt)).scalars().all()
        if limit is not None:
            rows = list(reversed(rows))
        messages = [row_to_message(row) for row in rows]
        logger.debug("Loaded %d messages for session %s", len(messages), session_id)
        return messages

    async def list_sessions(
        self, limit: int = DEFAULT_SUMMARY_LIMIT
    ) -> list[SessionSummary]:
        latest = (
            select(
                ChatMessage.session_id,
                func.max(ChatMessage.id).label("last_id"),
                func.count(ChatMessage.id).label("message_count"),
            )
            .group_by(ChatMessage.session_id)
            .subquery()
        )
        stmt = (
            select(ChatMessage, latest.c.message_count)
            .join(latest, ChatMessage.id == latest.c.last_id)
            .order_by(ChatMessage.created_at.desc(), ChatMessage.id.desc())
            .limit(limit)
        )
        async with self._session_factory() as session:
            result = (await session.execute(stmt)).all()

        summaries = []
        for row, message_count in result:
            last = row_to_message(row)
            summaries.append(
                SessionSummary(
                    id=row.session_id,
                    last_message_preview=make_preview(
                        last.content, self._preview_length
                    ),
                    last_timestamp=last.timestamp,
                    count=message_count,
                )
            )
        return summaries

    async def clear(self, session_id: str) -> int:
        async with self._session_factory() as session:
            result = await session.execute(
                delete(ChatMessage).where(ChatMessage.session_id == session_id)
            )
            await session.commit()
        return result.rowcount or 0

    async def discard(self, session_id: str, message_id: str) -> bool:
        async with self._session_factory() as session:
            result = await session.execute(
                delete(ChatMessage).where(
                    ChatMessage.session_id == session_id,
                    ChatMessage.message_id == message_id,
                )
            )
            await session.commit()
        return bool(result.rowcount)
