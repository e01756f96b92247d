"""Process-local session store.

All history lives in a dict and is lost when the process exits; this is
accepted for single-instance deployments.  Memory is bounded by two
eviction rules applied on every call:

* sessions idle longer than ``session_ttl`` expire;
* beyond ``max_sessions`` the least recently active session is dropped.
"""

from __future__ import annotations

import logging
import time
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import timedelta

from novachat.core.budget.models import Message

from .base import (
    DEFAULT_PREVIEW_LENGTH,
    DEFAULT_SUMMARY_LIMIT,
    SessionStore,
    SessionSummary,
    make_preview,
)

logger = logging.getLogger(__name__)


@dataclass
class _SessionLog:
    last_active: float
    messages: list[Message] = field(default_factory=list)


class InMemorySessionStore(SessionStore):
    """Dict-of-lists store with TTL and LRU eviction."""

    def __init__(
        self,
        max_sessions: int = 1000,
        session_ttl: timedelta = timedelta(hours=24),
        preview_length: int = DEFAULT_PREVIEW_LENGTH,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._max_sessions = max_sessions
        self._ttl = session_ttl.total_seconds()
        self._preview_length = preview_length
        self._clock = clock
        self._sessions: OrderedDict[str, _SessionLog] = OrderedDict()

    # ------------------------------------------------------------------
    # Eviction
    # ------------------------------------------------------------------

    def _expire(self) -> None:
        cutoff = self._clock() - self._ttl
        # Oldest activity first, so stop at the first live session.
        while self._sessions:
            session_id, log = next(iter(self._sessions.items()))
            if log.last_active > cutoff:
                break
            del self._sessions[session_id]
            logger.debug("Session %s expired", session_id)

    def _touch(self, session_id: str) -> _SessionLog | None:
        log = self._sessions.get(session_id)
        if log is not None:
            log.last_active = self._clock()
            self._sessions.move_to_end(session_id)
        return log

    # ------------------------------------------------------------------
    # SessionStore
    # ------------------------------------------------------------------

    async def append(self, session_id: str, message: Message) -> None:
        self._expire()
        log = self._touch(session_id)
        if log is None:
            log = _SessionLog(last_active=self._clock())
            self._sessions[session_id] = log
            while len(self._sessions) > self._max_sessions:
                evicted, _ = self._sessions.popitem(last=False)
                logger.info("Session %s evicted (max_sessions reached)", evicted)
        log.messages.append(message)

    async def list_messages(
        self, session_id: str, limit: int | None = None
    ) -> list[Message]:
        self._expire()
        log = self._touch(session_id)
        if log is None:
            return []
        if limit is not None:
            return log.messages[-limit:] if limit > 0 else []
        return list(log.messages)

    async def list_sessions(
        self, limit: int = DEFAULT_SUMMARY_LIMIT
    ) -> list[SessionSummary]:
        self._expire()
        summaries = [
            SessionSummary(
                id=session_id,
                last_message_preview=make_preview(
                    log.messages[-1].content, self._preview_length
                ),
                last_timestamp=log.messages[-1].timestamp,
                count=len(log.messages),
            )
            for session_id, log in self._sessions.items()
            if log.messages
        ]
        summaries.sort(key=lambda s: s.last_timestamp, reverse=True)
        return summaries[:limit]

    async def clear(self, session_id: str) -> int:
        log = self._sessions.pop(session_id, None)
        return len(log.messages) if log is not None else 0

    async def discard(self, session_id: str, message_id: str) -> bool:
        log = self._sessions.get(session_id)
        if log is None:
            return False
        for index in range(len(log.messages) - 1, -1, -1):
            if log.messages[index].id == message_id:
                del log.messages[index]
                if not log.messages:
                    del self._sessions[session_id]
                return True
        return False
