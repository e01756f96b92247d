"""ChatService -- one user message in, one model reply out.

Per request:

1. Validate input (``ValidationError`` before any other work).
2. Lock the session so concurrent requests for it run one at a time.
3. Append the user's message immediately so it is visible in history.
4. Read the candidate window, budget it, call the model.
5. Append the reply.

If step 4 fails or is cancelled the user's message from step 3 is
discarded again, so a failed exchange leaves no half-conversation
behind.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

from novachat.configs.system import APIConfig, PromptConfig
from novachat.core.budget import HistoryBudgeter, Message, Role, TokenUsage
from novachat.core.errors import UpstreamError, ValidationError
from novachat.infra.concurrency import SessionBusy, SessionLocks
from novachat.infra.store import SessionStore, SessionSummary
from novachat.infra.telemetry import (
    ATTR_BUDGET_INPUT_TOKENS,
    ATTR_HISTORY_KEPT_COUNT,
    ATTR_HISTORY_MESSAGE_COUNT,
    ATTR_SESSION_ID,
    SPAN_CHAT_SEND,
    SPAN_HISTORY_BUDGET,
    SPAN_HISTORY_LOAD,
    tracer,
)

from .metrics import (
    CHAT_REQUEST_DURATION_SECONDS,
    CHAT_REQUESTS_TOTAL,
    HISTORY_MESSAGES_DROPPED_TOTAL,
    PROMPT_HISTORY_MESSAGES,
    PROMPT_INPUT_TOKENS,
)

if TYPE_CHECKING:
    from novachat.core.llm.client import GeminiClient

logger = logging.getLogger(__name__)

MISSING_INPUT_MESSAGE = "sessionId and userMessage are required"


@dataclass(frozen=True)
class ChatReply:
    """The model's answer plus the estimated prompt usage."""

    reply: str
    usage: TokenUsage


class ChatService:
    """Coordinates store, locks, budgeter and model client."""

    def __init__(
        self,
        store: SessionStore,
        locks: SessionLocks,
        model_client: GeminiClient,
        budgeter: HistoryBudgeter,
        prompt_config: PromptConfig,
        api_config: APIConfig,
    ) -> None:
        self._store = store
        self._locks = locks
        self._model = model_client
        self._budgeter = budgeter
        self._prompt = prompt_config
        self._api = api_config

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate(
        self, session_id: str | None, text: str | None
    ) -> tuple[str, str]:
        """Return *session_id* and *text*, or raise ``ValidationError``."""
        if not session_id or not session_id.strip() or not text or not text.strip():
            raise ValidationError(MISSING_INPUT_MESSAGE)
        if len(text) > self._api.max_message_length:
            raise ValidationError(
                f"userMessage exceeds {self._api.max_message_length} characters"
            )
        return session_id, text

    # ------------------------------------------------------------------
    # Chat
    # ------------------------------------------------------------------

    async def send(self, session_id: str | None, text: str | None) -> ChatReply:
        """Answer *text* in the context of *session_id*."""
        start = time.monotonic()
        status = "error"
        try:
            session_id, text = self.validate(session_id, text)
            with tracer.start_as_current_span(SPAN_CHAT_SEND) as span:
                span.set_attribute(ATTR_SESSION_ID, session_id)
                async with self._locks.hold(session_id):
                    result = await self._exchange(session_id, text)
            status = "ok"
            return result
        except ValidationError:
            status = "invalid"
            raise
        except UpstreamError:
            status = "upstream_error"
            raise
        except SessionBusy:
            status = "busy"
            raise
        except asyncio.CancelledError:
            status = "cancelled"
            raise
        finally:
            CHAT_REQUESTS_TOTAL.labels(status=status).inc()
            CHAT_REQUEST_DURATION_SECONDS.observe(time.monotonic() - start)

    async def _exchange(self, session_id: str, text: str) -> ChatReply:
        user_message = Message(role=Role.USER, content=text)
        await self._store.append(session_id, user_message)
        try:
            candidates = await self._load_candidates(session_id, user_message.id)

            with tracer.start_as_current_span(SPAN_HISTORY_BUDGET) as span:
                prepared = self._budgeter.prepare(
                    self._prompt.system_prompt, candidates, text
                )
                span.set_attribute(ATTR_HISTORY_KEPT_COUNT, len(prepared.history))
                span.set_attribute(ATTR_BUDGET_INPUT_TOKENS, prepared.usage.total)
            PROMPT_INPUT_TOKENS.observe(prepared.usage.total)
            PROMPT_HISTORY_MESSAGES.observe(len(prepared.history))
            HISTORY_MESSAGES_DROPPED_TOTAL.inc(len(candidates) - len(prepared.history))

            reply = await self._model.generate(
                prepared.envelope,
                self._budgeter.budget.output_response_limit,
                fallback_reply=self._prompt.fallback_reply,
            )
        except (Exception, asyncio.CancelledError):
            await self._rollback(session_id, user_message.id)
            raise

        self._budgeter.log_output(reply)
        await self._store.append(
            session_id, Message(role=Role.ASSISTANT, content=reply)
        )
        return ChatReply(reply=reply, usage=prepared.usage)

    async def _load_candidates(
        self, session_id: str, new_message_id: str
    ) -> list[Message]:
        """Return up to ``max_history_messages`` messages before the new one."""
        window_size = self._budgeter.budget.max_history_messages
        with tracer.start_as_current_span(SPAN_HISTORY_LOAD) as span:
            window = await self._store.list_messages(session_id, limit=window_size + 1)
            candidates = [m for m in window if m.id != new_message_id][-window_size:]
            span.set_attribute(ATTR_HISTORY_MESSAGE_COUNT, len(candidates))
        return candidates if window_size > 0 else []

    async def _rollback(self, session_id: str, message_id: str) -> None:
        try:
            removed = await self._store.discard(session_id, message_id)
        except Exception:
            logger.exception(
                "Failed to roll back message %s in session %s", message_id, session_id
            )
            return
        logger.info(
            "Rolled back user message %s in session %s (removed=%s)",
            message_id,
            session_id,
            removed,
        )

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    async def history(self, session_id: str) -> list[Message]:
        """All messages of *session_id*, oldest first."""
        return await self._store.list_messages(session_id)

    async def sessions(self) -> list[SessionSummary]:
        """Most recently active sessions, one page."""
        return await self._store.list_sessions(limit=self._api.session_page_size)

    async def clear(self, session_id: str) -> int:
        """Delete *session_id*; returns how many messages were removed."""
        async with self._locks.hold(session_id):
            removed = await self._store.clear(session_id)
        logger.info("Cleared session %s (%d messages)", session_id, removed)
        return removed
