"""SessionLocks -- serializes writes to the same session.

Two requests for one session must not interleave their
read-history / append / model-call / append sequence.  Requests for
different sessions never wait on each other.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import Annotated

from fastapi import Depends, FastAPI, Request
from redis.asyncio import Redis

from novachat.configs.config import AppConfig, get_app_config
from novachat.infra.lifespan import get_app
from novachat.infra.redis import build_redis
from novachat.infra.telemetry import ATTR_SESSION_ID, SPAN_SESSION_LOCK, tracer

from .base import LockBackend, SessionBusy
from .local_backend import LocalLockBackend
from .redis_backend import RedisLockBackend

logger = logging.getLogger(__name__)

_KEY_PREFIX = "novachat:session"


class SessionLocks:
    """Per-session mutex with an acquire timeout.

    Usage::

        async with session_locks.hold(session_id):
            ...  # read history, append, call model, append
    """

    def __init__(self, backend: LockBackend, acquire_timeout: timedelta) -> None:
        self._backend = backend
        self._acquire_timeout = acquire_timeout.total_seconds()

    @asynccontextmanager
    async def hold(self, session_id: str) -> AsyncGenerator[None, None]:
        """Hold *session_id* exclusively for the body of the ``with`` block.

        Raises:
            SessionBusy: if the session stays locked past the timeout.
        """
        with tracer.start_as_current_span(SPAN_SESSION_LOCK) as span:
            span.set_attribute(ATTR_SESSION_ID, session_id)
            try:
                async with asyncio.timeout(self._acquire_timeout):
                    handle = await self._backend.acquire(session_id)
            except TimeoutError:
                logger.info(
                    "Session %s still busy after %.1fs", session_id, self._acquire_timeout
                )
                raise SessionBusy(
                    "Another message for this session is still being processed."
                ) from None
        try:
            yield
        finally:
            await self._backend.release(session_id, handle)

    async def aclose(self) -> None:
        await self._backend.aclose()


# ---------------------------------------------------------------------------
# Lifespan dependency
# ---------------------------------------------------------------------------


async def build_session_locks(
    app: Annotated[FastAPI, Depends(get_app)],
    redis_client: Annotated[Redis | None, Depends(build_redis)],
    config: Annotated[AppConfig, Depends(get_app_config)],
) -> AsyncGenerator[None, None]:
    """Create ``SessionLocks``, attach to ``app.state``; close on shutdown."""
    cc = config.concurrency
    if redis_client is not None:
        backend: LockBackend = RedisLockBackend(
            redis=redis_client,
            key_prefix=_KEY_PREFIX,
            ttl=cc.session_lock_ttl,
        )
        logger.info("SessionLocks: Redis backend (prefix=%s)", _KEY_PREFIX)
    else:
        backend = LocalLockBackend()
        logger.info("SessionLocks: local backend")

    locks = SessionLocks(backend, acquire_timeout=cc.session_lock_timeout)
    app.state.session_locks = locks
    yield
    await locks.aclose()


# ---------------------------------------------------------------------------
# Per-request dependency -- reads from app.state
# ---------------------------------------------------------------------------


def get_session_locks(request: Request) -> SessionLocks:
    """Return the ``SessionLocks`` from ``app.state``."""
    return request.app.state.session_locks
