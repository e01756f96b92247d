"""Distributed lock backend built on ``redis.asyncio`` locks.

Keys carry a TTL so a crashed holder cannot wedge a session forever.
"""

from __future__ import annotations

import logging
from datetime import timedelta

from redis.asyncio import Redis
from redis.asyncio.lock import Lock
from redis.exceptions import LockError

from .base import LockBackend

logger = logging.getLogger(__name__)


class RedisLockBackend(LockBackend):
    """``SET NX PX``-style locks, one Redis key per session."""

    def __init__(
        self,
        redis: Redis,
        key_prefix: str,
        ttl: timedelta,
        poll_interval: float = 0.05,
    ) -> None:
        self._redis = redis
        self._key_prefix = key_prefix
        self._ttl = ttl.total_seconds()
        self._poll_interval = poll_interval

    async def acquire(self, key: str) -> Lock:
        lock = self._redis.lock(
            f"{self._key_prefix}:{key}",
            timeout=self._ttl,
            sleep=self._poll_interval,
        )
        await lock.acquire()
        return lock

    async def release(self, key: str, handle: Lock) -> None:
        try:
            await handle.release()
        except LockError:
            logger.warning(
                "Lock for session %s expired before release (ttl=%.0fs)",
                key,
                self._ttl,
            )

    async def aclose(self) -> None:
        pass
