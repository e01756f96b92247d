"""Tests for per-session locking and the lock backends."""

import asyncio
from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest
from redis.exceptions import LockError

from novachat.infra.concurrency import (
    LocalLockBackend,
    RedisLockBackend,
    SessionBusy,
    SessionLocks,
)


def _make_locks(timeout: float = 1.0) -> tuple[SessionLocks, LocalLockBackend]:
    backend = LocalLockBackend()
    return SessionLocks(backend, acquire_timeout=timedelta(seconds=timeout)), backend


class TestSessionLocks:
    @pytest.mark.asyncio
    async def test_same_session_serialized(self):
        locks, _ = _make_locks()
        order: list[str] = []

        async def worker(name: str) -> None:
            async with locks.hold("s1"):
                order.append(f"{name}-start")
                await asyncio.sleep(0.01)
                order.append(f"{name}-end")

        await asyncio.gather(worker("a"), worker("b"))
        assert order in (
            ["a-start", "a-end", "b-start", "b-end"],
            ["b-start", "b-end", "a-start", "a-end"],
        )

    @pytest.mark.asyncio
    async def test_different_sessions_do_not_block(self):
        locks, _ = _make_locks(timeout=0.05)
        async with locks.hold("s1"):
            async with locks.hold("s2"):
                pass

    @pytest.mark.asyncio
    async def test_busy_after_timeout(self):
        locks, _ = _make_locks(timeout=0.05)
        async with locks.hold("s1"):
            with pytest.raises(SessionBusy):
                async with locks.hold("s1"):
                    pass

    @pytest.mark.asyncio
    async def test_released_on_error(self):
        locks, backend = _make_locks(timeout=0.05)
        with pytest.raises(RuntimeError):
            async with locks.hold("s1"):
                raise RuntimeError("boom")
        async with locks.hold("s1"):
            pass
        assert len(backend) == 0

    @pytest.mark.asyncio
    async def test_idle_locks_are_dropped(self):
        locks, backend = _make_locks(timeout=0.05)
        async with locks.hold("s1"):
            assert len(backend) == 1
            with pytest.raises(SessionBusy):
                async with locks.hold("s1"):
                    pass
            assert len(backend) == 1
        assert len(backend) == 0


class TestRedisLockBackend:
    @pytest.mark.asyncio
    async def test_acquire_uses_prefixed_key_and_ttl(self):
        lock = MagicMock()
        lock.acquire = AsyncMock(return_value=True)
        lock.release = AsyncMock()
        redis = MagicMock()
        redis.lock.return_value = lock
        backend = RedisLockBackend(redis, "novachat:session", ttl=timedelta(seconds=30))

        handle = await backend.acquire("s1")
        await backend.release("s1", handle)

        redis.lock.assert_called_once_with(
            "novachat:session:s1", timeout=30.0, sleep=0.05
        )
        lock.release.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_expired_lock_release_is_logged(self, caplog):
        lock = MagicMock()
        lock.release = AsyncMock(side_effect=LockError("expired"))
        backend = RedisLockBackend(MagicMock(), "p", ttl=timedelta(seconds=5))

        await backend.release("s1", lock)

        assert "expired before release" in caplog.text
