"""Single-process lock backend using ``asyncio`` primitives."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

from .base import LockBackend


@dataclass
class _KeyLock:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    users: int = 0


class LocalLockBackend(LockBackend):
    """One ``asyncio.Lock`` per key, dropped once nobody holds or awaits it."""

    def __init__(self) -> None:
        self._locks: dict[str, _KeyLock] = {}

    async def acquire(self, key: str) -> None:
        entry = self._locks.get(key)
        if entry is None:
            entry = self._locks[key] = _KeyLock()
        entry.users += 1
        try:
            await entry.lock.acquire()
        except BaseException:
            self._forget(key, entry)
            raise

    async def release(self, key: str, handle: None = None) -> None:
        entry = self._locks[key]
        entry.lock.release()
        self._forget(key, entry)

    def _forget(self, key: str, entry: _KeyLock) -> None:
        entry.users -= 1
        if entry.users == 0:
            del self._locks[key]

    def __len__(self) -> int:
        return len(self._locks)

    async def aclose(self) -> None:
        pass
