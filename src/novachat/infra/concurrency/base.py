"""Concurrency primitives: abstract lock backend and exceptions."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class SessionBusy(Exception):
    """Raised when a session's lock cannot be acquired within the timeout."""


# ---------------------------------------------------------------------------
# Abstract backend
# ---------------------------------------------------------------------------


class LockBackend(ABC):
    """Interface for keyed mutual-exclusion backends."""

    @abstractmethod
    async def acquire(self, key: str) -> Any:
        """Wait until *key* is free, then claim it.

        Returns:
            An opaque handle that must be passed back to ``release``.
        """

    @abstractmethod
    async def release(self, key: str, handle: Any) -> None:
        """Free *key* so the next waiter can proceed."""

    @abstractmethod
    async def aclose(self) -> None:
        """Release any resources held by the backend."""
