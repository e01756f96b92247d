"""Per-session message logs.

``SessionStore`` is the single persistence interface; the backend is
chosen at startup by ``storage.backend``:

* ``memory`` -- ``InMemorySessionStore`` (process-local, TTL + LRU eviction)
* ``database`` -- ``SqlSessionStore`` (``novachat.infra.db``)
"""

from .base import EMPTY_PREVIEW, SessionStore, SessionSummary, make_preview
from .deps import build_session_store, create_session_store, get_session_store
from .memory import InMemorySessionStore

__all__ = [
    "EMPTY_PREVIEW",
    "InMemorySessionStore",
    "SessionStore",
    "SessionSummary",
    "build_session_store",
    "create_session_store",
    "get_session_store",
    "make_preview",
]
