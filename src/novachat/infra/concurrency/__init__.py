"""Per-session write serialization.

Two concrete lock backends:

* Redis -- distributed, one expiring key per session.  Used when Redis
  answers a ping at startup.
* Local -- in-process ``asyncio.Lock`` per session, garbage-collected
  once no request holds or awaits it.
"""

from .base import LockBackend, SessionBusy
from .local_backend import LocalLockBackend
from .redis_backend import RedisLockBackend
from .session_lock import SessionLocks, build_session_locks, get_session_locks

__all__ = [
    "LocalLockBackend",
    "LockBackend",
    "RedisLockBackend",
    "SessionBusy",
    "SessionLocks",
    "build_session_locks",
    "get_session_locks",
]
