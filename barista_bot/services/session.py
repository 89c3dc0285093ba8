"""
Session Management Service for Barista Bot
==========================================

This module keeps conversation state in memory, keyed by session id. There is
no durable storage: a session that expires or is evicted is gone.

Architecture Overview:
----------------------
- **InMemorySessionStore**: Session aggregates with TTL expiry, LRU eviction,
  per-key locks and optimistic version checks.
- **ResponseCache**: Bounded FIFO of rendered replies so a retried request
  for the same turn is answered without re-running the turn.

Isolation:
----------
The store never hands out the object it holds. get() returns a deep copy and
set() stores a deep copy, so a caller mutating its working copy cannot leak
changes into the store before it commits them.

Concurrency:
------------
Turns for one session are serialized by holding lock(session_id) for the
whole read-process-write cycle. On top of that, every stored Session carries
a version number; set() with expected_version rejects a write whose base
version is no longer the stored one (StaleSessionWrite). Different session
ids never block each other.

Cache Eviction Strategy:
------------------------
1. **TTL-based**: Sessions not accessed within SESSION_TTL_SECONDS expire.
   An expired entry is dropped when it is next read; a full sweep runs
   probabilistically (~1% of reads).

2. **LRU-based**: When the store reaches SESSION_MAX_CACHE_SIZE, the oldest
   10% of sessions (by last access time) are evicted to make room. Sessions
   whose lock is currently held are never evicted.

Usage:
------
    from barista_bot.services.session import InMemorySessionStore

    store = InMemorySessionStore()
    session = store.create()

    with store.lock(session.session_id):
        working = store.get(session.session_id)
        working.turn_count += 1
        store.set(working.session_id, working, expected_version=working.version)
"""

import logging
import random
import threading
import time
import uuid
from collections import OrderedDict
from contextlib import contextmanager
from typing import Any, Callable, Dict, Hashable, Iterator, Optional

from ..config import RESPONSE_CACHE_SIZE, SESSION_MAX_CACHE_SIZE, SESSION_TTL_SECONDS
from ..tasks.errors import StaleSessionWrite
from ..tasks.models import Session


logger = logging.getLogger(__name__)


# =============================================================================
# Session Store
# =============================================================================

class InMemorySessionStore:
    """
    Thread-safe in-memory session store.

    Args:
        ttl_seconds: Idle time after which a session expires
        max_size: Maximum number of sessions kept
        clock: Time source returning seconds (injectable for tests)
    """

    def __init__(
        self,
        ttl_seconds: int = SESSION_TTL_SECONDS,
        max_size: int = SESSION_MAX_CACHE_SIZE,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self.max_size = max_size
        self._clock = clock

        # {session_id: {"session": Session, "last_access": timestamp}}
        self._entries: Dict[str, Dict[str, Any]] = {}
        self._cache_lock = threading.Lock()

        # Per-session locks and how many callers hold or wait on each
        self._key_locks: Dict[str, threading.Lock] = {}
        self._lock_users: Dict[str, int] = {}

    # -------------------------------------------------------------------------
    # Maintenance (callers must hold _cache_lock)
    # -------------------------------------------------------------------------

    def _is_expired(self, entry: Dict[str, Any], now: float) -> bool:
        return now - entry["last_access"] > self.ttl_seconds

    def _cleanup_expired_locked(self, now: float) -> int:
        expired = [
            sid for sid, entry in self._entries.items()
            if self._is_expired(entry, now) and sid not in self._lock_users
        ]
        for sid in expired:
            del self._entries[sid]
        if expired:
            logger.debug("Cleaned up %d expired sessions", len(expired))
        return len(expired)

    def _evict_oldest_locked(self, count: int) -> int:
        candidates = sorted(
            (item for item in self._entries.items() if item[0] not in self._lock_users),
            key=lambda item: item[1]["last_access"],
        )
        to_remove = candidates[:count]
        for sid, _ in to_remove:
            del self._entries[sid]
        if to_remove:
            logger.debug("Evicted %d oldest sessions", len(to_remove))
        return len(to_remove)

    def cleanup_expired(self) -> int:
        """Remove every expired session. Returns the number removed."""
        with self._cache_lock:
            return self._cleanup_expired_locked(self._clock())

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def get(self, key: str) -> Optional[Session]:
        """
        Return a deep copy of the stored session, or None if absent or expired.

        Refreshes the session's last access time.
        """
        if random.randint(1, 100) == 1:
            self.cleanup_expired()

        with self._cache_lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            now = self._clock()
            if self._is_expired(entry, now) and key not in self._lock_users:
                del self._entries[key]
                logger.debug("Session %s expired", key)
                return None
            entry["last_access"] = now
            return entry["session"].model_copy(deep=True)

    def set(self, key: str, session: Session, expected_version: Optional[int] = None) -> int:
        """
        Store a copy of the session and bump its version.

        Args:
            key: Session id
            session: Session to store; its version is updated in place
            expected_version: Version the caller read. When given, the write
                is rejected if the stored version differs (0 means "absent").

        Returns:
            The new stored version

        Raises:
            StaleSessionWrite: The stored version is not expected_version
        """
        with self._cache_lock:
            now = self._clock()
            entry = self._entries.get(key)
            actual = entry["session"].version if entry is not None else 0

            if expected_version is not None and expected_version != actual:
                logger.warning(
                    "Rejected stale write for session %s (expected v%s, stored v%s)",
                    key, expected_version, actual,
                )
                raise StaleSessionWrite(key, expected_version, actual)

            if entry is None and len(self._entries) >= self.max_size:
                self._cleanup_expired_locked(now)
                if len(self._entries) >= self.max_size:
                    self._evict_oldest_locked(max(1, self.max_size // 10))

            session.version = actual + 1
            self._entries[key] = {
                "session": session.model_copy(deep=True),
                "last_access": now,
            }
            return session.version

    def create(self, key: Optional[str] = None) -> Session:
        """
        Create and store a fresh session; a random id is used when key is None.

        An expired session under the same key is replaced.

        Raises:
            StaleSessionWrite: A live session is already stored under key
        """
        session = Session(session_id=key or str(uuid.uuid4()))
        with self._cache_lock:
            entry = self._entries.get(session.session_id)
            if (
                entry is not None
                and self._is_expired(entry, self._clock())
                and session.session_id not in self._lock_users
            ):
                del self._entries[session.session_id]
        self.set(session.session_id, session, expected_version=0)
        logger.info("Created session %s", session.session_id)
        return session

    def delete(self, key: str) -> bool:
        """Remove a session. Returns True if it existed."""
        with self._cache_lock:
            return self._entries.pop(key, None) is not None

    @contextmanager
    def lock(self, key: str) -> Iterator[None]:
        """
        Hold the lock of one session for the duration of the block.

        Callers processing the same session are serialized; other sessions
        are unaffected. A session whose lock is held is never evicted.
        """
        with self._cache_lock:
            key_lock = self._key_locks.get(key)
            if key_lock is None:
                key_lock = self._key_locks[key] = threading.Lock()
            self._lock_users[key] = self._lock_users.get(key, 0) + 1

        key_lock.acquire()
        try:
            yield
        finally:
            key_lock.release()
            with self._cache_lock:
                self._lock_users[key] -= 1
                if self._lock_users[key] == 0:
                    del self._lock_users[key]
                    del self._key_locks[key]

    def stats(self) -> Dict[str, Any]:
        """Get store statistics for monitoring."""
        with self._cache_lock:
            return {
                "size": len(self._entries),
                "max_size": self.max_size,
                "ttl_seconds": self.ttl_seconds,
                "locked": len(self._lock_users),
            }

    def __len__(self) -> int:
        with self._cache_lock:
            return len(self._entries)

    def __contains__(self, key: str) -> bool:
        with self._cache_lock:
            return key in self._entries


# =============================================================================
# Response Cache
# =============================================================================

class ResponseCache:
    """
    Bounded FIFO cache of rendered replies.

    Keys are (utterance, turn, session_id) tuples built by the conversation
    service; once full, the oldest entry is dropped.
    """

    def __init__(self, max_size: int = RESPONSE_CACHE_SIZE):
        self.max_size = max_size
        self._entries: "OrderedDict[Hashable, Any]" = OrderedDict()
        self._lock = threading.Lock()

    def get(self, key: Hashable) -> Optional[Any]:
        with self._lock:
            return self._entries.get(key)

    def put(self, key: Hashable, value: Any) -> None:
        if self.max_size <= 0:
            return
        with self._lock:
            if key in self._entries:
                self._entries[key] = value
                return
            while len(self._entries) >= self.max_size:
                self._entries.popitem(last=False)
            self._entries[key] = value

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: Hashable) -> bool:
        with self._lock:
            return key in self._entries
