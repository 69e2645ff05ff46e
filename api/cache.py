"""
In-memory TTL cache for API responses (SCOPEGREEN lookups).
Key: opaque string built by the caller. Value: serialized text with an expiry.
Stores are scoped per user, like a spreadsheet user cache, and both the entries
and the set of user scopes are bounded.
"""

import threading
import time
from typing import Callable

from cachetools import LRUCache, TLRUCache

CACHE_TTL_SECONDS = 120
MAX_ENTRIES_PER_USER = 1024
MAX_USER_SCOPES = 256


def _expires_at(key: str, item: tuple[float, str], now: float) -> float:
    ttl_seconds, _ = item
    return now + ttl_seconds


class TTLCache:
    """Key/value store of text blobs that expire after ttl_seconds."""

    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        maxsize: int = MAX_ENTRIES_PER_USER,
    ) -> None:
        self._lock = threading.Lock()
        # key -> (ttl_seconds, value); expired entries are swept on every put
        self._entries: TLRUCache = TLRUCache(maxsize=maxsize, ttu=_expires_at, timer=clock)

    def get(self, key: str) -> str | None:
        """Return cached value if present and not expired, else None."""
        with self._lock:
            item = self._entries.get(key)
        return item[1] if item is not None else None

    def put(self, key: str, value: str, ttl_seconds: float = CACHE_TTL_SECONDS) -> None:
        """Store value under key for ttl_seconds."""
        with self._lock:
            self._entries[key] = (ttl_seconds, value)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


# Module-level stores; one per user scope, least recently used scope dropped first
_stores: LRUCache = LRUCache(maxsize=MAX_USER_SCOPES)
_stores_lock = threading.Lock()


def get_user_cache(user: str | None = None) -> TTLCache:
    """Return the cache store for a user scope ("default" when user is empty)."""
    scope = (user or "").strip() or "default"
    with _stores_lock:
        store = _stores.get(scope)
        if store is None:
            store = TTLCache()
            _stores[scope] = store
        return store


def clear() -> None:
    """Clear every user cache (e.g. for tests)."""
    with _stores_lock:
        _stores.clear()
