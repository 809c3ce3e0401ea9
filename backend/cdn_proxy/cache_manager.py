"""
Proxy Cache Store

In-memory storage for proxied CDN responses, keyed by the exact target URL
(query string included).

Features:
- TTL-based expiry, checked lazily on read
- Periodic sweep of expired entries
- Full replacement on put, never partial update

Contract note: `get()` reports an expired entry as absent but leaves it in the
store. Any caller that observes a miss must `delete()` the key before
repopulating it.
"""

import logging
import time
from dataclasses import dataclass
from threading import Lock
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


@dataclass(frozen=True)
class CacheEntry:
    """A cached upstream response body."""
    payload: bytes
    content_type: str
    created_at: float    # Unix timestamp when cached

    def age(self, now: float) -> float:
        """Seconds elapsed since this entry was cached."""
        return now - self.created_at

    @property
    def size_bytes(self) -> int:
        return len(self.payload)


class ProxyCacheStore:
    """
    In-memory cache for proxied responses.

    All operations are total: there are no error conditions. Requests and
    the sweeper share one instance, so mutations are guarded by a lock in
    case the store is ever touched from a worker thread.
    """

    def __init__(self, ttl_seconds: float = 3600.0, clock: Optional[Clock] = None):
        """
        Args:
            ttl_seconds: Maximum age before an entry counts as expired
            clock: Callable returning the current Unix time (defaults to time.time)
        """
        self._store: Dict[str, CacheEntry] = {}
        self._lock = Lock()
        self.ttl_seconds = ttl_seconds
        self.clock: Clock = clock or time.time

    def __len__(self) -> int:
        return len(self._store)

    def __contains__(self, key: str) -> bool:
        return key in self._store

    def now(self) -> float:
        return self.clock()

    def get(self, key: str) -> Optional[CacheEntry]:
        """
        Get an unexpired entry.

        Returns:
            The CacheEntry if present and younger than the TTL, None otherwise.
            An expired entry is NOT removed here.
        """
        with self._lock:
            entry = self._store.get(key)
        if entry is None:
            return None
        if entry.age(self.now()) >= self.ttl_seconds:
            logger.debug(f"[ProxyCache] Expired: {key}")
            return None
        return entry

    def put(self, key: str, entry: CacheEntry) -> None:
        """Store an entry, replacing any existing one for the key."""
        with self._lock:
            self._store[key] = entry

    def delete(self, key: str) -> bool:
        """
        Remove an entry.

        Returns:
            True if an entry was removed, False if the key was absent.
        """
        with self._lock:
            return self._store.pop(key, None) is not None

    def sweep(self, now: Optional[float] = None, ttl: Optional[float] = None) -> int:
        """
        Remove every entry older than the TTL.

        Args:
            now: Reference time (defaults to the store clock)
            ttl: Maximum age in seconds (defaults to the store TTL)

        Returns:
            Number of entries removed.
        """
        now = self.now() if now is None else now
        ttl = self.ttl_seconds if ttl is None else ttl

        with self._lock:
            expired = [
                key for key, entry in self._store.items()
                if entry.age(now) > ttl
            ]
            for key in expired:
                del self._store[key]

        for key in expired:
            logger.info(f"[ProxyCache] Removed expired cache entry: {key}")
        return len(expired)

    def stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        with self._lock:
            total_size = sum(e.size_bytes for e in self._store.values())
            count = len(self._store)
        return {
            "total_entries": count,
            "total_size_bytes": total_size,
            "total_size_mb": round(total_size / (1024 * 1024), 2),
            "cache_ttl_seconds": self.ttl_seconds,
        }
