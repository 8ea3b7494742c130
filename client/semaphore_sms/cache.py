"""
Response cache for read-only Semaphore API calls

GET responses are memoized for a short window so identical lookups
(account balance, message listings) do not hit the API repeatedly.
The store is shared between client instances by default.
"""

import copy
import hashlib
import threading
import time
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional, Tuple
from urllib.parse import urlencode

# Seconds a cached GET response stays valid
CACHE_TTL = 30

CACHE_KEY_PREFIX = "semaphore:"


def make_cache_key(path: str, query: Optional[Dict[str, Any]] = None) -> str:
    """
    Build a deterministic cache key for a GET request

    Query parameters are sorted by name so the same filters given in a
    different order map to the same entry.

    Args:
        path: API endpoint path relative to the base URI
        query: Query parameters (including the apikey)

    Returns:
        str: Prefixed md5 digest of the request signature
    """
    items = sorted((query or {}).items())
    signature = f"{path}?{urlencode(items)}"
    return CACHE_KEY_PREFIX + hashlib.md5(signature.encode("utf-8")).hexdigest()


class ResponseCache(ABC):
    """Key/value store with per-entry expiry"""

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        """Return the live value for key, or None"""

    @abstractmethod
    def set(self, key: str, value: Any, ttl: float) -> None:
        """Store value under key for ttl seconds"""

    def remember(self, key: str, ttl: float, producer: Callable[[], Any]) -> Any:
        """Return the live entry for key, or compute, store and return it"""
        value = self.get(key)
        if value is not None:
            return value
        value = producer()
        self.set(key, value, ttl)
        return value


class InMemoryCache(ResponseCache):
    """
    Process-local cache guarded by a lock

    Values are copied on the way in and out so callers never share a
    mutable response with later cache hits. Expired entries are swept on
    write once the store holds sweep_threshold entries or more.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic, sweep_threshold: int = 256):
        self._clock = clock
        self._sweep_threshold = sweep_threshold
        self._entries: Dict[str, Tuple[float, Any]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, value = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                return None
            return copy.deepcopy(value)

    def set(self, key: str, value: Any, ttl: float) -> None:
        value = copy.deepcopy(value)
        with self._lock:
            now = self._clock()
            if len(self._entries) >= self._sweep_threshold:
                self._sweep(now)
            self._entries[key] = (now + ttl, value)

    def _sweep(self, now: float) -> None:
        # caller holds the lock
        expired = [k for k, (expires_at, _) in self._entries.items() if now >= expires_at]
        for k in expired:
            del self._entries[k]

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


_shared_cache: Optional[InMemoryCache] = None
_shared_lock = threading.Lock()


def shared_cache() -> InMemoryCache:
    """Get the process-wide cache, creating it on first use"""
    global _shared_cache
    with _shared_lock:
        if _shared_cache is None:
            _shared_cache = InMemoryCache()
        return _shared_cache
