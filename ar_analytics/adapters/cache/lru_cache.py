"""
In-process LRU cache implementation.
Bounded by entry count and total payload size; least recently used entries are
evicted first. All operations are guarded by a single lock so the cache can be
shared by concurrent requests and worker threads.
"""

from collections import OrderedDict
from fnmatch import fnmatchcase
from typing import Optional, Tuple
import logging
import threading
import time

from ...core.ports.cache_service import CacheService
from ...core.ports.logger import Logger


class LRUCache(CacheService):
    """LRU implementation of the CacheService interface."""

    def __init__(
        self,
        max_entries: int = 1024,
        max_bytes: Optional[int] = None,
        default_ttl: Optional[int] = None,
        logger: Optional[Logger] = None,
        clock=time.monotonic
    ):
        """
        Initialize the cache.

        Args:
            max_entries: Maximum number of entries kept
            max_bytes: Maximum total payload size in bytes, None for unbounded
            default_ttl: Default TTL in seconds, None for entries that never expire
            logger: Logger instance
            clock: Monotonic time source
        """
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.max_entries = max_entries
        self.max_bytes = max_bytes
        self.default_ttl = default_ttl
        self.logger = logger or logging.getLogger(__name__)
        self._clock = clock
        self._entries: "OrderedDict[str, Tuple[bytes, Optional[float]]]" = OrderedDict()
        self._size = 0
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0
        self.evictions = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    @property
    def size_bytes(self) -> int:
        return self._size

    def _expired(self, expires_at: Optional[float]) -> bool:
        return expires_at is not None and self._clock() >= expires_at

    def _remove(self, key: str) -> None:
        payload, _ = self._entries.pop(key)
        self._size -= len(payload)

    async def get(self, key: str) -> Optional[bytes]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and self._expired(entry[1]):
                self._remove(key)
                entry = None

            if entry is None:
                self.misses += 1
                self.logger.debug(f"Cache MISS for key: {key}")
                return None

            self._entries.move_to_end(key)
            self.hits += 1
            self.logger.debug(f"Cache HIT for key: {key}")
            return entry[0]

    async def set(self, key: str, value: bytes, ttl: Optional[int] = None) -> bool:
        payload = bytes(value)
        if self.max_bytes is not None and len(payload) > self.max_bytes:
            self.logger.warning(f"Payload for {key} exceeds cache capacity ({len(payload)} bytes), not cached")
            return False

        ttl_to_use = ttl if ttl is not None else self.default_ttl
        expires_at = self._clock() + ttl_to_use if ttl_to_use else None

        with self._lock:
            if key in self._entries:
                self._remove(key)
            self._entries[key] = (payload, expires_at)
            self._size += len(payload)
            self._evict()

        self.logger.debug(f"Cache SET for key: {key} ({len(payload)} bytes)")
        return True

    def _evict(self) -> None:
        # caller holds the lock
        while len(self._entries) > self.max_entries or (
            self.max_bytes is not None and self._size > self.max_bytes
        ):
            oldest = next(iter(self._entries))
            self._remove(oldest)
            self.evictions += 1
            self.logger.debug(f"Cache EVICT for key: {oldest}")

    async def delete(self, key: str) -> bool:
        with self._lock:
            if key not in self._entries:
                return False
            self._remove(key)
            return True

    async def exists(self, key: str) -> bool:
        with self._lock:
            entry = self._entries.get(key)
            return entry is not None and not self._expired(entry[1])

    async def clear_pattern(self, pattern: str) -> int:
        with self._lock:
            matching = [key for key in self._entries if fnmatchcase(key, pattern)]
            for key in matching:
                self._remove(key)
        self.logger.debug(f"Cache CLEAR pattern: {pattern} (deleted: {len(matching)} keys)")
        return len(matching)

    async def get_ttl(self, key: str) -> Optional[int]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None or entry[1] is None:
                return None
            remaining = entry[1] - self._clock()
            return int(remaining) if remaining > 0 else None

    async def flush_db(self) -> bool:
        with self._lock:
            self._entries.clear()
            self._size = 0
        self.logger.warning("LRU cache flushed")
        return True

    async def get_info(self) -> dict:
        """Cache statistics."""
        with self._lock:
            return {
                "backend": "memory",
                "entries": len(self._entries),
                "size_bytes": self._size,
                "max_entries": self.max_entries,
                "max_bytes": self.max_bytes,
                "hits": self.hits,
                "misses": self.misses,
                "evictions": self.evictions,
            }
