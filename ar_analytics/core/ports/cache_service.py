"""
Cache Service Port - Abstract interface for the result cache.
Stores rendered response payloads keyed by endpoint name and canonical request input.
"""

from abc import ABC, abstractmethod
from typing import Optional, Tuple
import hashlib
import json
import logging


_logger = logging.getLogger(__name__)


class CacheService(ABC):
    """Abstract base class for cache service implementations."""

    @abstractmethod
    async def get(self, key: str) -> Optional[bytes]:
        """
        Retrieve a value from cache by key.

        Args:
            key: Cache key to retrieve

        Returns:
            Cached payload, None if not found or expired
        """
        pass

    @abstractmethod
    async def set(self, key: str, value: bytes, ttl: Optional[int] = None) -> bool:
        """
        Store a value in cache with optional TTL.

        Args:
            key: Cache key
            value: Payload to cache
            ttl: Time to live in seconds, None for the backend default

        Returns:
            True if successfully cached, False otherwise
        """
        pass

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """
        Delete a key from cache.

        Returns:
            True if key was deleted, False if key didn't exist
        """
        pass

    @abstractmethod
    async def exists(self, key: str) -> bool:
        pass

    @abstractmethod
    async def clear_pattern(self, pattern: str) -> int:
        """
        Delete all keys matching a glob pattern (e.g. "ngis:*").

        Returns:
            Number of keys deleted
        """
        pass

    @abstractmethod
    async def get_ttl(self, key: str) -> Optional[int]:
        """
        Get remaining time to live for a key.

        Returns:
            TTL in seconds, None if key doesn't exist or has no TTL
        """
        pass

    @abstractmethod
    async def flush_db(self) -> bool:
        """Drop every entry. Returns True on success."""
        pass

    # Helper methods for common cache operations

    def generate_cache_key(self, prefix: str, **kwargs) -> str:
        """
        Generate a consistent cache key from parameters.

        Args:
            prefix: Logical endpoint name (e.g. "ngis", "results")
            **kwargs: Canonical input parameters

        Returns:
            Key of the form "<prefix>:<sha256 of the sorted parameters>"
        """
        # Sort kwargs for consistent key generation
        canonical = json.dumps(
            {k: v for k, v in sorted(kwargs.items()) if v is not None},
            sort_keys=True,
            separators=(',', ':'),
            default=str
        )
        digest = hashlib.sha256(canonical.encode("utf-8")).hexdigest()
        return f"{prefix}:{digest}"

    async def lookup(self, endpoint: str, canonical_input: dict) -> Tuple[bool, Optional[bytes]]:
        """
        Best-effort lookup; any cache fault counts as a miss.

        Returns:
            (hit, payload)
        """
        key = self.generate_cache_key(endpoint, **canonical_input)
        try:
            payload = await self.get(key)
        except Exception as e:
            _logger.warning(f"Cache lookup failed for {key}, treating as miss: {e}")
            return False, None
        return payload is not None, payload

    async def store(
        self,
        endpoint: str,
        canonical_input: dict,
        payload: bytes,
        ttl: Optional[int] = None
    ) -> bool:
        """Best-effort write; any cache fault is logged and reported as False."""
        key = self.generate_cache_key(endpoint, **canonical_input)
        try:
            return await self.set(key, payload, ttl)
        except Exception as e:
            _logger.warning(f"Cache store failed for {key}, continuing without cache: {e}")
            return False


class CacheKeyPatterns:
    """Logical endpoint names used as cache key prefixes."""

    SITES = "sites"
    NGIS = "ngis"
    RESULTS = "results"


class CacheTTL:
    """TTL in seconds for cached result payloads."""

    LONG = 3600  # 1 hour
