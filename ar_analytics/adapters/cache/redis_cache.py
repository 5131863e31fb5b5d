"""
Redis Cache Implementation.
Shared result cache for deployments running several service processes.
Payloads are rendered response bytes and are stored undecoded.
"""

import redis.asyncio as redis
from typing import Any, Awaitable, Callable, Optional
import logging

from ...core.ports.cache_service import CacheService
from ...core.ports.logger import Logger


class RedisCache(CacheService):
    """
    Redis implementation of the CacheService interface.

    Every operation is best-effort: when Redis is unreachable or a command
    fails the error is logged and the operation's neutral value is returned
    (miss, not stored, nothing deleted).
    """

    def __init__(
        self,
        host: str,
        port: int,
        password: Optional[str] = None,
        db: int = 0,
        default_ttl: int = 3600,
        logger: Optional[Logger] = None
    ):
        """
        Initialize Redis cache settings; call ``connect`` before use.

        Args:
            host: Redis server host
            port: Redis server port
            password: Redis password (optional)
            db: Redis database number
            default_ttl: TTL in seconds for writes that do not pass one
            logger: Logger instance
        """
        self.host = host
        self.port = port
        self.password = password
        self.db = db
        self.default_ttl = default_ttl
        self.logger = logger or logging.getLogger(__name__)
        self._redis: Optional[redis.Redis] = None

    @property
    def url(self) -> str:
        if self.password:
            return f"redis://:{self.password}@{self.host}:{self.port}/{self.db}"
        return f"redis://{self.host}:{self.port}/{self.db}"

    @property
    def is_connected(self) -> bool:
        return self._redis is not None

    async def connect(self) -> bool:
        """
        Open the client and ping the server.

        Returns:
            True if the server answered, False otherwise
        """
        try:
            self._redis = redis.from_url(
                self.url,
                decode_responses=False,
                socket_connect_timeout=5,
                socket_timeout=5,
                health_check_interval=30,
            )
            await self._redis.ping()
        except Exception as e:
            self.logger.error(f"Failed to connect to Redis at {self.host}:{self.port}: {e}")
            self._redis = None
            return False

        self.logger.info(f"Connected to Redis at {self.host}:{self.port}/{self.db}")
        return True

    async def disconnect(self):
        if self._redis:
            await self._redis.aclose()
            self._redis = None
            self.logger.info("Disconnected from Redis")

    async def _available(self) -> bool:
        """Ping the current client, reconnecting once when it is gone or stale."""
        if self._redis is None:
            return await self.connect()
        try:
            await self._redis.ping()
            return True
        except Exception:
            self.logger.warning("Redis connection lost, reconnecting")
            return await self.connect()

    async def _run(self, operation: str, default: Any, command: Callable[[], Awaitable[Any]]) -> Any:
        if not await self._available():
            return default
        try:
            return await command()
        except Exception as e:
            self.logger.error(f"Redis {operation} failed: {e}")
            return default

    async def get(self, key: str) -> Optional[bytes]:
        value = await self._run("GET", None, lambda: self._redis.get(key))
        self.logger.debug(f"Redis {'hit' if value is not None else 'miss'} for {key}")
        return value

    async def set(self, key: str, value: bytes, ttl: Optional[int] = None) -> bool:
        expire = ttl if ttl is not None else self.default_ttl
        stored = await self._run("SETEX", False, lambda: self._redis.setex(key, expire, value))
        return bool(stored)

    async def delete(self, key: str) -> bool:
        return bool(await self._run("DEL", 0, lambda: self._redis.delete(key)))

    async def exists(self, key: str) -> bool:
        return bool(await self._run("EXISTS", 0, lambda: self._redis.exists(key)))

    async def clear_pattern(self, pattern: str) -> int:
        async def scan_and_delete() -> int:
            keys = [key async for key in self._redis.scan_iter(match=pattern)]
            if not keys:
                return 0
            return await self._redis.delete(*keys)

        removed = await self._run(f"clear of {pattern}", 0, scan_and_delete)
        self.logger.debug(f"Removed {removed} Redis keys matching {pattern}")
        return removed

    async def get_ttl(self, key: str) -> Optional[int]:
        ttl = await self._run("TTL", None, lambda: self._redis.ttl(key))
        # -2: no such key, -1: key without expiry
        if ttl is None or ttl < 0:
            return None
        return ttl

    async def flush_db(self) -> bool:
        async def flush() -> bool:
            await self._redis.flushdb()
            self.logger.warning(f"Redis database {self.db} flushed")
            return True

        return await self._run("FLUSHDB", False, flush)

    async def get_info(self) -> dict:
        """Server statistics relevant to the result cache."""
        info = await self._run("INFO", None, lambda: self._redis.info())
        if not info:
            return {}
        return {
            "backend": "redis",
            "redis_version": info.get("redis_version", "unknown"),
            "used_memory": info.get("used_memory_human", "unknown"),
            "hits": info.get("keyspace_hits", 0),
            "misses": info.get("keyspace_misses", 0),
            "evictions": info.get("evicted_keys", 0),
        }
