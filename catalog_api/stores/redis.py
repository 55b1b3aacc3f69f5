"""
Redis key-value store for registry listings and latest pointers.

Uses redis-py's asyncio client with a connection pool. Values are read
as raw bytes; this layer never re-serializes what the publisher wrote.
"""

from __future__ import annotations

import logging
from typing import Optional

from .core import KVStore

logger = logging.getLogger("catalog_api.stores.redis")


class RedisKVStore(KVStore):
    """
    Redis-backed key-value store.

    Features:
    - Connection pool with configurable size
    - Optional key prefix shared with the publisher
    - Health check via PING
    """

    __slots__ = (
        "_url",
        "_max_connections",
        "_socket_timeout",
        "_connect_timeout",
        "_key_prefix",
        "_redis",
    )

    def __init__(
        self,
        url: str = "redis://localhost:6379/0",
        max_connections: int = 10,
        socket_timeout: float = 5.0,
        connect_timeout: float = 5.0,
        key_prefix: str = "",
        client=None,
    ):
        self._url = url
        self._max_connections = max_connections
        self._socket_timeout = socket_timeout
        self._connect_timeout = connect_timeout
        self._key_prefix = key_prefix
        self._redis = client

    async def initialize(self) -> None:
        """Connect to Redis and create connection pool."""
        if self._redis is not None:
            return

        import redis.asyncio as aioredis

        try:
            self._redis = aioredis.from_url(
                self._url,
                max_connections=self._max_connections,
                socket_timeout=self._socket_timeout,
                socket_connect_timeout=self._connect_timeout,
                decode_responses=False,
            )
            await self._redis.ping()
            logger.info("Redis kv store connected: %s", self._url)
        except Exception as e:
            logger.error("Failed to connect to Redis: %s", e)
            raise

    async def shutdown(self) -> None:
        """Close Redis connection pool."""
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None

    def _full_key(self, key: str) -> str:
        return f"{self._key_prefix}{key}"

    async def _get(self, key: str) -> Optional[bytes]:
        if self._redis is None:
            raise RuntimeError("Redis kv store used before initialize()")
        return await self._redis.get(self._full_key(key))

    async def health_check(self) -> bool:
        if self._redis is None:
            return False
        try:
            return bool(await self._redis.ping())
        except Exception:
            return False
