"""Redis counter store for production rate limiting."""

import structlog
from redis import asyncio as aioredis
from redis.exceptions import RedisError

from waitlist.core.exceptions import StorageError
from waitlist.storage.base import CounterStore

logger = structlog.get_logger()


class RedisCounterStore(CounterStore):
    """Counter store backed by Redis INCR / EXPIRE / TTL."""

    def __init__(self, url: str, client: aioredis.Redis | None = None) -> None:
        self._url = url
        self._client = client

    @property
    def client(self) -> aioredis.Redis:
        """Lazily created Redis client, shared with the audit sink."""
        if self._client is None:
            self._client = aioredis.from_url(self._url, encoding="utf-8", decode_responses=True)
            logger.info("Redis client initialized")
        return self._client

    async def incr(self, key: str) -> int:
        try:
            return int(await self.client.incr(key))
        except RedisError as e:
            raise StorageError(f"Redis INCR failed: {e}", operation="incr") from e

    async def expire(self, key: str, seconds: int) -> None:
        try:
            await self.client.expire(key, seconds)
        except RedisError as e:
            raise StorageError(f"Redis EXPIRE failed: {e}", operation="expire") from e

    async def ttl(self, key: str) -> int:
        try:
            return int(await self.client.ttl(key))
        except RedisError as e:
            raise StorageError(f"Redis TTL failed: {e}", operation="ttl") from e

    async def health_check(self) -> bool:
        try:
            return bool(await self.client.ping())
        except RedisError as e:
            logger.error("Redis health check failed", error=str(e))
            return False

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
