# app/services/redis_client.py
"""
Async Redis client backing the learning state store.

Reads and writes never raise: a failed read looks like a missing key and a
failed write returns False, so callers decide whether the miss matters.
"""

from collections.abc import Awaitable, Callable
from typing import TypeVar

import redis.asyncio as redis
from redis.asyncio.connection import ConnectionPool

from app.config import settings
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class FastRedisClient:
    """Pooled client shared by the whole process."""

    def __init__(self, url: str | None = None):
        self.url = url or settings.REDIS_URL
        self.pool: ConnectionPool | None = None
        self.client: redis.Redis | None = None
        self._initialized = False

    async def initialize(self):
        if self._initialized:
            return

        pool_config = settings.get_redis_pool_config()
        logger.info("Connecting to state store", url_preview=_redact(self.url), **pool_config)

        try:
            self.pool = ConnectionPool.from_url(
                self.url,
                retry_on_timeout=True,
                health_check_interval=30,
                decode_responses=True,
                **pool_config,
            )
            self.client = redis.Redis(connection_pool=self.pool)
            await self.client.ping()
        except Exception as e:
            logger.error("State store connection failed", error=str(e))
            self._initialized = False
            raise RuntimeError("Redis initialization failed") from e

        self._initialized = True
        logger.info("State store connected")

    async def close(self):
        try:
            if self.client:
                await self.client.aclose()
            if self.pool:
                await self.pool.disconnect()
        except Exception as e:
            logger.error("Error closing state store connection", error=str(e))
        finally:
            self._initialized = False
        logger.info("State store connection closed")

    async def ping(self) -> bool:
        return await self._guarded("PING", "", lambda c: c.ping(), False)

    async def get(self, key: str) -> str | None:
        value = await self._guarded("GET", key, lambda c: c.get(key), None)
        return value or None

    async def set_with_ttl(self, key: str, value: str, ttl_s: int | None = None) -> bool:
        """SET, or SETEX when a TTL is given. Learning state is stored without one."""
        if ttl_s:
            result = await self._guarded("SETEX", key, lambda c: c.setex(key, ttl_s, value), False)
        else:
            result = await self._guarded("SET", key, lambda c: c.set(key, value), False)
        return bool(result)

    async def delete(self, key: str) -> bool:
        removed = await self._guarded("DEL", key, lambda c: c.delete(key), 0)
        return removed > 0

    async def _guarded(
        self,
        command: str,
        key: str,
        call: Callable[[redis.Redis], Awaitable[T]],
        fallback: T,
    ) -> T:
        try:
            if not self._initialized:
                logger.warning("State store used before startup, connecting lazily")
                await self.initialize()
            return await call(self.client)
        except Exception as e:
            logger.error("Redis command failed", command=command, key=key[:40], error=str(e))
            return fallback


def _redact(url: str) -> str:
    """Hide credentials before a URL reaches the logs."""
    if "@" not in url:
        return url[:40]
    scheme, _, rest = url.partition("://")
    return f"{scheme}://***@{rest.split('@', 1)[1]}"[:40]


# Global instance
fast_redis = FastRedisClient()
