"""Connection handling for the Redis key store.

One ``redis.asyncio`` client per process, created on first use from
``RedisSettings`` and closed by the key store lifespan hook. Replies are
decoded to ``str``: the store only keeps JSON documents and hex digests.
"""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from typing import Any

import redis.asyncio as aioredis

from tessera.infra.persistence.settings import RedisSettings

logger = logging.getLogger(__name__)


class RedisFactory:
    """Owns the pooled client for a single Redis deployment.

    Example:
        >>> factory = RedisFactory.from_url("redis://localhost:6379/0")
        >>> client = await factory.get_client()
        >>> await factory.close()
    """

    def __init__(self, settings: RedisSettings) -> None:
        self._settings = settings
        self._client: Any = None

    @classmethod
    def from_env(cls) -> RedisFactory:
        # REDIS_URL wins over the individual REDIS_* fields.
        url = os.getenv("REDIS_URL")
        return cls.from_url(url) if url else cls(RedisSettings())

    @classmethod
    def from_url(cls, url: str) -> RedisFactory:
        return cls(RedisSettings.from_url(url))

    @property
    def settings(self) -> RedisSettings:
        return self._settings

    @property
    def is_open(self) -> bool:
        return self._client is not None

    async def get_client(self) -> Any:
        """Return the shared client, connecting lazily."""
        if not self.is_open:
            self._client = self._create_client()
        return self._client

    def _create_client(self) -> Any:
        s = self._settings
        logger.info(
            "redis_client_created",
            extra={"host": s.redis_host, "port": s.redis_port, "db": s.redis_db},
        )
        return aioredis.from_url(  # type: ignore[no-untyped-call]
            s.get_url(),
            decode_responses=True,
            max_connections=s.redis_pool_size,
            socket_timeout=s.redis_socket_timeout,
            socket_connect_timeout=s.redis_socket_connect_timeout,
        )

    async def close(self) -> None:
        client, self._client = self._client, None
        if client is not None:
            await client.aclose()
            logger.info("redis_client_closed")


@lru_cache(maxsize=1)
def get_redis_factory() -> RedisFactory:
    """Process-wide factory built from the environment."""
    return RedisFactory.from_env()
