"""Key store lifespan hook.

Startup:
    Build the configured storage backend and secret generator, ping Redis
    when it is the backend, and publish an ``APIKeyManager`` on
    ``app.state.key_manager``.

Shutdown:
    Close the Redis client if one was opened.

Priority 100 starts the key store after observability (50) and auth (75).
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

from tessera.foundation.application.contributions import (
    LIFESPAN_PRIORITY_KEY_STORE,
    LifespanContribution,
)
from tessera.foundation.application.key_manager import APIKeyManager
from tessera.infra.auth.secret_generator import TokenSecretGenerator, UuidSecretGenerator
from tessera.infra.persistence.memory_storage import InMemoryKeyStorage
from tessera.infra.persistence.redis_client import get_redis_factory
from tessera.infra.persistence.redis_storage import RedisKeyStorage
from tessera.infra.persistence.settings import KeyStoreSettings, get_key_store_settings

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from tessera.foundation.domain.ports.key_storage import KeyStoragePort
    from tessera.foundation.domain.ports.secret_generator import SecretGeneratorPort

logger = logging.getLogger(__name__)


def build_secret_generator(settings: KeyStoreSettings) -> SecretGeneratorPort:
    if settings.secret_generator == "uuid":
        return UuidSecretGenerator()
    return TokenSecretGenerator(prefix=settings.secret_prefix)


async def build_storage(settings: KeyStoreSettings) -> KeyStoragePort:
    """Create the storage backend named by ``settings.storage_backend``.

    For Redis, the shared client is pinged so a bad URL fails startup
    instead of the first request.
    """
    if settings.storage_backend == "redis":
        client = await get_redis_factory().get_client()
        await client.ping()
        return RedisKeyStorage(client, namespace=settings.redis_namespace)
    return InMemoryKeyStorage()


@asynccontextmanager
async def _key_store_lifespan(app: Any) -> AsyncIterator[None]:
    settings = get_key_store_settings()

    # The finally also covers a failed ping, which leaves a client to close.
    try:
        storage = await build_storage(settings)
        app.state.key_manager = (
            APIKeyManager.builder()
            .with_storage(storage)
            .with_secret_generator(build_secret_generator(settings))
            .build()
        )
        logger.info(
            "key_store_lifespan: key manager ready",
            extra={
                "storage_backend": settings.storage_backend,
                "secret_generator": settings.secret_generator,
            },
        )
        yield
    finally:
        if settings.storage_backend == "redis":
            try:
                await get_redis_factory().close()
                logger.info("key_store_lifespan: redis client closed")
            except Exception:
                logger.warning("key_store_lifespan: failed to close redis client", exc_info=True)


lifespan_contribution = LifespanContribution(
    hook=_key_store_lifespan,
    priority=LIFESPAN_PRIORITY_KEY_STORE,
)
