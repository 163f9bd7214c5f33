"""Tessera Infra Persistence -- key storage backends, Redis client, key store lifespan."""

from tessera.infra.persistence.lifespan import (
    build_secret_generator,
    build_storage,
    lifespan_contribution,
)
from tessera.infra.persistence.memory_storage import InMemoryKeyStorage
from tessera.infra.persistence.redis_client import RedisFactory, get_redis_factory
from tessera.infra.persistence.redis_storage import RedisKeyStorage, secret_digest
from tessera.infra.persistence.settings import (
    KeyStoreSettings,
    RedisSettings,
    get_key_store_settings,
)

__all__ = [
    "InMemoryKeyStorage",
    "KeyStoreSettings",
    "RedisFactory",
    "RedisKeyStorage",
    "RedisSettings",
    "build_secret_generator",
    "build_storage",
    "get_key_store_settings",
    "get_redis_factory",
    "lifespan_contribution",
    "secret_digest",
]
