"""Key store configuration using Pydantic settings.

Environment Variables:
    KEYS_STORAGE_BACKEND: ``memory`` (default) or ``redis``
    KEYS_SECRET_GENERATOR: ``token`` (default) or ``uuid``
    KEYS_SECRET_PREFIX: Prefix for token secrets (default: ``tk_``)
    KEYS_REDIS_NAMESPACE: Prefix for every Redis key (default: ``tessera``)

    REDIS_URL: Full connection URL, takes precedence over the fields below
    REDIS_HOST / REDIS_PORT / REDIS_DB / REDIS_PASSWORD
    REDIS_POOL_SIZE / REDIS_SOCKET_TIMEOUT / REDIS_SOCKET_CONNECT_TIMEOUT
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal
from urllib.parse import urlparse

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from tessera.infra.auth.secret_generator import DEFAULT_SECRET_PREFIX


class KeyStoreSettings(BaseSettings):
    """Selects the storage backend and secret generator for the key manager.

    Example:
        >>> settings = KeyStoreSettings()
        >>> settings.storage_backend
        'memory'
    """

    model_config = SettingsConfigDict(
        env_prefix="KEYS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    storage_backend: Literal["memory", "redis"] = Field(
        default="memory",
        description="Key storage backend",
    )
    secret_generator: Literal["token", "uuid"] = Field(
        default="token",
        description="Secret generation strategy",
    )
    secret_prefix: str = Field(
        default=DEFAULT_SECRET_PREFIX,
        max_length=16,
        description="Prefix of generated token secrets",
    )
    redis_namespace: str = Field(
        default="tessera",
        min_length=1,
        description="Prefix for every Redis key written by the key store",
    )


class RedisSettings(BaseSettings):
    """Connection and pool options for the Redis backend (``REDIS_*``).

        >>> RedisSettings(redis_host="myhost", redis_port=6380).get_url()
        'redis://myhost:6380/0'
        >>> RedisSettings.from_url("redis://cache:6379/2").redis_db
        2
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    redis_url: str | None = Field(default=None, description="Full Redis URL")
    redis_host: str = Field(default="localhost")
    redis_port: int = Field(default=6379, ge=1, le=65535)
    redis_db: int = Field(default=0, ge=0, le=15)
    redis_password: str | None = Field(default=None, repr=False)

    redis_pool_size: int = Field(default=10, ge=1, le=100)
    redis_socket_timeout: float = Field(default=5.0, ge=0.1)
    redis_socket_connect_timeout: float = Field(default=5.0, ge=0.1)

    @classmethod
    def from_url(cls, url: str) -> RedisSettings:
        """Split a ``redis://`` or ``rediss://`` URL into fields, keeping the URL.

        Raises:
            ValueError: On any other scheme or a non-numeric database path.
        """
        parts = urlparse(url)
        if parts.scheme not in {"redis", "rediss"}:
            raise ValueError(f"Unsupported Redis URL scheme {parts.scheme!r}")

        db_path = parts.path.strip("/")
        if db_path and not db_path.isdigit():
            raise ValueError(f"Redis URL path must be a database number, got {parts.path!r}")

        return cls(
            redis_url=url,
            redis_host=parts.hostname or "localhost",
            redis_port=parts.port or 6379,
            redis_db=int(db_path or 0),
            redis_password=parts.password,
        )

    def get_url(self) -> str:
        """The configured URL, or one assembled from the individual fields."""
        if self.redis_url:
            return self.redis_url
        credentials = f":{self.redis_password}@" if self.redis_password else ""
        return f"redis://{credentials}{self.redis_host}:{self.redis_port}/{self.redis_db}"


@lru_cache(maxsize=1)
def get_key_store_settings() -> KeyStoreSettings:
    """Get cached KeyStoreSettings. Clear with ``cache_clear()`` in tests."""
    return KeyStoreSettings()
