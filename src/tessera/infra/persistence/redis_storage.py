"""Redis-backed key storage implementing KeyStoragePort.

Layout, per tenant:

    {namespace}:keys:{tenant}     hash  key id -> JSON document
    {namespace}:secrets:{tenant}  hash  sha256(secret) -> key id

The secrets hash lets ``lookup_key`` find a key without scanning the
tenant. Writes touching both hashes run in one MULTI/EXEC transaction.
Delete and update WATCH the tenant's key hash and retry when another
client modifies it mid-flight; after ``max_retries`` conflicts the
operation fails with ``InternalError``.

Any ``RedisError`` surfaces as ``InternalError``.
"""

from __future__ import annotations

import hashlib
import json
import logging
import secrets
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

from redis.exceptions import RedisError, WatchError

from tessera.foundation.domain.api_key import APIKey
from tessera.foundation.domain.exceptions import InternalError, NotFoundError

if TYPE_CHECKING:
    from collections.abc import Iterator
    from uuid import UUID

logger = logging.getLogger(__name__)

_RESOURCE_TYPE = "APIKey"
DEFAULT_MAX_RETRIES = 5


def secret_digest(secret: str) -> str:
    """Hex SHA-256 of a secret, used as the lookup index field."""
    return hashlib.sha256(secret.encode("utf-8")).hexdigest()


@contextmanager
def _storage_errors(operation: str, tenant: str) -> Iterator[None]:
    try:
        yield
    except RedisError as exc:
        logger.error(
            "key_storage_redis_error",
            extra={"operation": operation, "tenant": tenant, "error": type(exc).__name__},
        )
        raise InternalError(f"storage backend unavailable during {operation}") from exc


class RedisKeyStorage:
    """Key storage on a shared Redis instance.

    Args:
        client: A ``redis.asyncio.Redis`` created with ``decode_responses=True``.
        namespace: Prefix for every Redis key this storage writes.
        max_retries: WATCH conflicts tolerated per delete or update.
    """

    def __init__(
        self,
        client: Any,
        namespace: str = "tessera",
        max_retries: int = DEFAULT_MAX_RETRIES,
    ) -> None:
        if max_retries < 1:
            msg = f"max_retries must be at least 1, got {max_retries}"
            raise ValueError(msg)
        self._client = client
        self._namespace = namespace
        self._max_retries = max_retries

    @property
    def namespace(self) -> str:
        return self._namespace

    def keys_hash(self, tenant: str) -> str:
        return f"{self._namespace}:keys:{tenant}"

    def secrets_hash(self, tenant: str) -> str:
        return f"{self._namespace}:secrets:{tenant}"

    async def create_key(self, tenant: str, key: APIKey) -> None:
        with _storage_errors("create_key", tenant):
            async with self._client.pipeline(transaction=True) as pipe:
                pipe.hset(self.keys_hash(tenant), str(key.id), _dump(key))
                pipe.hset(self.secrets_hash(tenant), secret_digest(key.secret), str(key.id))
                await pipe.execute()

    async def list_keys(self, tenant: str) -> list[APIKey]:
        with _storage_errors("list_keys", tenant):
            documents = await self._client.hvals(self.keys_hash(tenant))
        return [_load(document) for document in documents]

    async def delete_key(self, tenant: str, key_id: UUID) -> None:
        keys_hash = self.keys_hash(tenant)
        with _storage_errors("delete_key", tenant):
            async with self._client.pipeline(transaction=True) as pipe:
                for _ in range(self._max_retries):
                    try:
                        await pipe.watch(keys_hash)
                        document = await pipe.hget(keys_hash, str(key_id))
                        if document is None:
                            await pipe.unwatch()
                            raise NotFoundError(_RESOURCE_TYPE, key_id)
                        existing = _load(document)
                        pipe.multi()
                        pipe.hdel(keys_hash, str(key_id))
                        pipe.hdel(self.secrets_hash(tenant), secret_digest(existing.secret))
                        await pipe.execute()
                        return
                    except WatchError:
                        logger.debug(
                            "key_storage_watch_conflict",
                            extra={"operation": "delete_key", "tenant": tenant},
                        )
                        continue
        raise self._too_many_conflicts("delete_key", tenant)

    async def update_key(self, tenant: str, key: APIKey) -> None:
        keys_hash = self.keys_hash(tenant)
        secrets_hash = self.secrets_hash(tenant)
        with _storage_errors("update_key", tenant):
            async with self._client.pipeline(transaction=True) as pipe:
                for _ in range(self._max_retries):
                    try:
                        await pipe.watch(keys_hash)
                        document = await pipe.hget(keys_hash, str(key.id))
                        if document is None:
                            await pipe.unwatch()
                            raise NotFoundError(_RESOURCE_TYPE, key.id)
                        previous = _load(document)
                        pipe.multi()
                        pipe.hset(keys_hash, str(key.id), _dump(key))
                        pipe.hdel(secrets_hash, secret_digest(previous.secret))
                        pipe.hset(secrets_hash, secret_digest(key.secret), str(key.id))
                        await pipe.execute()
                        return
                    except WatchError:
                        logger.debug(
                            "key_storage_watch_conflict",
                            extra={"operation": "update_key", "tenant": tenant},
                        )
                        continue
        raise self._too_many_conflicts("update_key", tenant)

    async def lookup_key(self, tenant: str, secret: str) -> APIKey | None:
        with _storage_errors("lookup_key", tenant):
            key_id = await self._client.hget(self.secrets_hash(tenant), secret_digest(secret))
            if key_id is None:
                return None
            document = await self._client.hget(self.keys_hash(tenant), key_id)
        if document is None:
            return None
        key = _load(document)
        if not secrets.compare_digest(key.secret.encode("utf-8"), secret.encode("utf-8")):
            return None
        return key

    def _too_many_conflicts(self, operation: str, tenant: str) -> InternalError:
        logger.error(
            "key_storage_retries_exhausted",
            extra={"operation": operation, "tenant": tenant, "max_retries": self._max_retries},
        )
        return InternalError(
            f"{operation} gave up after {self._max_retries} concurrent modifications",
            tenant=tenant,
        )


def _dump(key: APIKey) -> str:
    return json.dumps(key.to_dict())


def _load(document: str) -> APIKey:
    try:
        return APIKey.from_dict(json.loads(document))
    except (KeyError, TypeError, ValueError) as exc:
        raise InternalError("stored key document is malformed") from exc
