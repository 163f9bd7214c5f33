"""In-memory key storage implementing KeyStoragePort.

The reference backend: a mapping from tenant to that tenant's keys in
insertion order, guarded by a single ``asyncio.Lock``. Every operation,
reads included, runs inside the lock, so operations on different tenants
are serialized too. Critical sections never await I/O.

Nothing survives a process restart.
"""

from __future__ import annotations

import asyncio
import secrets
from typing import TYPE_CHECKING

from tessera.foundation.domain.exceptions import NotFoundError

if TYPE_CHECKING:
    from uuid import UUID

    from tessera.foundation.domain.api_key import APIKey

_RESOURCE_TYPE = "APIKey"


class InMemoryKeyStorage:
    """Process-local key storage.

    Example:
        >>> storage = InMemoryKeyStorage()
        >>> await storage.list_keys("unknown-tenant")
        []
    """

    def __init__(self) -> None:
        self._keys: dict[str, list[APIKey]] = {}
        self._lock = asyncio.Lock()

    async def create_key(self, tenant: str, key: APIKey) -> None:
        async with self._lock:
            self._keys.setdefault(tenant, []).append(key)

    async def list_keys(self, tenant: str) -> list[APIKey]:
        async with self._lock:
            return list(self._keys.get(tenant, ()))

    async def delete_key(self, tenant: str, key_id: UUID) -> None:
        async with self._lock:
            tenant_keys = self._keys.get(tenant, [])
            index = _index_of(tenant_keys, key_id)
            if index is None:
                raise NotFoundError(_RESOURCE_TYPE, key_id)
            del tenant_keys[index]

    async def update_key(self, tenant: str, key: APIKey) -> None:
        async with self._lock:
            tenant_keys = self._keys.get(tenant, [])
            index = _index_of(tenant_keys, key.id)
            if index is None:
                raise NotFoundError(_RESOURCE_TYPE, key.id)
            tenant_keys[index] = key

    async def lookup_key(self, tenant: str, secret: str) -> APIKey | None:
        presented = secret.encode("utf-8")
        async with self._lock:
            for key in self._keys.get(tenant, ()):
                if secrets.compare_digest(key.secret.encode("utf-8"), presented):
                    return key
        return None


def _index_of(keys: list[APIKey], key_id: UUID) -> int | None:
    for index, key in enumerate(keys):
        if key.id == key_id:
            return index
    return None
