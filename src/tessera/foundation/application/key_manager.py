"""API key lifecycle manager.

Orchestrates a storage backend and a secret generator to implement the
five operations exposed to callers: create, list, delete, regenerate and
lookup-by-secret. The tenant passed to every operation is trusted as-is;
verifying it is the identity layer's job.

Security invariant: the plaintext secret leaves the manager only in the
return value of ``create_key`` and ``regenerate_key``. It is never logged.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING
from uuid import uuid4

from tessera.foundation.domain.api_key import APIKey
from tessera.foundation.domain.exceptions import NotFoundError

if TYPE_CHECKING:
    from uuid import UUID

    from tessera.foundation.domain.api_key import ProtectedAPIKey
    from tessera.foundation.domain.ports.key_storage import KeyStoragePort
    from tessera.foundation.domain.ports.secret_generator import SecretGeneratorPort

logger = logging.getLogger(__name__)

_RESOURCE_TYPE = "APIKey"


class APIKeyManager:
    """Key lifecycle operations scoped to a tenant.

    Holds references to its collaborators only, so a single instance can be
    shared by any number of concurrent requests. Errors raised by storage
    (NotFoundError, InternalError) propagate unchanged.

    Args:
        storage: Tenant-partitioned key storage backend.
        secret_generator: Source of fresh secrets.

    Example:
        >>> from tessera.infra.auth.secret_generator import UuidSecretGenerator
        >>> from tessera.infra.persistence.memory_storage import InMemoryKeyStorage
        >>> manager = APIKeyManager(InMemoryKeyStorage(), UuidSecretGenerator())
    """

    def __init__(
        self,
        storage: KeyStoragePort,
        secret_generator: SecretGeneratorPort,
    ) -> None:
        self._storage = storage
        self._secret_gen = secret_generator

    @staticmethod
    def builder() -> APIKeyManagerBuilder:
        """Return a builder for assembling a manager step by step."""
        return APIKeyManagerBuilder()

    @property
    def storage(self) -> KeyStoragePort:
        return self._storage

    async def create_key(self, tenant: str, name: str) -> APIKey:
        """Issue a new key for ``tenant``.

        Returns:
            The full key including its secret. This is the only time the
            secret of a freshly created key is returned.

        Raises:
            InternalError: If the backend fails.
        """
        key = APIKey(id=uuid4(), name=name, secret=self._secret_gen.generate())
        await self._storage.create_key(tenant, key)

        logger.info("api_key_created", extra={"tenant": tenant, "key_id": str(key.id)})
        return key

    async def list_keys(self, tenant: str) -> list[ProtectedAPIKey]:
        """List the tenant's keys without their secrets."""
        keys = await self._storage.list_keys(tenant)
        return [key.protect() for key in keys]

    async def delete_key(self, tenant: str, key_id: UUID) -> None:
        """Revoke a key permanently.

        Raises:
            NotFoundError: If the tenant has no key with ``key_id``.
            InternalError: If the backend fails.
        """
        await self._storage.delete_key(tenant, key_id)
        logger.info("api_key_deleted", extra={"tenant": tenant, "key_id": str(key_id)})

    async def regenerate_key(self, tenant: str, key_id: UUID) -> APIKey:
        """Replace a key's secret, keeping its id and name.

        The previous secret stops matching as soon as the update is stored.
        Read and write are separate backend calls: concurrent regenerations
        of the same key both succeed and the later write wins.

        Returns:
            The full key including the new secret.

        Raises:
            NotFoundError: If the tenant has no key with ``key_id``.
            InternalError: If the backend fails.
        """
        keys = await self._storage.list_keys(tenant)
        current = next((key for key in keys if key.id == key_id), None)
        if current is None:
            raise NotFoundError(_RESOURCE_TYPE, key_id)

        updated = current.with_secret(self._secret_gen.generate())
        await self._storage.update_key(tenant, updated)

        logger.info("api_key_regenerated", extra={"tenant": tenant, "key_id": str(key_id)})
        return updated

    async def lookup_key(self, tenant: str, secret: str) -> ProtectedAPIKey:
        """Resolve a presented secret to the key it belongs to.

        The secret is not echoed back: the caller already holds it.

        Raises:
            NotFoundError: If no key of the tenant has this secret.
            InternalError: If the backend fails.
        """
        key = await self._storage.lookup_key(tenant, secret)
        if key is None:
            # resource_id stays generic so the presented secret never reaches logs
            raise NotFoundError(_RESOURCE_TYPE, "<secret>")
        return key.protect()


class APIKeyManagerBuilder:
    """Step-by-step construction of an :class:`APIKeyManager`.

    Example:
        >>> manager = (
        ...     APIKeyManager.builder()
        ...     .with_storage(InMemoryKeyStorage())
        ...     .with_secret_generator(TokenSecretGenerator())
        ...     .build()
        ... )
    """

    def __init__(self) -> None:
        self._storage: KeyStoragePort | None = None
        self._secret_gen: SecretGeneratorPort | None = None

    def with_storage(self, storage: KeyStoragePort) -> APIKeyManagerBuilder:
        self._storage = storage
        return self

    def with_secret_generator(self, secret_generator: SecretGeneratorPort) -> APIKeyManagerBuilder:
        self._secret_gen = secret_generator
        return self

    def build(self) -> APIKeyManager:
        """Create the manager.

        Raises:
            ValueError: If a collaborator was not provided.
        """
        if self._storage is None:
            raise ValueError("Storage not provided")
        if self._secret_gen is None:
            raise ValueError("Secret generator not provided")
        return APIKeyManager(self._storage, self._secret_gen)
