"""Port interface for API key storage.

Keys are stored in a two-level key space: tenant identifier, then the
tenant's keys. Every operation takes the tenant explicitly and must never
read or write outside that partition.

Implementations raise only two kinds of error:

- :class:`~tessera.foundation.domain.exceptions.NotFoundError` when the
  addressed key id does not exist in the tenant's partition (an unknown
  tenant counts as "does not exist").
- :class:`~tessera.foundation.domain.exceptions.InternalError` when the
  backend itself is unavailable or corrupted.

A secret that matches nothing is a normal outcome: ``lookup_key`` returns
``None`` for it.

Contract note for implementers: the lifecycle manager regenerates a key
by reading the tenant's keys and then calling ``update_key``. Two
concurrent regenerations of the same id therefore both succeed and the
later write wins. Backends with conditional updates may tighten this, but
must not make the loser's call fail with anything other than the two
errors above.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from uuid import UUID

    from tessera.foundation.domain.api_key import APIKey


@runtime_checkable
class KeyStoragePort(Protocol):
    """Port for tenant-partitioned API key persistence."""

    async def create_key(self, tenant: str, key: APIKey) -> None:
        """Insert ``key`` into the tenant's partition. Names are not unique."""
        ...

    async def list_keys(self, tenant: str) -> list[APIKey]:
        """Return every key of the tenant, in no guaranteed order.

        An unknown tenant yields an empty list.
        """
        ...

    async def delete_key(self, tenant: str, key_id: UUID) -> None:
        """Remove the key with ``key_id``.

        Raises:
            NotFoundError: If the tenant has no such key.
        """
        ...

    async def update_key(self, tenant: str, key: APIKey) -> None:
        """Replace the stored key that has ``key.id``.

        Raises:
            NotFoundError: If the tenant has no such key.
        """
        ...

    async def lookup_key(self, tenant: str, secret: str) -> APIKey | None:
        """Return the tenant's key whose secret equals ``secret``, or None."""
        ...
