"""API key value objects.

An ``APIKey`` carries its plaintext secret and is only ever handed back to
a caller right after creation or regeneration. Every other read goes
through ``ProtectedAPIKey``, which has no secret field at all.

The owning tenant is not part of either value: it is the partition key of
the storage backend.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any
from uuid import UUID


@dataclass(frozen=True, slots=True)
class ProtectedAPIKey:
    """Projection of an API key without its secret.

    Attributes:
        id: Key identifier.
        name: Caller-supplied label.
    """

    id: UUID
    name: str


@dataclass(frozen=True, slots=True)
class APIKey:
    """An issued API key.

    Attributes:
        id: Identifier assigned at creation. Never changes.
        name: Caller-supplied label. Not unique, may be empty.
        secret: Opaque credential value. Replaced on regeneration.

    Example:
        >>> from uuid import uuid4
        >>> key = APIKey(id=uuid4(), name="billing", secret="tk_abc")
        >>> key.protect().name
        'billing'
    """

    id: UUID
    name: str
    secret: str

    def __repr__(self) -> str:
        return f"APIKey(id={self.id!r}, name={self.name!r}, secret='***')"

    def protect(self) -> ProtectedAPIKey:
        """Return the secret-free view of this key."""
        return ProtectedAPIKey(id=self.id, name=self.name)

    def with_secret(self, secret: str) -> APIKey:
        """Return a copy with ``secret`` replaced; id and name are kept."""
        return replace(self, secret=secret)

    def to_dict(self) -> dict[str, str]:
        """Serialize to a JSON-compatible dict."""
        return {"id": str(self.id), "name": self.name, "secret": self.secret}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> APIKey:
        """Deserialize from the dict produced by :meth:`to_dict`.

        Raises:
            KeyError: If a field is missing.
            ValueError: If ``id`` is not a valid UUID.
        """
        return cls(id=UUID(str(data["id"])), name=str(data["name"]), secret=str(data["secret"]))
