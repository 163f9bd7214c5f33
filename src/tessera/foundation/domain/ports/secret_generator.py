"""Port interface for secret generation.

Example:
    >>> from tessera.foundation.domain.ports import SecretGeneratorPort
    >>> def issue(gen: SecretGeneratorPort) -> str:
    ...     return gen.generate()
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class SecretGeneratorPort(Protocol):
    """Port for producing API key secrets.

    Implementations must return a value that is unpredictable without
    access to their randomness source and distinct from earlier outputs
    with overwhelming probability. Generation has no error path and must
    not perform I/O.

    Example:
        >>> class FixedGenerator:
        ...     def generate(self) -> str:
        ...         return "not-random"
        >>> isinstance(FixedGenerator(), SecretGeneratorPort)
        True
    """

    def generate(self) -> str:
        """Return a fresh opaque secret string."""
        ...
