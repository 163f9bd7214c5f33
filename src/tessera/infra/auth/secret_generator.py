"""Secret generators implementing SecretGeneratorPort.

Separated from the domain layer because secret generation is an
infrastructure concern (randomness source, output format). The lifecycle
manager only sees the opaque string.
"""

from __future__ import annotations

import secrets
import uuid

DEFAULT_SECRET_PREFIX = "tk_"

# token_urlsafe(32) -> 43 chars, 256-bit entropy
_SECRET_BYTES = 32


class UuidSecretGenerator:
    """Generates secrets as random UUID4 strings.

    Example:
        >>> gen = UuidSecretGenerator()
        >>> len(gen.generate())
        36
    """

    def generate(self) -> str:
        return str(uuid.uuid4())


class TokenSecretGenerator:
    """Generates prefixed URL-safe secrets from the OS CSPRNG.

    The prefix makes issued keys recognisable in logs and secret scanners;
    it carries no information about the key.

    Args:
        prefix: Prefix prepended to every secret (default: ``tk_``).
        nbytes: Random bytes per secret before base64 encoding.

    Example:
        >>> gen = TokenSecretGenerator()
        >>> secret = gen.generate()
        >>> secret.startswith("tk_")
        True
        >>> len(secret)
        46
    """

    def __init__(self, prefix: str = DEFAULT_SECRET_PREFIX, nbytes: int = _SECRET_BYTES) -> None:
        if nbytes < 16:
            msg = f"nbytes must be at least 16, got {nbytes}"
            raise ValueError(msg)
        self._prefix = prefix
        self._nbytes = nbytes

    @property
    def prefix(self) -> str:
        return self._prefix

    def generate(self) -> str:
        return f"{self._prefix}{secrets.token_urlsafe(self._nbytes)}"
