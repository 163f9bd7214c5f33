"""Domain port interfaces for hexagonal architecture.

Ports define abstract interfaces that the application layer uses to interact
with external services. Implementations (adapters) live in infrastructure.
"""

from tessera.foundation.domain.ports.key_storage import KeyStoragePort
from tessera.foundation.domain.ports.secret_generator import SecretGeneratorPort

__all__ = ["KeyStoragePort", "SecretGeneratorPort"]
