"""Tessera Foundation Domain -- pure Python domain primitives.

This package provides the building blocks shared by every layer: the API
key value objects, the exception hierarchy, the authenticated principal,
and the port interfaces for storage and secret generation.
"""

from tessera.foundation.domain.api_key import APIKey, ProtectedAPIKey
from tessera.foundation.domain.exceptions import (
    AuthenticationError,
    DomainError,
    InternalError,
    NotFoundError,
)
from tessera.foundation.domain.ports import KeyStoragePort, SecretGeneratorPort
from tessera.foundation.domain.principal import Principal

__all__ = [
    "APIKey",
    "AuthenticationError",
    "DomainError",
    "InternalError",
    "KeyStoragePort",
    "NotFoundError",
    "Principal",
    "ProtectedAPIKey",
    "SecretGeneratorPort",
]
