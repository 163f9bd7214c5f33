"""Tests that the adapters satisfy the domain ports."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from tessera.foundation.domain.ports import KeyStoragePort, SecretGeneratorPort
from tessera.infra.auth.secret_generator import TokenSecretGenerator, UuidSecretGenerator
from tessera.infra.persistence.memory_storage import InMemoryKeyStorage
from tessera.infra.persistence.redis_storage import RedisKeyStorage


@pytest.mark.unit
class TestKeyStoragePort:
    def test_in_memory_storage_conforms(self) -> None:
        assert isinstance(InMemoryKeyStorage(), KeyStoragePort)

    def test_redis_storage_conforms(self) -> None:
        assert isinstance(RedisKeyStorage(MagicMock()), KeyStoragePort)

    def test_unrelated_object_does_not_conform(self) -> None:
        assert not isinstance(object(), KeyStoragePort)


@pytest.mark.unit
class TestSecretGeneratorPort:
    @pytest.mark.parametrize("generator", [UuidSecretGenerator(), TokenSecretGenerator()])
    def test_generators_conform(self, generator: object) -> None:
        assert isinstance(generator, SecretGeneratorPort)

    def test_plain_class_conforms(self) -> None:
        class FixedGenerator:
            def generate(self) -> str:
                return "fixed"

        assert isinstance(FixedGenerator(), SecretGeneratorPort)
