"""Tests for the secret generators."""

from __future__ import annotations

from uuid import UUID

import pytest

from tessera.infra.auth.secret_generator import (
    DEFAULT_SECRET_PREFIX,
    TokenSecretGenerator,
    UuidSecretGenerator,
)


@pytest.mark.unit
class TestUuidSecretGenerator:
    def test_generates_uuid4_string(self) -> None:
        secret = UuidSecretGenerator().generate()
        assert UUID(secret).version == 4

    def test_unique(self) -> None:
        gen = UuidSecretGenerator()
        assert len({gen.generate() for _ in range(100)}) == 100


@pytest.mark.unit
class TestTokenSecretGenerator:
    def test_default_format(self) -> None:
        secret = TokenSecretGenerator().generate()
        assert secret.startswith(DEFAULT_SECRET_PREFIX)
        assert len(secret) == 46

    def test_custom_prefix(self) -> None:
        gen = TokenSecretGenerator(prefix="acme_")
        assert gen.prefix == "acme_"
        assert gen.generate().startswith("acme_")

    def test_url_safe_body(self) -> None:
        body = TokenSecretGenerator(prefix="").generate()
        assert set(body) <= set(
            "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-_"
        )

    def test_unique(self) -> None:
        gen = TokenSecretGenerator()
        assert len({gen.generate() for _ in range(100)}) == 100

    def test_rejects_short_secrets(self) -> None:
        with pytest.raises(ValueError, match="at least 16"):
            TokenSecretGenerator(nbytes=8)
