"""Tests for the domain exception hierarchy."""

from __future__ import annotations

from uuid import UUID

import pytest

from tessera.foundation.domain.exceptions import (
    AuthenticationError,
    DomainError,
    InternalError,
    NotFoundError,
)

KEY_ID = UUID("550e8400-e29b-41d4-a716-446655440000")


@pytest.mark.unit
class TestDomainError:
    def test_message_without_context(self) -> None:
        err = DomainError("Operation failed")
        assert str(err) == "Operation failed"
        assert err.context == {}
        assert err.error_code == "DOMAIN_ERROR"

    def test_str_includes_context(self) -> None:
        err = DomainError("Operation failed", context={"key_id": "123"})
        assert str(err) == "Operation failed (key_id=123)"

    def test_repr(self) -> None:
        err = DomainError("boom", context={"a": 1})
        assert repr(err) == "DomainError('boom', context={'a': 1})"


@pytest.mark.unit
class TestNotFoundError:
    def test_message_and_context(self) -> None:
        err = NotFoundError("APIKey", KEY_ID)
        assert err.message == f"APIKey not found: {KEY_ID}"
        assert err.context == {"resource_type": "APIKey", "resource_id": str(KEY_ID)}
        assert err.resource_id == KEY_ID
        assert err.error_code == "RESOURCE_NOT_FOUND"

    def test_extra_context(self) -> None:
        err = NotFoundError("APIKey", "k1", tenant="u1")
        assert err.context["tenant"] == "u1"

    def test_is_domain_error(self) -> None:
        assert isinstance(NotFoundError("APIKey", "k1"), DomainError)


@pytest.mark.unit
class TestInternalError:
    def test_detail_is_kept(self) -> None:
        err = InternalError("redis connection refused", backend="redis")
        assert err.detail == "redis connection refused"
        assert err.message == "Internal error: redis connection refused"
        assert err.context == {"backend": "redis"}
        assert err.error_code == "INTERNAL_ERROR"


@pytest.mark.unit
class TestAuthenticationError:
    def test_custom_codes(self) -> None:
        err = AuthenticationError(
            "Token has expired", auth_error="invalid_token", error_code="TOKEN_EXPIRED"
        )
        assert err.error_code == "TOKEN_EXPIRED"
        assert err.auth_error == "invalid_token"

    def test_defaults(self) -> None:
        err = AuthenticationError("nope")
        assert err.error_code == "AUTHENTICATION_ERROR"
        assert err.auth_error == "invalid_token"
