"""Tests for JWTAuthMiddleware with real RS256 tokens."""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Any
from unittest.mock import MagicMock

import jwt as pyjwt
import pytest
from cryptography.hazmat.primitives.asymmetric import rsa
from starlette.applications import Starlette
from starlette.responses import JSONResponse, Response
from starlette.routing import Route
from starlette.testclient import TestClient

from tessera.foundation.application.context import get_current_principal
from tessera.infra.auth.dev_bypass import DEV_BYPASS_SUBJECT
from tessera.infra.auth.middleware.jwt_auth import JWTAuthMiddleware, _extract_principal

if TYPE_CHECKING:
    from starlette.requests import Request

ISSUER = "https://auth.example.com"
AUDIENCE = "api"

_PRIVATE_KEY = rsa.generate_private_key(public_exponent=65537, key_size=2048)
_OTHER_KEY = rsa.generate_private_key(public_exponent=65537, key_size=2048)


def _token(private_key: Any = _PRIVATE_KEY, **overrides: Any) -> str:
    claims: dict[str, Any] = {
        "sub": "tenant-a",
        "iss": ISSUER,
        "aud": AUDIENCE,
        "exp": int(time.time()) + 300,
        "roles": ["admin"],
        "email": "a@example.com",
    }
    claims.update(overrides)
    claims = {k: v for k, v in claims.items() if v is not None}
    return pyjwt.encode(claims, private_key, algorithm="RS256")


def _jwks_provider() -> MagicMock:
    provider = MagicMock()
    signing_key = MagicMock()
    signing_key.key = _PRIVATE_KEY.public_key()
    provider.get_signing_key_from_jwt.return_value = signing_key
    return provider


def _make_app(
    *,
    jwks_provider: MagicMock | None = None,
    dev_bypass: bool = False,
) -> Starlette:
    async def whoami(request: Request) -> Response:
        principal = get_current_principal()
        return JSONResponse(
            {"subject": principal.subject, "roles": list(principal.roles), "email": principal.email}
        )

    async def health(request: Request) -> Response:
        return JSONResponse({"status": "ok"})

    app = Starlette(routes=[Route("/whoami", whoami), Route("/healthz", health)])
    app.add_middleware(
        JWTAuthMiddleware,
        jwks_provider=jwks_provider,
        issuer=ISSUER,
        audience=AUDIENCE,
        dev_bypass=dev_bypass,
    )
    return app


def _get(app: Starlette, path: str = "/whoami", token: str | None = None) -> Any:
    headers = {"Authorization": f"Bearer {token}"} if token is not None else {}
    return TestClient(app, raise_server_exceptions=False).get(path, headers=headers)


@pytest.mark.unit
class TestExcludedPaths:
    def test_healthz_skips_auth(self) -> None:
        response = _get(_make_app(), "/healthz")
        assert response.status_code == 200


@pytest.mark.unit
class TestHeaderErrors:
    def test_missing_header(self) -> None:
        response = _get(_make_app())
        assert response.status_code == 401
        assert response.json()["error_code"] == "MISSING_TOKEN"
        assert response.headers["content-type"] == "application/problem+json"
        assert 'error="missing_token"' in response.headers["WWW-Authenticate"]

    def test_wrong_scheme(self) -> None:
        client = TestClient(_make_app(), raise_server_exceptions=False)
        response = client.get("/whoami", headers={"Authorization": "Basic abc"})
        assert response.status_code == 401
        assert response.json()["error_code"] == "INVALID_FORMAT"

    def test_empty_bearer(self) -> None:
        client = TestClient(_make_app(), raise_server_exceptions=False)
        response = client.get("/whoami", headers={"Authorization": "Bearer "})
        assert response.status_code == 401

    def test_no_provider_returns_503(self) -> None:
        response = _get(_make_app(jwks_provider=None), token=_token())
        assert response.status_code == 503
        assert response.json()["error_code"] == "SERVICE_UNAVAILABLE"
        assert "WWW-Authenticate" not in response.headers


@pytest.mark.unit
class TestTokenValidation:
    def test_valid_token_sets_principal(self) -> None:
        response = _get(_make_app(jwks_provider=_jwks_provider()), token=_token())
        assert response.status_code == 200
        assert response.json() == {
            "subject": "tenant-a",
            "roles": ["admin"],
            "email": "a@example.com",
        }

    def test_provider_on_app_state_is_used(self) -> None:
        app = _make_app(jwks_provider=None)
        app.state.jwks_provider = _jwks_provider()
        response = _get(app, token=_token())
        assert response.status_code == 200

    def test_expired(self) -> None:
        token = _token(exp=int(time.time()) - 60)
        response = _get(_make_app(jwks_provider=_jwks_provider()), token=token)
        assert response.status_code == 401
        assert response.json()["error_code"] == "TOKEN_EXPIRED"

    def test_wrong_issuer(self) -> None:
        token = _token(iss="https://evil.example.com")
        response = _get(_make_app(jwks_provider=_jwks_provider()), token=token)
        assert response.json()["error_code"] == "INVALID_CLAIMS"

    def test_wrong_audience(self) -> None:
        token = _token(aud="other")
        response = _get(_make_app(jwks_provider=_jwks_provider()), token=token)
        assert response.json()["error_code"] == "INVALID_CLAIMS"

    def test_missing_sub(self) -> None:
        token = _token(sub=None)
        response = _get(_make_app(jwks_provider=_jwks_provider()), token=token)
        assert response.status_code == 401
        assert response.json()["error_code"] == "INVALID_CLAIMS"

    def test_bad_signature(self) -> None:
        token = _token(private_key=_OTHER_KEY)
        response = _get(_make_app(jwks_provider=_jwks_provider()), token=token)
        assert response.status_code == 401
        assert response.json()["error_code"] == "INVALID_SIGNATURE"

    def test_malformed_token(self) -> None:
        provider = _jwks_provider()
        provider.get_signing_key_from_jwt.side_effect = pyjwt.DecodeError("bad")
        response = _get(_make_app(jwks_provider=provider), token="not.a.jwt")
        assert response.status_code == 401
        assert response.json()["error_code"] == "INVALID_TOKEN"


@pytest.mark.unit
class TestDevBypass:
    def test_injects_dev_principal(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ENVIRONMENT", "development")
        response = _get(_make_app(dev_bypass=True))
        assert response.status_code == 200
        assert response.json()["subject"] == DEV_BYPASS_SUBJECT

    def test_blocked_in_production(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ENVIRONMENT", "production")
        response = _get(_make_app(dev_bypass=True))
        assert response.status_code == 401

    def test_header_still_validated(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ENVIRONMENT", "development")
        response = _get(_make_app(jwks_provider=_jwks_provider(), dev_bypass=True), token=_token())
        assert response.json()["subject"] == "tenant-a"


@pytest.mark.unit
class TestExtractPrincipal:
    def test_string_role(self) -> None:
        principal = _extract_principal({"sub": "u1", "roles": "admin"})
        assert principal.roles == ("admin",)

    def test_missing_sub(self) -> None:
        with pytest.raises(ValueError, match="sub"):
            _extract_principal({"roles": []})

    def test_defaults(self) -> None:
        principal = _extract_principal({"sub": 42})
        assert principal.subject == "42"
        assert principal.roles == ()
        assert principal.email is None
