"""Bearer-token guard in front of the key routes.

Each request must carry an RS256 JWT from the configured issuer. The
verified ``sub`` claim is the tenant: it is published as a ``Principal``
in the request context and the keys router reads it from there.

Failures are answered here with a problem+json body instead of being
raised, since exceptions do not cross ``BaseHTTPMiddleware`` cleanly:

    no / malformed header       401 MISSING_TOKEN, INVALID_FORMAT
    bad token                   401 TOKEN_EXPIRED, INVALID_CLAIMS,
                                    INVALID_SIGNATURE, INVALID_TOKEN
    no key provider configured  503 SERVICE_UNAVAILABLE
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import jwt as pyjwt
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

from tessera.foundation.application.context import get_optional_principal, principal_scope
from tessera.foundation.application.contributions import (
    MIDDLEWARE_PRIORITY_AUTH,
    MiddlewareContribution,
)
from tessera.foundation.domain.principal import Principal
from tessera.infra.auth.dev_bypass import DEV_BYPASS_SUBJECT, resolve_dev_bypass
from tessera.infra.auth.settings import get_auth_settings

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from starlette.requests import Request
    from starlette.responses import Response

logger = logging.getLogger(__name__)

PUBLIC_PATH_PREFIXES = ("/healthz", "/docs", "/openapi.json", "/redoc")

_BEARER = "Bearer "

# Most specific first: InvalidSignatureError is a DecodeError, and every
# entry is a PyJWTError.
_TOKEN_ERRORS: tuple[tuple[type[pyjwt.PyJWTError], str, str], ...] = (
    (pyjwt.ExpiredSignatureError, "token_expired", "Token has expired"),
    (pyjwt.InvalidIssuerError, "invalid_claims", "Invalid issuer claim"),
    (pyjwt.InvalidAudienceError, "invalid_claims", "Invalid audience claim"),
    (pyjwt.MissingRequiredClaimError, "invalid_claims", "Missing required claim"),
    (pyjwt.InvalidSignatureError, "invalid_signature", "Token signature verification failed"),
    (pyjwt.DecodeError, "invalid_token", "Token is malformed"),
    (pyjwt.PyJWTError, "invalid_token", "Token validation failed"),
)


class _AuthFailure(Exception):
    def __init__(self, code: str, message: str, status_code: int = 401) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = status_code


class JWTAuthMiddleware(BaseHTTPMiddleware):
    """Verify the bearer token and expose its subject as the tenant.

    Args:
        app: Wrapped ASGI app.
        jwks_provider: Signing key source. Falls back to
            ``app.state.jwks_provider`` (set by the auth lifespan hook).
        issuer: Required ``iss``; defaults to ``AUTH_ISSUER``.
        audience: Required ``aud``; defaults to ``AUTH_AUDIENCE``.
        dev_bypass: Defaults to ``AUTH_DEV_BYPASS``. Never honoured in
            production.
        excluded_prefixes: Paths served without a token.
    """

    def __init__(
        self,
        app: Any,
        jwks_provider: Any = None,
        issuer: str | None = None,
        audience: str | None = None,
        dev_bypass: bool | None = None,
        excluded_prefixes: tuple[str, ...] = PUBLIC_PATH_PREFIXES,
    ) -> None:
        super().__init__(app)
        settings = get_auth_settings()
        self._jwks_provider = jwks_provider
        self._issuer = settings.issuer if issuer is None else issuer
        self._audience = settings.audience if audience is None else audience
        self._dev_bypass = resolve_dev_bypass(
            settings.dev_bypass if dev_bypass is None else dev_bypass
        )
        self._excluded_prefixes = excluded_prefixes

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        if get_optional_principal() is not None or request.url.path.startswith(
            self._excluded_prefixes
        ):
            return await call_next(request)

        try:
            principal = self._authenticate(request)
        except _AuthFailure as failure:
            return _problem(request, failure)

        with principal_scope(principal):
            return await call_next(request)

    def _authenticate(self, request: Request) -> Principal:
        header = request.headers.get("Authorization", "")
        if not header:
            if self._dev_bypass:
                return Principal(subject=DEV_BYPASS_SUBJECT)
            raise _AuthFailure("missing_token", "Authorization header is required")
        if not header.startswith(_BEARER):
            raise _AuthFailure("invalid_format", "Authorization header must use Bearer scheme")

        raw_token = header[len(_BEARER) :].strip()
        if not raw_token:
            raise _AuthFailure("invalid_format", "Bearer token is empty")

        provider = self._jwks_provider or getattr(request.app.state, "jwks_provider", None)
        if provider is None:
            raise _AuthFailure(
                "service_unavailable", "Authentication service not configured", 503
            )

        try:
            signing_key = provider.get_signing_key_from_jwt(raw_token)
            claims = pyjwt.decode(
                raw_token,
                signing_key.key,
                algorithms=["RS256"],
                issuer=self._issuer,
                audience=self._audience,
                options={"require": ["exp", "iss", "aud", "sub"]},
            )
        except pyjwt.PyJWTError as exc:
            code, message = next(
                (code, message) for cls, code, message in _TOKEN_ERRORS if isinstance(exc, cls)
            )
            raise _AuthFailure(code, message) from exc

        try:
            return _extract_principal(claims)
        except ValueError as exc:
            raise _AuthFailure("invalid_claims", str(exc)) from exc


def _problem(request: Request, failure: _AuthFailure) -> JSONResponse:
    logger.info(
        "auth_validation_failed",
        extra={"error_code": failure.code, "path": request.url.path, "method": request.method},
    )
    headers = {}
    if failure.status_code == 401:
        headers["WWW-Authenticate"] = (
            f'Bearer realm="API", error="{failure.code}", error_description="{failure.message}"'
        )
    return JSONResponse(
        status_code=failure.status_code,
        content={
            "type": f"/errors/{failure.code.replace('_', '-')}",
            "title": "Unauthorized" if failure.status_code == 401 else "Service Unavailable",
            "status": failure.status_code,
            "detail": failure.message,
            "instance": request.url.path,
            "error_code": failure.code.upper(),
        },
        media_type="application/problem+json",
        headers=headers,
    )


def _extract_principal(claims: dict[str, Any]) -> Principal:
    """Build the Principal from verified claims.

    Raises:
        ValueError: If ``sub`` is missing or empty.
    """
    subject = claims.get("sub")
    if not subject:
        raise ValueError("JWT missing required claim: sub")

    roles = claims.get("roles") or ()
    if isinstance(roles, str):
        roles = (roles,)
    email = claims.get("email")
    return Principal(
        subject=str(subject),
        roles=tuple(str(role) for role in roles),
        email=None if email is None else str(email),
    )


# Inside RequestIdMiddleware so rejections carry X-Request-ID.
contribution = MiddlewareContribution(
    middleware_class=JWTAuthMiddleware,
    priority=MIDDLEWARE_PRIORITY_AUTH,
)
