"""Signing keys for tenant bearer tokens.

The JWKS location is read from the issuer's OpenID configuration document
when it can be fetched and names the same issuer; otherwise the
conventional ``/.well-known/jwks.json`` under the issuer is used. Key
fetching, caching and kid-miss refresh are left to ``PyJWKClient``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import httpx
from jwt import PyJWKClient

if TYPE_CHECKING:
    from jwt import PyJWK

logger = logging.getLogger(__name__)

DISCOVERY_TIMEOUT = 5.0


def discover_jwks_uri(issuer_url: str) -> str | None:
    """Look up ``jwks_uri`` in the issuer's discovery document.

    Returns ``None`` when the document is unreachable, unparsable, names a
    different issuer or has no ``jwks_uri``.
    """
    url = f"{issuer_url}/.well-known/openid-configuration"
    try:
        with httpx.Client(timeout=DISCOVERY_TIMEOUT) as client:
            response = client.get(url)
            response.raise_for_status()
            document = response.json()
    except (httpx.HTTPError, ValueError):
        logger.debug("oidc_discovery_failed", extra={"url": url}, exc_info=True)
        return None

    advertised = str(document.get("issuer", "")).rstrip("/")
    if advertised != issuer_url:
        logger.warning(
            "oidc_discovery_issuer_mismatch",
            extra={"expected": issuer_url, "discovered": advertised},
        )
        return None

    jwks_uri = document.get("jwks_uri")
    return str(jwks_uri) if jwks_uri else None


class JWKSProvider:
    """Resolves the RS256 key that signed a token.

    Built once by the auth lifespan hook and shared by every request.

    Raises:
        ValueError: If ``issuer_url`` is empty.
    """

    def __init__(self, issuer_url: str, cache_ttl: int = 300) -> None:
        if not issuer_url:
            raise ValueError("OIDC issuer URL is required for JWKS discovery")

        self._issuer_url = issuer_url.rstrip("/")
        self._jwks_uri = (
            discover_jwks_uri(self._issuer_url) or f"{self._issuer_url}/.well-known/jwks.json"
        )
        self._client = PyJWKClient(self._jwks_uri, cache_jwk_set=True, lifespan=cache_ttl)

        logger.info(
            "jwks_provider_ready",
            extra={"issuer": self._issuer_url, "jwks_uri": self._jwks_uri, "cache_ttl": cache_ttl},
        )

    @property
    def issuer_url(self) -> str:
        return self._issuer_url

    @property
    def jwks_uri(self) -> str:
        return self._jwks_uri

    def get_signing_key_from_jwt(self, token: str) -> PyJWK:
        return self._client.get_signing_key_from_jwt(token)
