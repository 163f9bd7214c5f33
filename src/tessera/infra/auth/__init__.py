"""Who is calling: bearer token verification and the tenant principal.

Also home to the secret generators, which mint the credentials this
service hands out.
"""

from tessera.infra.auth.dependencies import CurrentPrincipal, get_current_principal
from tessera.infra.auth.dev_bypass import DEV_BYPASS_SUBJECT, resolve_dev_bypass
from tessera.infra.auth.jwks import JWKSProvider
from tessera.infra.auth.lifespan import lifespan_contribution
from tessera.infra.auth.middleware.jwt_auth import JWTAuthMiddleware
from tessera.infra.auth.secret_generator import TokenSecretGenerator, UuidSecretGenerator
from tessera.infra.auth.settings import AuthSettings, get_auth_settings

__all__ = [
    "DEV_BYPASS_SUBJECT",
    "AuthSettings",
    "CurrentPrincipal",
    "JWKSProvider",
    "JWTAuthMiddleware",
    "TokenSecretGenerator",
    "UuidSecretGenerator",
    "get_auth_settings",
    "get_current_principal",
    "lifespan_contribution",
    "resolve_dev_bypass",
]
