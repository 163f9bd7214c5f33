"""Bearer-token settings for the key service (``AUTH_*`` variables).

    AUTH_ISSUER          identity provider base URL; empty disables JWKS
    AUTH_AUDIENCE        ``aud`` every token must carry
    AUTH_JWKS_CACHE_TTL  seconds a fetched key set is reused
    AUTH_DEV_BYPASS      let header-less requests through as one fixed tenant
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AuthSettings(BaseSettings):
    """Where tenant tokens come from and how they are checked.

    Example:
        >>> AuthSettings(issuer="https://idp.example.com").verifies_tokens
        True
    """

    model_config = SettingsConfigDict(
        env_prefix="AUTH_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    issuer: str = ""
    audience: str = "api"
    # PyJWKClient refetches on unknown kid anyway; the TTL only bounds staleness.
    jwks_cache_ttl: int = Field(default=300, ge=30, le=86400)
    dev_bypass: bool = False

    @property
    def verifies_tokens(self) -> bool:
        """Whether a JWKS provider should be built at startup."""
        return bool(self.issuer) and not self.dev_bypass


@lru_cache(maxsize=1)
def get_auth_settings() -> AuthSettings:
    """Process-wide AuthSettings; tests call ``cache_clear()``."""
    return AuthSettings()
