"""HTTP surface settings: app metadata (``APP_*``) and CORS (``CORS_*``).

List-valued CORS variables may be given comma-separated, e.g.
``CORS_ALLOW_ORIGINS=https://console.example.com,https://admin.example.com``.
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version
from typing import Annotated, Any

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

DISTRIBUTION_NAME = "tessera"

# The key API only uses these verbs; preflights for anything else fail.
KEY_API_METHODS = ["GET", "POST", "DELETE"]

CommaList = Annotated[list[str], NoDecode]


def package_version() -> str:
    """Installed distribution version, ``0.0.0`` from a source checkout."""
    try:
        return version(DISTRIBUTION_NAME)
    except PackageNotFoundError:
        return "0.0.0"


class CORSSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="CORS_", extra="ignore")

    allow_origins: CommaList = Field(default_factory=lambda: ["*"])
    allow_methods: CommaList = Field(default_factory=lambda: list(KEY_API_METHODS))
    allow_headers: CommaList = Field(
        default_factory=lambda: ["Authorization", "Content-Type", "X-Request-ID"]
    )
    expose_headers: CommaList = Field(default_factory=lambda: ["X-Request-ID"])
    allow_credentials: bool = False

    @field_validator(
        "allow_origins", "allow_methods", "allow_headers", "expose_headers", mode="before"
    )
    @classmethod
    def _split(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        return value

    @model_validator(mode="after")
    def _no_credentials_for_any_origin(self) -> CORSSettings:
        # Browsers reject credentialed responses with a wildcard origin.
        if self.allow_credentials and "*" in self.allow_origins:
            raise ValueError("CORS allow_credentials requires explicit allow_origins")
        return self


class AppSettings(BaseSettings):
    """FastAPI metadata plus entry point filtering for ``create_app``."""

    model_config = SettingsConfigDict(env_prefix="APP_", extra="ignore")

    title: str = "Tessera API Key Service"
    version: str = Field(default_factory=package_version)
    description: str = "Multi-tenant API key lifecycle management."
    docs_url: str | None = "/docs"
    redoc_url: str | None = "/redoc"
    openapi_url: str | None = "/openapi.json"
    debug: bool = False
    cors: CORSSettings = Field(default_factory=CORSSettings)

    exclude_groups: frozenset[str] = frozenset()
    exclude_entry_points: frozenset[str] = frozenset()
