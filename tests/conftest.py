"""Shared fixtures.

HTTP tests run the real app factory with discovery switched off and the
contributions passed explicitly, so they do not depend on which entry
points happen to be installed. Tenant identity comes from the
``X-Test-Subject`` header instead of a signed JWT.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from fastapi.testclient import TestClient
from starlette.middleware.base import BaseHTTPMiddleware

from tessera.foundation.application.context import principal_scope
from tessera.foundation.application.contributions import MiddlewareContribution
from tessera.foundation.domain.principal import Principal
from tessera.infra.auth.settings import get_auth_settings
from tessera.infra.fastapi._health import router as health_router
from tessera.infra.fastapi.app_factory import (
    GROUP_ERROR_HANDLERS,
    GROUP_LIFESPAN,
    GROUP_MIDDLEWARE,
    GROUP_ROUTERS,
    create_app,
)
from tessera.infra.fastapi.error_handlers import register_exception_handlers
from tessera.infra.fastapi.middleware.request_id import RequestIdMiddleware
from tessera.infra.fastapi.routers.keys import router as keys_router
from tessera.infra.fastapi.settings import AppSettings
from tessera.infra.observability.logging import get_logging_settings
from tessera.infra.persistence.lifespan import lifespan_contribution as key_store_lifespan
from tessera.infra.persistence.redis_client import get_redis_factory
from tessera.infra.persistence.settings import get_key_store_settings

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from fastapi import FastAPI

TEST_SUBJECT_HEADER = "X-Test-Subject"

ALL_GROUPS = frozenset({GROUP_ROUTERS, GROUP_MIDDLEWARE, GROUP_ERROR_HANDLERS, GROUP_LIFESPAN})


class SubjectHeaderMiddleware(BaseHTTPMiddleware):
    """Sets the principal from a plain header. Test use only."""

    async def dispatch(self, request, call_next):  # type: ignore[no-untyped-def]
        subject = request.headers.get(TEST_SUBJECT_HEADER)
        if not subject:
            return await call_next(request)
        with principal_scope(Principal(subject=subject)):
            return await call_next(request)


@pytest.fixture(autouse=True)
def _clear_settings_caches(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    for var in (
        "ENVIRONMENT",
        "AUTH_ISSUER",
        "AUTH_DEV_BYPASS",
        "KEYS_STORAGE_BACKEND",
        "KEYS_SECRET_GENERATOR",
        "REDIS_URL",
    ):
        monkeypatch.delenv(var, raising=False)
    caches = (get_auth_settings, get_key_store_settings, get_logging_settings, get_redis_factory)
    for cached in caches:
        cached.cache_clear()
    yield
    for cached in caches:
        cached.cache_clear()


@pytest.fixture()
def key_app() -> FastAPI:
    """The key service app with the in-memory backend and header-based identity."""
    app = create_app(
        AppSettings(),
        exclude_groups=ALL_GROUPS,
        extra_routers=[health_router, keys_router],
        extra_middleware=[
            MiddlewareContribution(RequestIdMiddleware, priority=10),
            MiddlewareContribution(SubjectHeaderMiddleware, priority=150),
        ],
        extra_lifespan_hooks=[key_store_lifespan],
    )
    register_exception_handlers(app)
    return app


@pytest.fixture()
def client(key_app: FastAPI) -> Iterator[TestClient]:
    """TestClient for the key service app (lifespan hooks executed)."""
    with TestClient(key_app, raise_server_exceptions=False) as c:
        yield c


@pytest.fixture()
def as_tenant() -> Callable[[str], dict[str, str]]:
    """Headers that authenticate a request as the given tenant."""

    def _headers(subject: str) -> dict[str, str]:
        return {TEST_SUBJECT_HEADER: subject}

    return _headers
