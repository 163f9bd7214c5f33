"""Startup hook that prepares token verification.

Ordered after logging is configured and before the key store opens, so
no key route is reachable before its guard exists.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

from tessera.foundation.application.contributions import (
    LIFESPAN_PRIORITY_AUTH,
    LifespanContribution,
)
from tessera.infra.auth.settings import get_auth_settings

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _auth_lifespan(app: Any) -> AsyncIterator[None]:
    settings = get_auth_settings()

    if not settings.verifies_tokens:
        # JWTAuthMiddleware answers 503 to any bearer token in this mode.
        logger.info(
            "auth_lifespan: token verification disabled",
            extra={"issuer_set": bool(settings.issuer), "dev_bypass": settings.dev_bypass},
        )
        yield
        return

    from tessera.infra.auth.jwks import JWKSProvider

    app.state.jwks_provider = JWKSProvider(settings.issuer, cache_ttl=settings.jwks_cache_ttl)
    yield


lifespan_contribution = LifespanContribution(
    hook=_auth_lifespan,
    priority=LIFESPAN_PRIORITY_AUTH,
)
