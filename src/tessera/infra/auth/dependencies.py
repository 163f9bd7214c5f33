"""Route dependencies that expose the authenticated tenant.

    @router.get("/keys")
    async def list_keys(principal: CurrentPrincipal) -> ...:
        ...  # principal.tenant owns the keys
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends

from tessera.foundation.application.context import get_optional_principal
from tessera.foundation.domain.exceptions import AuthenticationError
from tessera.foundation.domain.principal import Principal


def get_current_principal() -> Principal:
    """Principal placed in context by the auth middleware.

    A route reached without one (middleware excluded, path wrongly listed
    as public) answers 401 rather than serving an anonymous tenant.
    """
    principal = get_optional_principal()
    if principal is None:
        raise AuthenticationError(
            "Authentication required",
            auth_error="invalid_request",
            error_code="AUTHENTICATION_REQUIRED",
        )
    return principal


CurrentPrincipal = Annotated[Principal, Depends(get_current_principal)]
