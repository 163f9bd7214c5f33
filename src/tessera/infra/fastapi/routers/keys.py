"""API key REST router.

Every route is scoped to the caller's tenant, which is the subject of the
authenticated principal. Keys of other tenants are indistinguishable from
keys that do not exist.
"""

from __future__ import annotations

from typing import Annotated
from uuid import UUID  # noqa: TC003

from fastapi import APIRouter, Depends, Request, Response, status
from pydantic import BaseModel, field_validator

from tessera.foundation.application.key_manager import APIKeyManager
from tessera.foundation.domain.api_key import APIKey, ProtectedAPIKey  # noqa: TC001
from tessera.infra.auth.dependencies import CurrentPrincipal  # noqa: TC001

router = APIRouter(tags=["keys"])


def get_key_manager(request: Request) -> APIKeyManager:
    """Return the manager published by the key store lifespan hook."""
    manager: APIKeyManager | None = getattr(request.app.state, "key_manager", None)
    if manager is None:
        msg = "Key manager is not configured; is the key store lifespan hook installed?"
        raise RuntimeError(msg)
    return manager


KeyManager = Annotated[APIKeyManager, Depends(get_key_manager)]


# -- Request / Response models ------------------------------------------------


def _require_utf8(value: str) -> str:
    # JSON allows lone surrogate escapes; they cannot be stored or echoed back.
    try:
        value.encode("utf-8")
    except UnicodeEncodeError:
        raise ValueError("must be valid UTF-8 text") from None
    return value


class CreateKeyRequest(BaseModel):
    name: str

    @field_validator("name")
    @classmethod
    def _utf8_name(cls, value: str) -> str:
        return _require_utf8(value)


class LookupKeyRequest(BaseModel):
    secret: str

    @field_validator("secret")
    @classmethod
    def _utf8_secret(cls, value: str) -> str:
        return _require_utf8(value)


class APIKeyResponse(BaseModel):
    """A key including its secret. Only returned by create and regenerate."""

    id: UUID
    name: str
    secret: str


class ProtectedAPIKeyResponse(BaseModel):
    id: UUID
    name: str


# -- Endpoints ----------------------------------------------------------------


@router.post("/keys")
async def create_key(
    body: CreateKeyRequest,
    principal: CurrentPrincipal,
    manager: KeyManager,
) -> APIKeyResponse:
    """Create a key in the caller's tenant. The secret is shown only here."""
    key = await manager.create_key(principal.tenant, body.name)
    return _full_response(key)


@router.get("/keys")
async def list_keys(
    principal: CurrentPrincipal,
    manager: KeyManager,
) -> list[ProtectedAPIKeyResponse]:
    """List the caller's keys without secrets."""
    keys = await manager.list_keys(principal.tenant)
    return [_protected_response(key) for key in keys]


@router.delete("/keys/{key_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_key(
    key_id: UUID,
    principal: CurrentPrincipal,
    manager: KeyManager,
) -> Response:
    """Revoke a key."""
    await manager.delete_key(principal.tenant, key_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/keys/{key_id}")
async def regenerate_key(
    key_id: UUID,
    principal: CurrentPrincipal,
    manager: KeyManager,
) -> APIKeyResponse:
    """Replace a key's secret; the old secret stops working."""
    key = await manager.regenerate_key(principal.tenant, key_id)
    return _full_response(key)


@router.post("/lookup")
async def lookup_key(
    body: LookupKeyRequest,
    principal: CurrentPrincipal,
    manager: KeyManager,
) -> ProtectedAPIKeyResponse:
    """Resolve a presented secret to the caller's key it belongs to."""
    key = await manager.lookup_key(principal.tenant, body.secret)
    return _protected_response(key)


# -- Helpers ------------------------------------------------------------------


def _full_response(key: APIKey) -> APIKeyResponse:
    return APIKeyResponse(id=key.id, name=key.name, secret=key.secret)


def _protected_response(key: ProtectedAPIKey) -> ProtectedAPIKeyResponse:
    return ProtectedAPIKeyResponse(id=key.id, name=key.name)
