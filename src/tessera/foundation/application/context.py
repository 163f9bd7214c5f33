"""The tenant principal of the request being served.

Set by the auth middleware once the bearer token checks out, read by the
keys router through ``CurrentPrincipal``. Outside a request there is no
principal, and asking for one is a programming error.
"""

from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator
    from contextvars import Token

    from tessera.foundation.domain.principal import Principal


class NoRequestContextError(RuntimeError):
    def __init__(self) -> None:
        super().__init__("No authenticated principal; is the auth middleware installed?")


_principal: ContextVar[Principal | None] = ContextVar("tessera_principal", default=None)


def set_principal_context(principal: Principal) -> Token[Principal | None]:
    return _principal.set(principal)


def clear_principal_context(token: Token[Principal | None]) -> None:
    _principal.reset(token)


@contextmanager
def principal_scope(principal: Principal) -> Iterator[Principal]:
    """Make ``principal`` current for the duration of the block."""
    token = set_principal_context(principal)
    try:
        yield principal
    finally:
        clear_principal_context(token)


def get_current_principal() -> Principal:
    """Return the request's principal.

    Raises:
        NoRequestContextError: If no principal has been set.
    """
    principal = _principal.get()
    if principal is None:
        raise NoRequestContextError
    return principal


def get_optional_principal() -> Principal | None:
    return _principal.get()
