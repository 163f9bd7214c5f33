"""Errors a key operation can end in.

The HTTP layer maps each type to one status code (see
``tessera.infra.fastapi.error_handlers``) and reads ``error_code`` and
``context`` instead of parsing messages.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from uuid import UUID

__all__ = [
    "AuthenticationError",
    "DomainError",
    "InternalError",
    "NotFoundError",
]


class DomainError(Exception):
    """Root of the hierarchy; a bare ``DomainError`` is answered with 400.

    ``context`` holds snake_case debugging fields and is rendered after the
    message: ``DomainError("failed", context={"key_id": "1"})`` prints as
    ``failed (key_id=1)``.
    """

    error_code: str = "DOMAIN_ERROR"

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = dict(context or {})

    def __str__(self) -> str:
        if not self.context:
            return self.message
        fields = ", ".join(f"{name}={value}" for name, value in self.context.items())
        return f"{self.message} ({fields})"

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r}, context={self.context!r})"


class NotFoundError(DomainError):
    """No such key in the caller's tenant.

    A key that exists under another tenant raises this too, so the
    response never reveals whether an id is taken elsewhere.
    """

    error_code: str = "RESOURCE_NOT_FOUND"

    def __init__(self, resource_type: str, resource_id: UUID | str, **context: Any) -> None:
        self.resource_type = resource_type
        self.resource_id = resource_id
        super().__init__(
            f"{resource_type} not found: {resource_id}",
            {"resource_type": resource_type, "resource_id": str(resource_id), **context},
        )


class InternalError(DomainError):
    """The storage backend failed or returned something unreadable.

    ``detail`` goes to the log only; clients get a generic 500 body.
    """

    error_code: str = "INTERNAL_ERROR"

    def __init__(self, detail: str, **context: Any) -> None:
        self.detail = detail
        super().__init__(f"Internal error: {detail}", context)


class AuthenticationError(DomainError):
    """No usable credentials on the request.

    ``auth_error`` is the RFC 6750 code sent in ``WWW-Authenticate``;
    ``error_code`` narrows the failure for clients (``TOKEN_EXPIRED``, ...).
    """

    error_code: str = "AUTHENTICATION_ERROR"

    def __init__(
        self,
        message: str,
        auth_error: str = "invalid_token",
        error_code: str = "AUTHENTICATION_ERROR",
        context: dict[str, Any] | None = None,
    ) -> None:
        self.auth_error = auth_error
        self.error_code = error_code
        super().__init__(message, context)
