"""Problem-details (RFC 7807) responses for the key API.

    AuthenticationError    401  WWW-Authenticate: Bearer
    NotFoundError          404  unknown id, other tenant's id, unknown secret
    DomainError            400
    RequestValidationError 422  malformed UUID or body; input never echoed
    InternalError          500  generic detail + correlation id
    anything else          500  generic detail + correlation id

Context attached to a ``DomainError`` is passed through ``_sanitize_context``
before it reaches a client: credential-named keys are dropped and
credential-looking substrings are masked.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime
from typing import TYPE_CHECKING, Any

from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from tessera.foundation.domain.exceptions import (
    AuthenticationError,
    DomainError,
    InternalError,
    NotFoundError,
)
from tessera.infra.fastapi.middleware.request_id import get_request_id

if TYPE_CHECKING:
    from fastapi import FastAPI, Request

logger = logging.getLogger(__name__)

PROBLEM_MEDIA_TYPE = "application/problem+json"

INTERNAL_ERROR_DETAIL = (
    "An internal error occurred. Please contact support with the correlation ID."
)

_DROPPED_KEYS = frozenset({"password", "secret", "token", "api_key", "apikey", "credential"})

_MASKS = (
    (re.compile(r"rediss?://[^@\s]*@[^/\s]*"), "redis://[REDACTED]@[REDACTED]"),
    *(
        (re.compile(rf"{word}\s*=\s*['\"]?[^'\"\s]+['\"]?", re.IGNORECASE), f"{word}=[REDACTED]")
        for word in ("password", "secret", "token")
    ),
)


class ProblemDetail(BaseModel):
    """Problem body. ``correlation_id`` appears on 500s only."""

    type: str = Field(..., examples=["/errors/not-found"])
    title: str
    status: int = Field(..., ge=400, le=599)
    detail: str
    instance: str | None = None
    error_code: str | None = Field(default=None, examples=["RESOURCE_NOT_FOUND"])
    context: dict[str, Any] | None = None
    correlation_id: str | None = None


def _respond(
    request: Request,
    headers: dict[str, str] | None = None,
    **fields: Any,
) -> JSONResponse:
    problem = ProblemDetail(instance=request.url.path, **fields)
    return JSONResponse(
        problem.model_dump(exclude_none=True),
        status_code=problem.status,
        media_type=PROBLEM_MEDIA_TYPE,
        headers=headers,
    )


def _sanitize_context(context: dict[str, Any] | None) -> dict[str, Any] | None:
    if context is None:
        return None
    cleaned = {
        key: _sanitize_value(value)
        for key, value in context.items()
        if key.lower() not in _DROPPED_KEYS
    }
    return cleaned or None


def _sanitize_value(value: Any) -> Any:
    if isinstance(value, str):
        for pattern, replacement in _MASKS:
            value = pattern.sub(replacement, value)
        return value
    if isinstance(value, dict):
        return _sanitize_context(value)
    if isinstance(value, (list, tuple)):
        return [_sanitize_value(item) for item in value]
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, (int, float, bool)) or value is None:
        return value
    # UUIDs and anything else JSON cannot carry as-is.
    return str(value)


def _server_error(request: Request, error_code: str) -> JSONResponse:
    return _respond(
        request,
        type="/errors/internal-error",
        title="Internal Server Error",
        status=500,
        detail=INTERNAL_ERROR_DETAIL,
        error_code=error_code,
        correlation_id=get_request_id() or "unknown",
    )


async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    return _respond(
        request,
        type="/errors/not-found",
        title="Resource Not Found",
        status=404,
        detail=str(exc),
        error_code=exc.error_code,
        context=_sanitize_context(exc.context),
    )


async def authentication_error_handler(
    request: Request, exc: AuthenticationError
) -> JSONResponse:
    return _respond(
        request,
        headers={"WWW-Authenticate": f'Bearer realm="API", error="{exc.auth_error}"'},
        type=f"/errors/{exc.error_code.lower().replace('_', '-')}",
        title="Unauthorized",
        status=401,
        detail=str(exc),
        error_code=exc.error_code,
    )


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    return _respond(
        request,
        type="/errors/domain-error",
        title="Bad Request",
        status=400,
        detail=str(exc),
        error_code=exc.error_code,
        context=_sanitize_context(exc.context),
    )


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    # Only where and why: the rejected value may be a secret.
    errors = [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", ""), "type": err.get("type", "")}
        for err in exc.errors()
    ]
    return _respond(
        request,
        type="/errors/request-validation-error",
        title="Request Validation Error",
        status=422,
        detail="Request validation failed",
        error_code="REQUEST_VALIDATION_ERROR",
        context={"errors": errors},
    )


async def internal_error_handler(request: Request, exc: InternalError) -> JSONResponse:
    """Log the backend detail, answer with the generic one."""
    logger.error(
        "internal_error",
        extra={
            "correlation_id": get_request_id() or "unknown",
            "method": request.method,
            "path": request.url.path,
            "detail": exc.detail,
        },
        exc_info=exc,
    )
    return _server_error(request, exc.error_code)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last resort for non-domain exceptions.

    Starlette calls this from ServerErrorMiddleware, outside the request id
    middleware, so the correlation id is usually ``"unknown"``.
    """
    logger.error(
        "unhandled_exception",
        extra={
            "method": request.method,
            "path": request.url.path,
            "exception_type": type(exc).__name__,
        },
        exc_info=exc,
    )
    return _server_error(request, "INTERNAL_ERROR")


def register_exception_handlers(app: FastAPI) -> None:
    """Install every handler above on ``app``.

    Starlette picks the handler of the nearest class in the exception's
    MRO, so ``DomainError`` only catches what the specific ones do not.
    """
    handlers: list[tuple[type[BaseException], Any]] = [
        (AuthenticationError, authentication_error_handler),
        (NotFoundError, not_found_handler),
        (InternalError, internal_error_handler),
        (DomainError, domain_error_handler),
        (RequestValidationError, request_validation_handler),
        (Exception, unhandled_exception_handler),
    ]
    for exception_class, handler in handlers:
        app.add_exception_handler(exception_class, handler)
