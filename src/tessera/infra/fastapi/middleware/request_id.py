"""X-Request-ID correlation for every HTTP exchange.

A caller-supplied UUID is kept; anything else is replaced with a fresh
UUID4. The id is echoed on the response, exposed through
``get_request_id()`` for 500 bodies, and bound into structlog's context
vars so each log line of the request carries ``request_id``.

Plain ASGI rather than ``BaseHTTPMiddleware``, so the context var is set
in the same task that runs the endpoint.
"""

from __future__ import annotations

import uuid
from contextvars import ContextVar
from typing import Any

import structlog

from tessera.foundation.application.contributions import (
    MIDDLEWARE_PRIORITY_REQUEST_ID,
    MiddlewareContribution,
)

REQUEST_ID_HEADER = "X-Request-ID"
_HEADER_KEY = REQUEST_ID_HEADER.lower().encode("latin-1")

request_id_ctx: ContextVar[str] = ContextVar("request_id", default="")


def get_request_id() -> str:
    """Id of the request being served, ``""`` outside one."""
    return request_id_ctx.get()


def _incoming_or_new(headers: list[tuple[bytes, bytes]]) -> str:
    raw = next((value for key, value in headers if key.lower() == _HEADER_KEY), b"")
    try:
        return str(uuid.UUID(raw.decode("latin-1")))
    except ValueError:
        return str(uuid.uuid4())


class RequestIdMiddleware:
    def __init__(self, app: Any) -> None:
        self.app = app

    async def __call__(self, scope: Any, receive: Any, send: Any) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request_id = _incoming_or_new(scope.get("headers", []))

        async def send_with_id(message: dict[str, Any]) -> None:
            if message["type"] == "http.response.start":
                message = {
                    **message,
                    "headers": [
                        *message.get("headers", []),
                        (_HEADER_KEY, request_id.encode("latin-1")),
                    ],
                }
            await send(message)

        ctx_token = request_id_ctx.set(request_id)
        structlog.contextvars.bind_contextvars(request_id=request_id)
        try:
            await self.app(scope, receive, send_with_id)
        finally:
            structlog.contextvars.unbind_contextvars("request_id")
            request_id_ctx.reset(ctx_token)


contribution = MiddlewareContribution(
    middleware_class=RequestIdMiddleware,
    priority=MIDDLEWARE_PRIORITY_REQUEST_ID,
)
