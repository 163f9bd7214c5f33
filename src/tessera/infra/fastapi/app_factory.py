"""Assemble the key service ASGI app from installed contributions.

The distribution registers its pieces under four entry point groups (see
``pyproject.toml``): the health and keys routers, the request id and JWT
middleware, the problem-details handlers, and the observability, auth and
key store lifespan hooks. ``create_app`` loads them, adds whatever the
caller passes explicitly, and wires everything into one FastAPI app.
Tests switch discovery off and pass contributions by hand.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware

from tessera.foundation.application.contributions import (
    ErrorHandlerContribution,
    LifespanContribution,
    MiddlewareContribution,
)
from tessera.foundation.application.discovery import discover
from tessera.infra.fastapi.lifespan import compose_lifespan
from tessera.infra.fastapi.settings import AppSettings

if TYPE_CHECKING:
    from fastapi import APIRouter

logger = logging.getLogger(__name__)

GROUP_ROUTERS = "tessera.routers"
GROUP_MIDDLEWARE = "tessera.middleware"
GROUP_ERROR_HANDLERS = "tessera.error_handlers"
GROUP_LIFESPAN = "tessera.lifespan"


def create_app(
    settings: AppSettings | None = None,
    *,
    extra_routers: list[APIRouter] | None = None,
    extra_middleware: list[MiddlewareContribution] | None = None,
    extra_lifespan_hooks: list[LifespanContribution] | None = None,
    extra_error_handlers: list[ErrorHandlerContribution] | None = None,
    exclude_groups: frozenset[str] | None = None,
    exclude_names: frozenset[str] | None = None,
) -> FastAPI:
    """Build the FastAPI app.

    ``exclude_groups`` and ``exclude_names`` override the ``APP_EXCLUDE_*``
    settings when given. Extras are applied alongside discovered
    contributions, never instead of them.
    """
    settings = settings or AppSettings()
    skip_groups = settings.exclude_groups if exclude_groups is None else exclude_groups
    skip_names = settings.exclude_entry_points if exclude_names is None else exclude_names

    def load(group: str) -> list[tuple[str, Any]]:
        if group in skip_groups:
            return []
        return [(c.name, c.value) for c in discover(group, exclude_names=skip_names)]

    app = FastAPI(
        title=settings.title,
        version=settings.version,
        description=settings.description,
        docs_url=settings.docs_url,
        redoc_url=settings.redoc_url,
        openapi_url=settings.openapi_url,
        debug=settings.debug,
        lifespan=compose_lifespan(_lifespan_hooks(extra_lifespan_hooks, load(GROUP_LIFESPAN))),
    )

    cors = settings.cors
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors.allow_origins,
        allow_credentials=cors.allow_credentials,
        allow_methods=cors.allow_methods,
        allow_headers=cors.allow_headers,
        expose_headers=cors.expose_headers,
    )

    _add_middleware(app, extra_middleware, load(GROUP_MIDDLEWARE))
    _add_error_handlers(app, extra_error_handlers, load(GROUP_ERROR_HANDLERS))

    for router in [*(extra_routers or []), *(value for _, value in load(GROUP_ROUTERS))]:
        app.include_router(router)

    logger.info("app_created", extra={"title": settings.title, "routes": len(app.routes)})
    return app


def _lifespan_hooks(
    extra: list[LifespanContribution] | None,
    discovered: list[tuple[str, Any]],
) -> list[LifespanContribution]:
    hooks = list(extra or [])
    for _, value in discovered:
        if not isinstance(value, LifespanContribution):
            # A bare hook factory gets the default priority.
            value = LifespanContribution(hook=value)
        hooks.append(value)
    return hooks


def _add_middleware(
    app: FastAPI,
    extra: list[MiddlewareContribution] | None,
    discovered: list[tuple[str, Any]],
) -> None:
    contributions = list(extra or [])
    for name, value in discovered:
        if isinstance(value, MiddlewareContribution):
            contributions.append(value)
        else:
            logger.warning("middleware_entry_point_ignored", extra={"entry_point": name})

    # add_middleware wraps the current stack, so the outermost (lowest
    # priority) middleware has to be added last.
    for contribution in sorted(contributions, key=lambda c: c.priority, reverse=True):
        app.add_middleware(contribution.middleware_class, **contribution.kwargs)
        logger.debug(
            "middleware_added",
            extra={
                "middleware": contribution.middleware_class.__name__,
                "priority": contribution.priority,
            },
        )


def _add_error_handlers(
    app: FastAPI,
    extra: list[ErrorHandlerContribution] | None,
    discovered: list[tuple[str, Any]],
) -> None:
    contributions = list(extra or [])
    for name, value in discovered:
        if isinstance(value, ErrorHandlerContribution):
            contributions.append(value)
        elif callable(value):
            value(app)
        else:
            logger.warning("error_handler_entry_point_ignored", extra={"entry_point": name})

    for contribution in contributions:
        app.add_exception_handler(contribution.exception_class, contribution.handler)
