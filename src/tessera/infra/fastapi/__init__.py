"""Tessera Infra FastAPI -- app factory, routers, error handlers, middleware."""

from tessera.infra.fastapi.app_factory import create_app
from tessera.infra.fastapi.error_handlers import (
    ProblemDetail,
    register_exception_handlers,
)
from tessera.infra.fastapi.middleware.request_id import (
    RequestIdMiddleware,
    get_request_id,
)
from tessera.infra.fastapi.routers.keys import get_key_manager
from tessera.infra.fastapi.settings import AppSettings, CORSSettings

__all__ = [
    "AppSettings",
    "CORSSettings",
    "ProblemDetail",
    "RequestIdMiddleware",
    "create_app",
    "get_key_manager",
    "get_request_id",
    "register_exception_handlers",
]
