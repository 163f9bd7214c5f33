"""What a ``tessera.*`` entry point may hand to the app factory.

Plain frozen dataclasses with no web framework imports, so the storage and
auth packages can declare their middleware and startup hooks without
depending on FastAPI.

Middleware priorities run 0 (outermost) to 499; lifespan hooks start in
ascending priority and stop in reverse.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

MIDDLEWARE_PRIORITY_MIN = 0
MIDDLEWARE_PRIORITY_MAX = 499

MIDDLEWARE_PRIORITY_REQUEST_ID = 10
MIDDLEWARE_PRIORITY_AUTH = 150

LIFESPAN_PRIORITY_OBSERVABILITY = 50
LIFESPAN_PRIORITY_AUTH = 75
LIFESPAN_PRIORITY_KEY_STORE = 100


@dataclass(frozen=True, slots=True)
class MiddlewareContribution:
    """An ASGI middleware class plus the kwargs ``add_middleware`` gets.

    Raises:
        ValueError: If ``priority`` is outside 0..499.
    """

    middleware_class: type[Any]
    priority: int = 400
    kwargs: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not MIDDLEWARE_PRIORITY_MIN <= self.priority <= MIDDLEWARE_PRIORITY_MAX:
            msg = (
                f"{self.middleware_class.__name__}: priority must be between "
                f"{MIDDLEWARE_PRIORITY_MIN} and {MIDDLEWARE_PRIORITY_MAX}, got {self.priority}"
            )
            raise ValueError(msg)


@dataclass(frozen=True, slots=True)
class ErrorHandlerContribution:
    exception_class: type[BaseException]
    handler: Any  # async (Request, exc) -> Response


@dataclass(frozen=True, slots=True)
class LifespanContribution:
    """``hook(app)`` must return an async context manager."""

    hook: Any
    priority: int = 500
