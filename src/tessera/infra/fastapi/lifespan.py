"""Startup and shutdown ordering for the key service."""

from __future__ import annotations

import logging
from contextlib import AsyncExitStack, asynccontextmanager
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable, Iterable

    from tessera.foundation.application.contributions import LifespanContribution

logger = logging.getLogger(__name__)


def compose_lifespan(hooks: Iterable[LifespanContribution]) -> Callable[[Any], Any]:
    """Chain lifespan hooks into the single ``lifespan`` FastAPI accepts.

    Lower priorities start first and stop last. A hook that fails to start
    unwinds the ones already running, then the error propagates and the
    server does not come up.
    """
    ordered = sorted(hooks, key=lambda contribution: contribution.priority)

    @asynccontextmanager
    async def lifespan(app: Any) -> AsyncIterator[None]:
        async with AsyncExitStack() as stack:
            for contribution in ordered:
                hook_name = getattr(contribution.hook, "__qualname__", repr(contribution.hook))
                logger.debug(
                    "lifespan_hook_starting",
                    extra={"hook": hook_name, "priority": contribution.priority},
                )
                await stack.enter_async_context(contribution.hook(app))
            logger.info("lifespan_started", extra={"hooks": len(ordered)})
            yield
        logger.info("lifespan_stopped")

    return lifespan
