"""Header-less development access to the key API.

When ``AUTH_DEV_BYPASS`` is set, requests without an Authorization header
act as the single tenant ``DEV_BYPASS_SUBJECT``. A request that does send a
header is still verified. ``ENVIRONMENT=production`` vetoes the bypass
whatever the flag says.
"""

from __future__ import annotations

import logging
import os

logger = logging.getLogger(__name__)

DEV_BYPASS_SUBJECT = "dev-bypass"

_PRODUCTION = "production"


def resolve_dev_bypass(requested: bool) -> bool:
    """Return whether the bypass is actually on, logging the outcome."""
    if not requested:
        return False

    environment = os.environ.get("ENVIRONMENT", "development")
    if environment == _PRODUCTION:
        logger.error(
            "auth_dev_bypass_blocked",
            extra={"environment": environment, "tenant": DEV_BYPASS_SUBJECT},
        )
        return False

    logger.warning(
        "auth_dev_bypass_active",
        extra={"environment": environment, "tenant": DEV_BYPASS_SUBJECT},
    )
    return True
