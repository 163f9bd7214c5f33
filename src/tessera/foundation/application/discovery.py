"""Load the contributions installed under a ``tessera.*`` entry point group.

A contribution that fails to import is logged and left out, so one broken
plugin cannot keep the key service from starting.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from importlib.metadata import entry_points
from typing import Any

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class DiscoveredContribution:
    name: str
    group: str
    value: Any


def discover(
    group: str,
    *,
    exclude_names: frozenset[str] = frozenset(),
) -> list[DiscoveredContribution]:
    """Return the loaded objects of ``group``, minus ``exclude_names``."""
    found: list[DiscoveredContribution] = []
    for entry_point in entry_points(group=group):
        if entry_point.name in exclude_names:
            continue
        try:
            value = entry_point.load()
        except Exception:
            logger.exception(
                "contribution_load_failed",
                extra={"group": group, "entry_point": entry_point.name},
            )
            continue
        found.append(DiscoveredContribution(entry_point.name, group, value))

    logger.info(
        "contributions_discovered",
        extra={"group": group, "names": [c.name for c in found]},
    )
    return found
