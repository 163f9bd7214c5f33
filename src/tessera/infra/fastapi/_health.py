"""``GET /healthz``: process liveness only.

Public (see ``PUBLIC_PATH_PREFIXES`` in the auth middleware) and does not
touch the key store, so a Redis outage does not get the process restarted.
"""

from __future__ import annotations

from fastapi import APIRouter

router = APIRouter(tags=["health"])


@router.get("/healthz", include_in_schema=False)
async def healthz() -> dict[str, str]:
    return {"status": "ok"}
