"""HTTP routers exposed through the ``tessera.routers`` entry point group."""

from tessera.infra.fastapi.routers.keys import get_key_manager
from tessera.infra.fastapi.routers.keys import router as keys_router

__all__ = ["get_key_manager", "keys_router"]
