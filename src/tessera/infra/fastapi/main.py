"""ASGI entry point: ``uvicorn tessera.infra.fastapi.main:app``."""

from tessera.infra.fastapi.app_factory import create_app

app = create_app()
