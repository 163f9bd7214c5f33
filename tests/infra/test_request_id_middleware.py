"""Tests for RequestIdMiddleware and the health router."""

from __future__ import annotations

from uuid import UUID

import pytest
import structlog
from fastapi import FastAPI
from fastapi.testclient import TestClient

from tessera.infra.fastapi._health import router as health_router
from tessera.infra.fastapi.middleware.request_id import RequestIdMiddleware, get_request_id


def _make_app() -> FastAPI:
    app = FastAPI()
    app.add_middleware(RequestIdMiddleware)
    app.include_router(health_router)

    @app.get("/echo")
    async def echo() -> dict[str, str]:
        bound = structlog.contextvars.get_contextvars()
        return {"request_id": get_request_id(), "bound": bound.get("request_id", "")}

    return app


@pytest.mark.unit
class TestRequestIdMiddleware:
    def test_generates_id_when_missing(self) -> None:
        response = TestClient(_make_app()).get("/echo")
        request_id = response.headers["x-request-id"]
        assert UUID(request_id).version == 4
        assert response.json() == {"request_id": request_id, "bound": request_id}

    def test_propagates_valid_id(self) -> None:
        incoming = "550e8400-e29b-41d4-a716-446655440000"
        response = TestClient(_make_app()).get("/echo", headers={"X-Request-ID": incoming})
        assert response.headers["x-request-id"] == incoming
        assert response.json()["request_id"] == incoming

    def test_replaces_invalid_id(self) -> None:
        response = TestClient(_make_app()).get("/echo", headers={"X-Request-ID": "not-a-uuid"})
        assert response.headers["x-request-id"] != "not-a-uuid"

    def test_context_reset_after_request(self) -> None:
        TestClient(_make_app()).get("/echo")
        assert get_request_id() == ""


@pytest.mark.unit
class TestHealth:
    def test_healthz(self) -> None:
        response = TestClient(_make_app()).get("/healthz")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}
