"""Tests for response security headers."""

from fastapi import FastAPI
from fastapi.testclient import TestClient

from workday.core.exceptions import Forbidden
from workday.entrypoints.api.errors import register_exception_handlers
from workday.entrypoints.api.middleware.security_headers import (
    HSTS_VALUE,
    SECURITY_HEADERS,
    SecurityHeadersMiddleware,
)


def _client(hsts: bool) -> TestClient:
    app = FastAPI()
    register_exception_handlers(app)
    app.add_middleware(SecurityHeadersMiddleware, hsts=hsts)

    @app.get("/ok")
    async def ok() -> dict[str, bool]:
        return {"ok": True}

    @app.get("/denied")
    async def denied() -> dict[str, bool]:
        raise Forbidden()

    return TestClient(app)


class TestSecurityHeadersMiddleware:
    """Test SecurityHeadersMiddleware."""

    def test_headers_on_success_and_error(self) -> None:
        """Every response carries the headers, including error responses."""
        client = _client(hsts=False)

        for path in ("/ok", "/denied", "/missing"):
            response = client.get(path)
            for name, value in SECURITY_HEADERS.items():
                assert response.headers[name] == value
            assert "Strict-Transport-Security" not in response.headers

    def test_hsts_in_production(self) -> None:
        """HSTS is only sent when enabled."""
        response = _client(hsts=True).get("/ok")

        assert response.headers["Strict-Transport-Security"] == HSTS_VALUE
        assert response.headers["X-Frame-Options"] == "DENY"
        assert "frame-ancestors 'none'" in response.headers["Content-Security-Policy"]
