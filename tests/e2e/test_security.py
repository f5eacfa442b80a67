"""End-to-end tests for CSRF and response headers."""

from fastapi.testclient import TestClient

from tests.fixtures.api import DEFAULT_PASSWORD, app_store
from workday.entrypoints.api.middleware.csrf import CSRF_HEADER


def test_post_without_csrf_header(client: TestClient) -> None:
    """A state-changing request without the header is refused before any handler runs."""
    del client.headers[CSRF_HEADER]

    response = client.post(
        "/api/auth/register",
        json={"email": "ada@example.com", "password": DEFAULT_PASSWORD, "name": "Ada"},
    )

    assert response.status_code == 403
    assert response.json() == {"error": "CSRF token missing or invalid."}
    assert app_store(client).users == {}


def test_post_with_mismatched_header(client: TestClient) -> None:
    """The header must echo the cookie exactly."""
    client.headers[CSRF_HEADER] = "forged-token"

    response = client.post("/api/auth/logout")

    assert response.status_code == 403


def test_health_is_public(client: TestClient) -> None:
    """Health needs no session."""
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


def test_security_headers_on_success_and_errors(client: TestClient) -> None:
    """Headers are attached to normal, unauthorized and CSRF-rejected responses."""
    ok = client.get("/health")
    unauthorized = client.get("/api/workspaces")
    del client.headers[CSRF_HEADER]
    rejected = client.post("/api/orgs", json={"name": "Acme"})

    assert unauthorized.status_code == 401
    assert rejected.status_code == 403
    for response in (ok, unauthorized, rejected):
        assert response.headers["x-frame-options"] == "DENY"
        assert response.headers["x-content-type-options"] == "nosniff"
        assert "frame-ancestors 'none'" in response.headers["content-security-policy"]
        assert "strict-transport-security" not in response.headers


def test_unknown_route(client: TestClient) -> None:
    """Framework 404s use the same error shape."""
    response = client.get("/api/nothing-here")

    assert response.status_code == 404
    assert response.json() == {"error": "Not Found"}
