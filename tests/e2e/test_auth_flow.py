"""End-to-end tests for registration, login and sessions."""

from fastapi.testclient import TestClient

from tests.fixtures.api import DEFAULT_PASSWORD, app_store, register
from workday.entrypoints.api.middleware.session_auth import SESSION_COOKIE, WORKSPACE_COOKIE


class TestRegistration:
    """Test sign-up."""

    def test_register_signs_in(self, client: TestClient) -> None:
        """Registration returns the user, sets cookies and a personal workspace."""
        body = register(client, "Ada@Example.com", "Ada")

        assert body["user"]["email"] == "ada@example.com"
        assert body["user"]["plan_key"] == "free"
        assert client.cookies[WORKSPACE_COOKIE] == body["workspace_id"]

        me = client.get("/api/auth/me").json()
        assert me["user"]["id"] == body["user"]["id"]

        workspaces = client.get("/api/workspaces").json()
        assert workspaces["active_workspace_id"] == body["workspace_id"]
        [workspace] = workspaces["workspaces"]
        assert workspace["name"] == "Ada's Workspace"
        assert workspace["type"] == "personal"
        assert workspace["role"] == "admin"

    def test_session_cookie_flags(self, client: TestClient) -> None:
        """The session cookie is HTTP-only and SameSite=Lax."""
        response = client.post(
            "/api/auth/register",
            json={"email": "ada@example.com", "password": DEFAULT_PASSWORD, "name": "Ada"},
        )

        cookies = [
            c for c in response.headers.get_list("set-cookie") if c.startswith(SESSION_COOKIE)
        ]
        assert len(cookies) == 1
        assert "httponly" in cookies[0].lower()
        assert "samesite=lax" in cookies[0].lower()

    def test_duplicate_email(self, client: TestClient) -> None:
        """A second account for the same email conflicts."""
        register(client, "ada@example.com")
        client.app.state.rate_limiter.reset()  # type: ignore[attr-defined]

        response = client.post(
            "/api/auth/register",
            json={"email": "ADA@example.com", "password": DEFAULT_PASSWORD, "name": "Ada"},
        )

        assert response.status_code == 409
        assert response.json() == {"error": "An account with that email already exists."}

    def test_invalid_input(self, client: TestClient) -> None:
        """Malformed emails and short passwords are rejected with 400."""
        bad_email = client.post(
            "/api/auth/register",
            json={"email": "not-an-email", "password": DEFAULT_PASSWORD, "name": "Ada"},
        )
        short_password = client.post(
            "/api/auth/register",
            json={"email": "ada@example.com", "password": "short", "name": "Ada"},
        )

        assert bad_email.status_code == 400
        assert "email" in bad_email.json()["error"]
        assert short_password.status_code == 400
        assert app_store(client).users == {}


class TestLogin:
    """Test sign-in and sign-out."""

    def test_login_and_logout(self, client: TestClient) -> None:
        """Login restores the session; logout clears it."""
        register(client, "ada@example.com", "Ada")
        client.post("/api/auth/logout")
        assert client.get("/api/auth/me").json() == {"user": None}

        response = client.post(
            "/api/auth/login", json={"email": "ADA@example.com", "password": DEFAULT_PASSWORD}
        )

        assert response.status_code == 200
        assert response.json()["user"]["email"] == "ada@example.com"
        assert client.get("/api/auth/me").json()["user"]["name"] == "Ada"

        assert client.post("/api/auth/logout").json() == {"ok": True}
        assert client.get("/api/workspaces").status_code == 401

    def test_bad_credentials_indistinguishable(self, client: TestClient) -> None:
        """Wrong password and unknown email give the same answer."""
        register(client, "ada@example.com")

        wrong = client.post(
            "/api/auth/login", json={"email": "ada@example.com", "password": "wrong-password"}
        )
        unknown = client.post(
            "/api/auth/login", json={"email": "nobody@example.com", "password": "wrong-password"}
        )

        assert wrong.status_code == unknown.status_code == 401
        assert wrong.json() == unknown.json() == {"error": "Invalid email or password."}

    def test_login_rate_limited(self, client: TestClient) -> None:
        """The eleventh attempt from one address in ten minutes is refused."""
        headers = {"X-Forwarded-For": "198.51.100.23"}
        payload = {"email": "ada@example.com", "password": "wrong-password"}

        statuses = [
            client.post("/api/auth/login", json=payload, headers=headers).status_code
            for _ in range(11)
        ]

        assert statuses[:10] == [401] * 10
        assert statuses[10] == 429

        other = client.post(
            "/api/auth/login", json=payload, headers={"X-Forwarded-For": "198.51.100.24"}
        )
        assert other.status_code == 401

    def test_tampered_session_is_anonymous(self, client: TestClient) -> None:
        """A modified session token is treated as no session."""
        register(client, "ada@example.com")
        head, _, signature = client.cookies[SESSION_COOKIE].rpartition(".")
        forged = ("A" if signature[0] != "A" else "B") + signature[1:]
        client.cookies.delete(SESSION_COOKIE)
        client.cookies.set(SESSION_COOKIE, f"{head}.{forged}")

        assert client.get("/api/auth/me").json() == {"user": None}
        assert client.get("/api/entitlements").status_code == 401
