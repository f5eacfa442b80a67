"""End-to-end tests for organizations and invites."""

from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import UUID

import pytest
from fastapi.testclient import TestClient

from tests.fixtures.api import app_store, register
from workday.entrypoints.api.middleware.session_auth import WORKSPACE_COOKIE


def create_org(client: TestClient, name: str = "Acme Corp") -> dict[str, Any]:
    response = client.post("/api/orgs", json={"name": name})
    assert response.status_code == 201, response.text
    body: dict[str, Any] = response.json()
    return body


def invite(client: TestClient, org_id: str, email: str) -> dict[str, Any]:
    response = client.post(f"/api/orgs/{org_id}/invites", json={"email": email})
    assert response.status_code == 201, response.text
    body: dict[str, Any] = response.json()
    return body


def expire(client: TestClient, invite_id: str) -> None:
    store = app_store(client)
    key = UUID(invite_id)
    past = datetime.now(UTC) - timedelta(minutes=1)
    store.invites[key] = store.invites[key].model_copy(update={"expires_at": past})


class TestCreateOrg:
    """Test organization creation over HTTP."""

    def test_creates_org_and_general_workspace(self, client: TestClient) -> None:
        """The creator owns the org and administers its default workspace."""
        register(client, "alice@example.com", "Alice")

        org = create_org(client)

        assert org["slug"] == "acme-corp"
        assert client.get("/api/orgs").json()["orgs"] == [
            {
                "id": org["id"],
                "name": "Acme Corp",
                "slug": "acme-corp",
                "role": "owner",
                "status": "active",
            }
        ]
        workspaces = client.get(f"/api/orgs/{org['id']}/workspaces").json()["workspaces"]
        assert [(w["name"], w["is_default"]) for w in workspaces] == [
            ("Acme Corp General", True)
        ]
        listing = client.get("/api/workspaces").json()["workspaces"]
        general = next(w for w in listing if w["org_id"] == org["id"])
        assert general["role"] == "admin"
        assert general["type"] == "organization"

    def test_duplicate_slug(self, client: TestClient, new_client: Callable[[], TestClient]) -> None:
        """Slugs are unique across organizations."""
        other = new_client()
        register(other, "mallory@example.com")
        create_org(other)
        register(client, "alice@example.com")

        response = client.post("/api/orgs", json={"name": "ACME corp!"})

        assert response.status_code == 409

    def test_free_plan_org_limits(self, client: TestClient) -> None:
        """Free users get one organization with one workspace."""
        register(client, "alice@example.com")
        org = create_org(client)

        second_org = client.post("/api/orgs", json={"name": "Beta"})
        second_workspace = client.post(
            f"/api/orgs/{org['id']}/workspaces", json={"name": "Ops"}
        )

        assert second_org.status_code == 403
        assert second_org.json()["limit"] == "limit.organizations"
        assert second_workspace.status_code == 403
        assert second_workspace.json()["limit"] == "limit.org_workspaces_per_org"


class TestInviteFlow:
    """Test the invite lifecycle across several browsers."""

    @pytest.fixture
    def alice(self, client: TestClient) -> TestClient:
        register(client, "alice@example.com", "Alice")
        return client

    @pytest.fixture
    def org(self, alice: TestClient) -> dict[str, Any]:
        return create_org(alice)

    def test_accept(
        self,
        alice: TestClient,
        org: dict[str, Any],
        new_client: Callable[[], TestClient],
    ) -> None:
        """The invitee joins the org and lands in its default workspace."""
        sent = invite(alice, org["id"], "Bob@Example.com")
        assert sent["email"] == "bob@example.com"
        assert sent["state"] == "pending"

        bob = new_client()
        register(bob, "bob@example.com", "Bob")
        pending = bob.get("/api/orgs/invites").json()["invites"]
        assert [(i["org_name"], i["token"]) for i in pending] == [("Acme Corp", sent["token"])]

        accepted = bob.post("/api/orgs/invites/accept", json={"token": sent["token"]})

        assert accepted.status_code == 200
        general = alice.get(f"/api/orgs/{org['id']}/workspaces").json()["workspaces"][0]
        assert accepted.json() == {
            "org_id": org["id"],
            "role": "member",
            "workspace_id": general["id"],
        }
        assert bob.cookies[WORKSPACE_COOKIE] == general["id"]
        assert bob.get("/api/workspaces").json()["active_workspace_id"] == general["id"]
        assert bob.get("/api/orgs/invites").json()["invites"] == []

        members = alice.get(f"/api/orgs/{org['id']}/members").json()["members"]
        assert sorted((m["email"], m["role"]) for m in members) == [
            ("alice@example.com", "owner"),
            ("bob@example.com", "member"),
        ]
        states = alice.get(f"/api/orgs/{org['id']}/invites").json()["invites"]
        assert [i["state"] for i in states] == ["accepted"]

        again = bob.post("/api/orgs/invites/accept", json={"token": sent["token"]})
        assert again.status_code == 409

    def test_wrong_recipient(
        self,
        alice: TestClient,
        org: dict[str, Any],
        new_client: Callable[[], TestClient],
    ) -> None:
        """A leaked token cannot be redeemed by someone else."""
        sent = invite(alice, org["id"], "bob@example.com")
        carol = new_client()
        register(carol, "carol@example.com")

        response = carol.post("/api/orgs/invites/accept", json={"token": sent["token"]})

        assert response.status_code == 403
        assert carol.get("/api/orgs").json()["orgs"] == []
        assert carol.get(f"/api/orgs/{org['id']}/members").status_code == 403

    def test_expired(
        self,
        alice: TestClient,
        org: dict[str, Any],
        new_client: Callable[[], TestClient],
    ) -> None:
        """Expired invites are gone and show as expired to the org."""
        sent = invite(alice, org["id"], "bob@example.com")
        expire(alice, sent["id"])
        bob = new_client()
        register(bob, "bob@example.com")

        response = bob.post("/api/orgs/invites/accept", json={"token": sent["token"]})

        assert response.status_code == 410
        assert bob.get("/api/orgs/invites").json()["invites"] == []
        states = alice.get(f"/api/orgs/{org['id']}/invites").json()["invites"]
        assert [i["state"] for i in states] == ["expired"]

    def test_unknown_token(self, alice: TestClient) -> None:
        """Unknown tokens are 404."""
        response = alice.post("/api/orgs/invites/accept", json={"token": "no-such-token"})

        assert response.status_code == 404

    def test_members_cannot_invite(
        self,
        alice: TestClient,
        org: dict[str, Any],
        new_client: Callable[[], TestClient],
    ) -> None:
        """Only owners and admins send invites."""
        sent = invite(alice, org["id"], "bob@example.com")
        bob = new_client()
        register(bob, "bob@example.com")
        bob.post("/api/orgs/invites/accept", json={"token": sent["token"]})

        response = bob.post(
            f"/api/orgs/{org['id']}/invites", json={"email": "dave@example.com"}
        )

        assert response.status_code == 403

    def test_pending_invites_take_seats(self, alice: TestClient, org: dict[str, Any]) -> None:
        """The free seat limit counts pending invites; expiry frees the seat."""
        invite(alice, org["id"], "bob@example.com")
        dave = invite(alice, org["id"], "dave@example.com")

        full = alice.post(f"/api/orgs/{org['id']}/invites", json={"email": "erin@example.com"})

        assert full.status_code == 403
        assert full.json()["limit"] == "limit.org_members"
        assert full.json()["max"] == 3

        expire(alice, dave["id"])
        invite(alice, org["id"], "erin@example.com")
