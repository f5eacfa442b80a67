"""Tests for session token issuance and verification."""

from datetime import UTC, datetime, timedelta
from uuid import uuid4

import jwt
import pytest

from workday.core.auth.session import ALGORITHM, SessionManager, TokenError
from workday.core.auth.types import SessionIdentity

SECRET = "unit-test-secret"  # pragma: allowlist secret


@pytest.fixture
def manager() -> SessionManager:
    """Create a session manager with a test key."""
    return SessionManager(SECRET)


@pytest.fixture
def identity() -> SessionIdentity:
    """Create a sample identity."""
    return SessionIdentity(user_id=uuid4(), email="ada@example.com", name="Ada")


class TestSessionManager:
    """Test SessionManager."""

    def test_issue_and_verify(self, manager: SessionManager, identity: SessionIdentity) -> None:
        """A freshly issued token verifies to the same identity."""
        token = manager.issue(identity)

        assert manager.verify(token) == identity

    def test_payload_carries_ttl(self, manager: SessionManager, identity: SessionIdentity) -> None:
        """exp is iat plus the configured lifetime."""
        now = datetime.now(UTC)
        payload = manager.decode(manager.issue(identity, now=now))

        assert payload.sub == str(identity.user_id)
        assert payload.exp - payload.iat == int(timedelta(days=7).total_seconds())

    def test_missing_token(self, manager: SessionManager) -> None:
        """No token means no session."""
        assert manager.verify(None) is None
        assert manager.verify("") is None

    def test_expired_token(self, manager: SessionManager, identity: SessionIdentity) -> None:
        """An expired token verifies to None and decodes with TokenError."""
        token = manager.issue(identity, now=datetime.now(UTC) - timedelta(days=8))

        assert manager.verify(token) is None
        with pytest.raises(TokenError, match="expired"):
            manager.decode(token)

    def test_tampered_token(self, manager: SessionManager, identity: SessionIdentity) -> None:
        """Changing any character of the signature invalidates the token."""
        token = manager.issue(identity)
        head, _, signature = token.rpartition(".")
        flipped = ("A" if signature[0] != "A" else "B") + signature[1:]

        assert manager.verify(f"{head}.{flipped}") is None

    def test_other_key_rejected(self, identity: SessionIdentity) -> None:
        """A token signed with another key is rejected."""
        token = SessionManager("another-secret").issue(identity)

        assert SessionManager(SECRET).verify(token) is None

    def test_malformed_claims_rejected(self, manager: SessionManager) -> None:
        """A validly signed token with a non-UUID subject is rejected."""
        now = int(datetime.now(UTC).timestamp())
        token = jwt.encode(
            {"sub": "not-a-uuid", "email": "a@b.c", "name": "A", "iat": now, "exp": now + 60},
            SECRET,
            algorithm=ALGORITHM,
        )

        assert manager.verify(token) is None

    def test_missing_claims_rejected(self, manager: SessionManager) -> None:
        """A token without exp is rejected."""
        token = jwt.encode({"sub": str(uuid4())}, SECRET, algorithm=ALGORITHM)

        with pytest.raises(TokenError):
            manager.decode(token)

    def test_garbage_token(self, manager: SessionManager) -> None:
        """Random strings are rejected."""
        assert manager.verify("not.a.jwt") is None

    def test_empty_secret_refused(self) -> None:
        """An empty signing key is a configuration error."""
        with pytest.raises(ValueError):
            SessionManager("")
