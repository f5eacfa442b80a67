"""Session token creation and validation."""

from datetime import UTC, datetime, timedelta
from uuid import UUID

import jwt
import structlog
from pydantic import ValidationError

from workday.core.auth.types import SessionIdentity, SessionPayload

logger = structlog.get_logger()

# Development-only signing key. Refused when running in production.
DEV_SECRET_KEY = "workday-dev-secret-change-in-production"  # pragma: allowlist secret
ALGORITHM = "HS256"
SESSION_TTL = timedelta(days=7)


class TokenError(Exception):
    """Raised when token validation fails."""

    pass


class SessionManager:
    """Issues and verifies signed, time-limited session tokens.

    Tokens are stateless: there is no server-side session table, so a token
    stays valid until it expires even after the client cookie is cleared.
    """

    def __init__(self, secret_key: str, ttl: timedelta = SESSION_TTL) -> None:
        """Initialize the session manager.

        Args:
            secret_key: HMAC signing key shared by every process.
            ttl: Token lifetime.

        Raises:
            ValueError: If the signing key is empty.
        """
        if not secret_key:
            raise ValueError("Session secret key must not be empty")
        if secret_key == DEV_SECRET_KEY:
            logger.warning("session_using_dev_secret")
        self._secret_key = secret_key
        self.ttl = ttl

    def issue(self, identity: SessionIdentity, now: datetime | None = None) -> str:
        """Create a signed session token.

        Args:
            identity: Caller identity to embed.
            now: Issuance time, defaults to the current UTC time.

        Returns:
            Encoded JWT string.
        """
        now = now or datetime.now(UTC)
        expire = now + self.ttl

        payload = {
            "sub": str(identity.user_id),
            "email": identity.email,
            "name": identity.name,
            "iat": int(now.timestamp()),
            "exp": int(expire.timestamp()),
        }

        return jwt.encode(payload, self._secret_key, algorithm=ALGORITHM)

    def decode(self, token: str) -> SessionPayload:
        """Decode and validate a session token.

        Args:
            token: Encoded JWT string.

        Returns:
            Decoded token payload.

        Raises:
            TokenError: If the token is invalid, incomplete or expired.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[ALGORITHM],
                options={"require": ["sub", "iat", "exp"]},
            )
            return SessionPayload.model_validate(payload, strict=True)
        except jwt.ExpiredSignatureError:
            raise TokenError("Token has expired") from None
        except jwt.InvalidTokenError as e:
            raise TokenError(f"Invalid token: {e}") from None
        except ValidationError:
            raise TokenError("Malformed token payload") from None

    def verify(self, token: str | None) -> SessionIdentity | None:
        """Verify a session token, failing closed.

        Args:
            token: Encoded JWT string from the session cookie.

        Returns:
            The embedded identity, or None for a missing, tampered,
            malformed or expired token.
        """
        if not token:
            return None
        try:
            payload = self.decode(token)
            return SessionIdentity(
                user_id=UUID(payload.sub),
                email=payload.email,
                name=payload.name,
            )
        except (TokenError, ValueError) as e:
            logger.debug("session_rejected", reason=str(e))
            return None
