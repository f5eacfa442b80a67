"""Secure token generation for invites and the CSRF cookie."""

import hmac
import secrets
from datetime import UTC, datetime, timedelta

# Token configuration
INVITE_TOKEN_BYTES = 32  # 256 bits of entropy
INVITE_TOKEN_EXPIRY_DAYS = 7
CSRF_TOKEN_BYTES = 24


def generate_invite_token() -> str:
    """Generate a cryptographically secure single-use invite token.

    Returns:
        URL-safe base64 encoded token string.
    """
    return secrets.token_urlsafe(INVITE_TOKEN_BYTES)


def generate_csrf_token() -> str:
    """Generate a random CSRF double-submit token."""
    return secrets.token_urlsafe(CSRF_TOKEN_BYTES)


def tokens_match(expected: str | None, presented: str | None) -> bool:
    """Compare two tokens in constant time; missing values never match."""
    if not expected or not presented:
        return False
    return hmac.compare_digest(expected.encode("utf-8"), presented.encode("utf-8"))


def get_invite_expiry(now: datetime | None = None, days: int = INVITE_TOKEN_EXPIRY_DAYS) -> datetime:
    """Calculate invite expiry timestamp.

    Args:
        now: Creation time, defaults to the current UTC time.
        days: Number of days until expiry.

    Returns:
        UTC datetime when the invite expires.
    """
    return (now or datetime.now(UTC)) + timedelta(days=days)
