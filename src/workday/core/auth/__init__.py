"""Auth domain types and utilities."""

from workday.core.auth.password import hash_password, verify_password
from workday.core.auth.repository import AuthRepository
from workday.core.auth.session import SessionManager, TokenError
from workday.core.auth.tokens import generate_csrf_token, generate_invite_token, tokens_match
from workday.core.auth.types import SessionIdentity, SessionPayload, User

__all__ = [
    "User",
    "SessionIdentity",
    "SessionPayload",
    "SessionManager",
    "TokenError",
    "hash_password",
    "verify_password",
    "generate_invite_token",
    "generate_csrf_token",
    "tokens_match",
    "AuthRepository",
]
