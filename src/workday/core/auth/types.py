"""Auth domain types."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel


class User(BaseModel):
    """User domain model.

    Emails are stored lower-cased; lookups also compare case-insensitively
    so rows written by other tools still match.
    """

    id: UUID
    email: str
    name: str
    password_hash: str
    is_admin: bool = False
    plan_key: str = "free"
    created_at: datetime


class SessionIdentity(BaseModel):
    """Caller identity carried inside a session token."""

    user_id: UUID
    email: str
    name: str


class SessionPayload(BaseModel):
    """Session token claims."""

    sub: str  # user_id
    email: str
    name: str
    iat: int  # issued at timestamp
    exp: int  # expiration timestamp
