"""Domain-specific exceptions.

All exceptions raised by the access-control core inherit from WorkdayError.
Each carries the HTTP status it maps to, so the API layer can render any of
them with a single exception handler while services stay free of HTTP types.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any


class WorkdayError(Exception):
    """Base exception for all workday errors.

    Attributes:
        status_code: HTTP status the error is rendered with.
        message: Caller-visible error message.
    """

    status_code: int = 500
    default_message: str = "Internal error."

    def __init__(self, message: str | None = None) -> None:
        """Initialize WorkdayError.

        Args:
            message: Caller-visible message, defaults to the class message.
        """
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_body(self) -> dict[str, Any]:
        """Render the JSON body returned to the caller."""
        return {"error": self.message}


class Unauthenticated(WorkdayError):
    """No session, or the session token failed verification."""

    status_code = 401
    default_message = "Unauthorized."


class Forbidden(WorkdayError):
    """Authenticated, but role, membership or CSRF check failed."""

    status_code = 403
    default_message = "Forbidden."


class NotFound(WorkdayError):
    """Resource, invite or workspace does not exist."""

    status_code = 404
    default_message = "Not found."


class Conflict(WorkdayError):
    """Invite already accepted, or a unique key (slug, email) is taken."""

    status_code = 409
    default_message = "Conflict."


class Gone(WorkdayError):
    """Invite expired."""

    status_code = 410
    default_message = "Gone."


class ValidationFailed(WorkdayError):
    """Malformed input."""

    status_code = 400
    default_message = "Invalid request."


class RateLimited(WorkdayError):
    """Too many attempts for a rate-limit key.

    Attributes:
        reset_at: When the current window closes.
        retry_after: Whole seconds until the window closes.
    """

    status_code = 429
    default_message = "Too many attempts. Please try again later."

    def __init__(self, reset_at: datetime, retry_after: int, message: str | None = None) -> None:
        """Initialize RateLimited.

        Args:
            reset_at: When the current window closes.
            retry_after: Seconds until the window closes.
            message: Optional override message.
        """
        super().__init__(message)
        self.reset_at = reset_at
        self.retry_after = retry_after

    def to_body(self) -> dict[str, Any]:
        """Render the JSON body including the retry hint."""
        return {"error": self.message, "retry_after": self.retry_after}


class EntitlementDenied(Forbidden):
    """Plan does not include a feature, or a plan limit was reached.

    Carries a machine-readable code so clients can render an upgrade prompt
    instead of a generic permission error.
    """

    code: str = "ENTITLEMENT_DENIED"

    def to_body(self) -> dict[str, Any]:
        """Render the structured upgrade-required body."""
        return {"error": self.message, "code": self.code, "upgrade_required": True}


class FeatureNotAvailable(EntitlementDenied):
    """Feature flag is off on the caller's plan."""

    code = "FEATURE_NOT_AVAILABLE"
    default_message = "Feature not available on your plan."

    def __init__(self, feature: str) -> None:
        """Initialize FeatureNotAvailable.

        Args:
            feature: The feature key that was denied.
        """
        super().__init__()
        self.feature = feature

    def to_body(self) -> dict[str, Any]:
        """Render the body with the denied feature key."""
        body = super().to_body()
        body["feature"] = self.feature
        return body


class LimitReached(EntitlementDenied):
    """Usage already meets the plan limit."""

    code = "LIMIT_REACHED"
    default_message = "Plan limit reached."

    def __init__(self, limit: str, maximum: int) -> None:
        """Initialize LimitReached.

        Args:
            limit: The limit key that was reached.
            maximum: The plan's value for that limit.
        """
        super().__init__()
        self.limit = limit
        self.maximum = maximum

    def to_body(self) -> dict[str, Any]:
        """Render the body with the limit key and its maximum."""
        body = super().to_body()
        body["limit"] = self.limit
        body["max"] = self.maximum
        return body
