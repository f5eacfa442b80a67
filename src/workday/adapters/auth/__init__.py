"""Auth repository adapters."""

from workday.adapters.auth.postgres import PostgresAuthRepository

__all__ = ["PostgresAuthRepository"]
