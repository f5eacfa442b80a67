"""Application database adapter using asyncpg."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from contextvars import ContextVar
from importlib import resources
from typing import Any

import asyncpg
import structlog

logger = structlog.get_logger()

# Connection pinned by an open transaction() block in the current task.
_current_conn: ContextVar[asyncpg.Connection[asyncpg.Record] | None] = ContextVar(
    "workday_db_conn", default=None
)


class AppDatabase:
    """Application database for users, workspaces, organizations and plans."""

    def __init__(self, dsn: str, min_size: int = 2, max_size: int = 10):
        """Initialize the app database adapter."""
        self.dsn = dsn
        self.min_size = min_size
        self.max_size = max_size
        self.pool: asyncpg.Pool[asyncpg.Connection[asyncpg.Record]] | None = None

    async def connect(self) -> None:
        """Create connection pool."""
        self.pool = await asyncpg.create_pool(
            self.dsn,
            min_size=self.min_size,
            max_size=self.max_size,
            command_timeout=60,
        )
        logger.info("app_database_connected", dsn=self.dsn.split("@")[-1])

    async def close(self) -> None:
        """Close connection pool."""
        if self.pool:
            await self.pool.close()
            logger.info("app_database_disconnected")

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[asyncpg.Connection[asyncpg.Record]]:
        """Acquire a connection, reusing the one pinned by an open transaction."""
        pinned = _current_conn.get()
        if pinned is not None:
            yield pinned
            return
        if self.pool is None:
            raise RuntimeError("Database pool not initialized")
        async with self.pool.acquire() as conn:
            yield conn

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        """Run the enclosed calls on one connection inside one transaction.

        Nested blocks join the outer transaction.
        """
        if _current_conn.get() is not None:
            yield
            return
        async with self.acquire() as conn:
            async with conn.transaction():
                token = _current_conn.set(conn)
                try:
                    yield
                finally:
                    _current_conn.reset(token)

    async def fetch_one(self, query: str, *args: Any) -> dict[str, Any] | None:
        """Fetch a single row."""
        async with self.acquire() as conn:
            row = await conn.fetchrow(query, *args)
            if row:
                return dict(row)
            return None

    async def fetch_all(self, query: str, *args: Any) -> list[dict[str, Any]]:
        """Fetch all rows."""
        async with self.acquire() as conn:
            rows = await conn.fetch(query, *args)
            return [dict(row) for row in rows]

    async def fetch_val(self, query: str, *args: Any) -> Any:
        """Fetch the first column of the first row."""
        async with self.acquire() as conn:
            return await conn.fetchval(query, *args)

    async def execute(self, query: str, *args: Any) -> str:
        """Execute a query and return status."""
        async with self.acquire() as conn:
            result: str = await conn.execute(query, *args)
            return result

    async def init_schema(self) -> None:
        """Apply the bundled DDL. Every statement is idempotent."""
        ddl = resources.files("workday.adapters.db").joinpath("schema.sql").read_text()
        async with self.acquire() as conn:
            await conn.execute(ddl)
        logger.info("app_database_schema_applied")


def rows_affected(status: str) -> int:
    """Parse the row count from a command status such as ``DELETE 1``."""
    try:
        return int(status.rsplit(" ", 1)[-1])
    except ValueError:
        return 0
