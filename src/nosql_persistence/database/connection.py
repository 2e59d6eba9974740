"""
Database connection management using asyncpg for the PostgreSQL provider.
"""
from typing import Optional, Any, List
from contextlib import asynccontextmanager
import asyncpg
from asyncpg import Pool, Record
import logging

from ..config.settings import PersistenceSettings, get_settings

logger = logging.getLogger(__name__)


class DatabaseManager:
    """Manages the asyncpg connection pool used by PostgresDocumentProvider."""

    def __init__(
        self,
        database_url: Optional[str] = None,
        settings: Optional[PersistenceSettings] = None,
        **pool_config
    ):
        """Initialize DatabaseManager.

        Args:
            database_url: Database URL (defaults to PERSISTENCE_POSTGRES_DSN)
            settings: Settings providing the DSN and pool sizing
            **pool_config: Additional pool configuration options
        """
        settings = settings or get_settings()
        self.pool: Optional[Pool] = None
        self.dsn = database_url or settings.postgres_dsn or ""
        if "+asyncpg" in self.dsn:
            self.dsn = self.dsn.replace("+asyncpg", "")

        self.pool_config = {
            "min_size": settings.pool_min_size,
            "max_size": settings.pool_max_size,
            "max_inactive_connection_lifetime": 300,
            "command_timeout": settings.command_timeout,
            **pool_config
        }

    async def create_pool(self) -> Pool:
        """Create and return a connection pool."""
        if self.pool is None:
            if not self.dsn:
                raise ValueError("No database URL configured (set PERSISTENCE_POSTGRES_DSN)")
            logger.info(f"Creating database pool with size {self.pool_config['max_size']}")

            self.pool = await asyncpg.create_pool(
                self.dsn,
                server_settings={"application_name": "nosql-persistence"},
                **self.pool_config
            )
            logger.info("Database pool created successfully")
        return self.pool

    async def close_pool(self):
        """Close the connection pool."""
        if self.pool:
            await self.pool.close()
            self.pool = None
            logger.info("Database pool closed")

    @asynccontextmanager
    async def acquire(self):
        """Acquire a connection from the pool."""
        if not self.pool:
            await self.create_pool()

        async with self.pool.acquire() as connection:
            yield connection

    @asynccontextmanager
    async def transaction(self):
        """Create a transaction context."""
        async with self.acquire() as connection:
            async with connection.transaction():
                yield connection

    async def fetch(self, query: str, *args, timeout: float = None) -> List[Record]:
        """Fetch multiple rows."""
        async with self.acquire() as connection:
            return await connection.fetch(query, *args, timeout=timeout)

    async def fetchrow(self, query: str, *args, timeout: float = None) -> Optional[Record]:
        """Fetch a single row."""
        async with self.acquire() as connection:
            return await connection.fetchrow(query, *args, timeout=timeout)

    async def fetchval(self, query: str, *args, column: int = 0, timeout: float = None) -> Any:
        """Fetch a single value."""
        async with self.acquire() as connection:
            return await connection.fetchval(query, *args, column=column, timeout=timeout)

