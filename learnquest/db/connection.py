"""Database connection management"""
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional
import psycopg
from psycopg.rows import dict_row
from psycopg_pool import AsyncConnectionPool
from learnquest.config import DATABASE_URL
from learnquest.observability.metrics import db_transactions_total

logger = logging.getLogger(__name__)


class Database:
    """Database connection pool manager"""

    def __init__(self, connection_string: str = DATABASE_URL):
        self.connection_string = connection_string
        self._pool: Optional[AsyncConnectionPool] = None

    async def init_pool(self) -> None:
        """Initialize connection pool"""
        logger.info("Initializing database connection pool")
        self._pool = AsyncConnectionPool(
            self.connection_string,
            min_size=2,
            max_size=10,
            open=False
        )
        await self._pool.open()

    async def close_pool(self) -> None:
        """Close connection pool"""
        if self._pool:
            logger.info("Closing database connection pool")
            await self._pool.close()
            self._pool = None

    @asynccontextmanager
    async def connection(self) -> AsyncGenerator[psycopg.AsyncConnection, None]:
        """Get database connection from pool"""
        if not self._pool:
            raise RuntimeError("Database pool not initialized")

        async with self._pool.connection() as conn:
            conn.row_factory = dict_row
            yield conn

    @asynccontextmanager
    async def transaction(self, operation: str = "unknown") -> AsyncGenerator[psycopg.AsyncConnection, None]:
        """
        Connection whose statements commit together or not at all.

        Used for compound updates (post + streak, quest + XP, box + XP).
        """
        async with self.connection() as conn:
            try:
                async with conn.transaction():
                    yield conn
            except Exception:
                db_transactions_total.labels(operation=operation, status="rolled_back").inc()
                raise
            db_transactions_total.labels(operation=operation, status="committed").inc()


# Global database instance
db = Database()
