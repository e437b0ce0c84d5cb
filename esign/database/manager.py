"""
asyncpg pool owner for the signature request tables.
"""

import logging
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import asyncpg

logger = logging.getLogger(__name__)


class DatabaseManager:
    """Owns one asyncpg pool; created in the app lifespan, shared by repositories."""

    def __init__(
        self,
        host: str,
        database: str,
        user: str,
        password: str,
        port: int = 5432,
        min_size: int = 2,
        max_size: int = 10,
        timeout: float = 10.0,
        command_timeout: float = 10.0,
    ):
        self._pool_kwargs = {
            "host": host,
            "port": port,
            "database": database,
            "user": user,
            "password": password,
            "min_size": min_size,
            "max_size": max_size,
            "timeout": timeout,
            "command_timeout": command_timeout,
        }
        self._pool: Optional[asyncpg.Pool] = None

    @property
    def connected(self) -> bool:
        return self._pool is not None

    async def connect(self) -> None:
        if self._pool is not None:
            return
        self._pool = await asyncpg.create_pool(**self._pool_kwargs)
        logger.info(
            "Database pool created: %s:%s/%s",
            self._pool_kwargs["host"],
            self._pool_kwargs["port"],
            self._pool_kwargs["database"],
            extra={"service": "postgres"},
        )

    async def disconnect(self) -> None:
        pool, self._pool = self._pool, None
        if pool is not None:
            await pool.close()
            logger.info("Database pool closed", extra={"service": "postgres"})

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[asyncpg.Connection]:
        """Borrow a pooled connection.

        Raises:
            RuntimeError: If connect() has not been called
        """
        if self._pool is None:
            raise RuntimeError("Database pool not initialized. Call connect() first")
        async with self._pool.acquire() as conn:
            yield conn

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[asyncpg.Connection]:
        """Borrow a connection and run the block in one transaction."""
        async with self.acquire() as conn:
            async with conn.transaction():
                yield conn

    async def health_check(self) -> dict[str, Optional[float]]:
        """Run ``SELECT 1`` and report latency."""
        start = time.perf_counter()
        try:
            async with self.acquire() as conn:
                await conn.fetchval("SELECT 1")
        except (RuntimeError, OSError, asyncpg.PostgresError) as e:
            logger.error(f"Database health check failed: {e}", extra={"service": "postgres"})
            return {"healthy": False, "error": str(e), "latency_ms": None}
        latency_ms = round((time.perf_counter() - start) * 1000, 2)
        return {"healthy": True, "error": None, "latency_ms": latency_ms}


def create_database_manager_from_env() -> DatabaseManager:
    """Create DatabaseManager from centralized settings."""
    from core.settings import db_settings

    return DatabaseManager(
        host=db_settings.DB_HOST,
        database=db_settings.DB_NAME,
        user=db_settings.DB_USER,
        password=db_settings.DB_PASSWORD.get_secret_value(),
        port=db_settings.DB_PORT,
        min_size=db_settings.DB_POOL_MIN_SIZE,
        max_size=db_settings.DB_POOL_MAX_SIZE,
        timeout=db_settings.DB_POOL_TIMEOUT,
        command_timeout=db_settings.DB_COMMAND_TIMEOUT,
    )
