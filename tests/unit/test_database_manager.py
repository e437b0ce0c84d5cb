"""Unit tests for the database pool owner."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from esign.database.manager import DatabaseManager


def manager() -> DatabaseManager:
    return DatabaseManager(host="db", database="esign", user="esign", password="secret")


class TestDatabaseManager:
    """Tests for pool lifecycle and health reporting."""

    @pytest.mark.asyncio
    async def test_acquire_requires_connect(self):
        """Test borrowing a connection before connect() fails."""
        db = manager()
        with pytest.raises(RuntimeError, match="not initialized"):
            async with db.acquire():
                pass

    @pytest.mark.asyncio
    async def test_health_without_pool(self):
        """Test health reports the missing pool instead of raising."""
        result = await manager().health_check()
        assert result["healthy"] is False
        assert result["latency_ms"] is None
        assert "not initialized" in result["error"]

    @pytest.mark.asyncio
    async def test_connect_is_idempotent(self):
        """Test a second connect() reuses the pool."""
        pool = MagicMock()
        pool.close = AsyncMock()
        with patch(
            "esign.database.manager.asyncpg.create_pool", AsyncMock(return_value=pool)
        ) as create_pool:
            db = manager()
            await db.connect()
            await db.connect()
            assert create_pool.await_count == 1
            assert create_pool.await_args.kwargs["database"] == "esign"
            assert db.connected

            await db.disconnect()
            pool.close.assert_awaited_once()
            assert not db.connected
