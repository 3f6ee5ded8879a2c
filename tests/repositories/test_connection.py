"""
Database Connection Tests
Tests for the Motor client lifecycle without a live MongoDB.
"""
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from pymongo.errors import ServerSelectionTimeoutError

from intent_engine.repositories.connection import SIGNALS_COLLECTION, DatabaseManager, db_manager


pytestmark = pytest.mark.asyncio


@pytest.fixture
async def manager():
    manager = DatabaseManager()
    await manager.disconnect()
    yield manager
    await manager.disconnect()
    manager._database = None


def mock_client():
    client = MagicMock()
    client.admin.command = AsyncMock(return_value={"ok": 1})
    return client


class TestDatabaseManager:
    """Test suite for DatabaseManager singleton."""

    async def test_singleton_pattern(self):
        """DatabaseManager should return same instance."""
        assert DatabaseManager() is DatabaseManager()
        assert DatabaseManager() is db_manager

    async def test_database_requires_connection(self, manager):
        """Accessing the database before connect raises."""
        with pytest.raises(RuntimeError, match="not connected"):
            _ = manager.database

    async def test_connect_builds_tz_aware_client(self, manager):
        """Connect creates the Motor client with tz_aware timestamps."""
        client = mock_client()
        with patch("intent_engine.repositories.connection.AsyncIOMotorClient", return_value=client) as factory:
            await manager.connect()

        assert factory.call_args.kwargs["tz_aware"] is True
        assert manager.database is client.__getitem__.return_value

    async def test_connect_reuses_healthy_client(self, manager):
        """A second connect pings and keeps the existing client."""
        client = mock_client()
        with patch("intent_engine.repositories.connection.AsyncIOMotorClient", return_value=client) as factory:
            await manager.connect()
            await manager.connect()

        assert factory.call_count == 1
        client.admin.command.assert_awaited_with("ping")

    async def test_connect_rebuilds_dead_client(self, manager):
        """A client that fails its ping is replaced."""
        dead = mock_client()
        dead.admin.command = AsyncMock(side_effect=ServerSelectionTimeoutError("gone"))
        fresh = mock_client()

        with patch("intent_engine.repositories.connection.AsyncIOMotorClient", side_effect=[dead, fresh]):
            await manager.connect()
            await manager.connect()

        assert manager._client is fresh

    async def test_ping(self, manager):
        """Ping reports reachability without raising."""
        assert await manager.ping() is False

        client = mock_client()
        with patch("intent_engine.repositories.connection.AsyncIOMotorClient", return_value=client):
            await manager.connect()
        assert await manager.ping() is True

        client.admin.command = AsyncMock(side_effect=ServerSelectionTimeoutError("gone"))
        assert await manager.ping() is False

    async def test_create_indexes(self, manager):
        """Signal log indexes are created on the signals collection."""
        collection = MagicMock()
        collection.create_index = AsyncMock()
        database = MagicMock()
        database.__getitem__.return_value = collection
        manager._database = database

        await manager.create_indexes()

        database.__getitem__.assert_called_with(SIGNALS_COLLECTION)
        names = [c.kwargs["name"] for c in collection.create_index.call_args_list]
        assert names == ["idx_identity_timestamp", "idx_signal_id_unique"]
        assert collection.create_index.call_args_list[1].kwargs["unique"] is True
