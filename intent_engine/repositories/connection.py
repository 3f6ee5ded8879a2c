"""
MongoDB Connection Management
Singleton Motor client for the optional persistent signal store.
"""
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo.errors import PyMongoError
from typing import Optional
from ..config import settings
from ..utils.observability import logger


SIGNALS_COLLECTION = "intent_signals"


class DatabaseManager:
    """
    Singleton MongoDB client manager with async Motor.
    Handles connection lifecycle, pooling, and graceful shutdown.
    """

    _instance: Optional["DatabaseManager"] = None
    _client: Optional[AsyncIOMotorClient] = None
    _database: Optional[AsyncIOMotorDatabase] = None

    def __new__(cls) -> "DatabaseManager":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    async def connect(self) -> None:
        """
        Open the client with configured pool settings.
        Idempotent: a healthy client is reused.
        """
        if self._client:
            try:
                await self._client.admin.command("ping")
                logger.debug("Reusing healthy MongoDB connection")
                return
            except (RuntimeError, PyMongoError):
                logger.warning("MongoDB connection lost. Rebuilding client...")
                self._client = None
                self._database = None

        logger.bind(
            database=settings.mongodb_database,
            max_pool_size=settings.mongodb_max_pool_size,
            environment=settings.environment
        ).info(f"Connecting to MongoDB at {settings.mongodb_uri}")
        # tz_aware so signal timestamps come back as UTC-aware datetimes
        self._client = AsyncIOMotorClient(
            settings.mongodb_uri,
            maxPoolSize=settings.mongodb_max_pool_size,
            minPoolSize=settings.mongodb_min_pool_size,
            serverSelectionTimeoutMS=settings.mongodb_server_selection_timeout_ms,
            tz_aware=True,
        )
        self._database = self._client[settings.mongodb_database]

    async def disconnect(self) -> None:
        if self._client is None:
            logger.debug("MongoDB client already disconnected")
            return

        logger.info("Closing MongoDB connection")
        self._client.close()
        self._client = None
        self._database = None

    @property
    def database(self) -> AsyncIOMotorDatabase:
        """
        Get the database instance.
        Raises RuntimeError if not connected.
        """
        if self._database is None:
            raise RuntimeError(
                "Database not connected. Call await db_manager.connect() first."
            )
        return self._database

    async def ping(self) -> bool:
        """Readiness probe; False when disconnected or unreachable."""
        if self._client is None:
            return False
        try:
            await self._client.admin.command("ping")
            return True
        except PyMongoError as e:
            logger.warning(f"MongoDB ping failed: {e}")
            return False

    async def create_indexes(self) -> None:
        """Create the signal log indexes. Called once at startup."""
        db = self.database

        logger.info("Creating MongoDB indexes")

        await db[SIGNALS_COLLECTION].create_index(
            [("identity_id", 1), ("timestamp", 1)],
            name="idx_identity_timestamp"
        )
        await db[SIGNALS_COLLECTION].create_index(
            "signal_id",
            unique=True,
            name="idx_signal_id_unique"
        )

        logger.info("MongoDB indexes created successfully")


# Singleton instance
db_manager = DatabaseManager()


async def get_database() -> AsyncIOMotorDatabase:
    return db_manager.database
