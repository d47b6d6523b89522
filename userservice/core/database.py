"""Database connectivity layer for the user service."""

from __future__ import annotations

import logging
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection
from pymongo.errors import PyMongoError

from userservice.core.config import settings
from userservice.core.exceptions import ServerFault

logger = logging.getLogger(__name__)


class DatabaseManager:
    """Owns the single MongoDB client shared by every request."""

    def __init__(self) -> None:
        self.mongodb: Optional[AsyncIOMotorClient] = None
        self.indexes_ready = False

    async def initialize(self) -> None:
        """Connect to MongoDB and try to ensure the indexes the service relies on."""

        if self.mongodb is not None:
            return

        logger.info("Connecting to MongoDB database=%s", settings.MONGODB_DATABASE)
        self.mongodb = AsyncIOMotorClient(
            str(settings.MONGODB_URL),
            tz_aware=True,
            serverSelectionTimeoutMS=settings.MONGODB_SERVER_SELECTION_TIMEOUT_MS,
        )

        try:
            await self.ensure_indexes()
        except PyMongoError:
            # Retried by ensure_indexes before the first write.
            logger.exception("MongoDB unavailable at startup; unique email index not ensured")
            return

        logger.info("MongoDB connected")

    async def ensure_indexes(self) -> None:
        """Create the unique email index once; raises PyMongoError while Mongo is down."""

        if self.indexes_ready:
            return
        await self.users.create_index("email", unique=True)
        self.indexes_ready = True
        logger.info("Unique email index ensured")

    @property
    def users(self) -> AsyncIOMotorCollection:
        if self.mongodb is None:
            raise ServerFault("User store is not connected")
        return self.mongodb[settings.MONGODB_DATABASE][settings.MONGODB_USERS_COLLECTION]

    async def close(self) -> None:
        """Tear down the client."""

        if self.mongodb is not None:
            logger.info("Closing MongoDB connection")
            self.mongodb.close()
            self.mongodb = None
        self.indexes_ready = False


# Singleton instance used by the API lifespan
database_manager = DatabaseManager()
