# backoffice/core/database.py

from typing import Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from loguru import logger

from backoffice.core.config import Settings


class MongoDbContext:
    """Mantém o cliente Motor da aplicação. O cliente conecta sob demanda; `connect` só verifica com ping."""

    def __init__(self, settings: Settings):
        self.settings = settings
        self.client: Optional[AsyncIOMotorClient] = AsyncIOMotorClient(
            settings.MONGODB_URI,
            uuidRepresentation='standard',
            serverSelectionTimeoutMS=5000,
        )
        self.db: Optional[AsyncIOMotorDatabase] = self.client[settings.database_name]

    async def connect(self):
        """Verifica a conexão com o MongoDB."""
        if self.client is None:
            raise RuntimeError("MongoDB client was already closed.")
        uri = self.settings.MONGODB_URI
        # Ocultar credenciais no log
        logger.info(f"Connecting to MongoDB at {uri[uri.find('@') + 1:] if '@' in uri else uri}...")
        try:
            await self.client.admin.command('ping')
            logger.success(f"MongoDB connection successful to database '{self.settings.database_name}'.")
        except Exception as e:
            logger.critical(f"FATAL: Failed to connect to MongoDB: {e}")
            raise ConnectionError(f"MongoDB connection failed: {e}") from e

    async def disconnect(self):
        if self.client:
            logger.info("Closing MongoDB connection...")
            self.client.close()
            self.client = None
            self.db = None
            logger.info("MongoDB connection closed.")

    def get_db(self) -> AsyncIOMotorDatabase:
        if self.db is None:
            logger.critical("Attempted to get MongoDB instance, but it's not available.")
            raise RuntimeError("MongoDB database is not connected or initialized.")
        return self.db
