"""Document store connection management."""

from typing import Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo.errors import ConnectionFailure, PyMongoError, ServerSelectionTimeoutError

from schemabuilder.core.config import DatabaseConfig
from schemabuilder.core.exceptions import UpstreamDependencyError
from schemabuilder.core.logging import get_logger
from schemabuilder.repository.base import SchemaRepository, UserRepository
from schemabuilder.repository.memory import InMemorySchemaRepository, InMemoryUserRepository
from schemabuilder.repository.mongo import (
    SCHEMAS_COLLECTION,
    USERS_COLLECTION,
    MongoSchemaRepository,
    MongoUserRepository,
    ensure_indexes,
)

logger = get_logger(__name__)


class Database:
    """Owns the store client and the repositories built on it.

    The motor client connects lazily, so repositories are usable as soon as
    the object exists; ``connect`` verifies reachability and declares
    indexes. A ``memory://`` URL selects the in-process repositories.
    """

    def __init__(self, config: DatabaseConfig):
        self.config = config
        self._client: Optional[AsyncIOMotorClient] = None
        self._database: Optional[AsyncIOMotorDatabase] = None
        self.users: UserRepository
        self.schemas: SchemaRepository

        if config.is_memory():
            self.users = InMemoryUserRepository()
            self.schemas = InMemorySchemaRepository()
            return

        self._client = AsyncIOMotorClient(
            config.url,
            serverSelectionTimeoutMS=config.server_selection_timeout_ms,
            maxPoolSize=config.max_pool_size,
            tz_aware=True,
        )
        self._database = self._client[config.name]
        self.users = MongoUserRepository(self._database[USERS_COLLECTION])
        self.schemas = MongoSchemaRepository(self._database[SCHEMAS_COLLECTION])

    async def connect(self) -> None:
        """Check the store is reachable and make sure indexes exist."""
        if self._client is None:
            logger.info("Using in-memory document store")
            return
        try:
            await self._client.admin.command("ping")
        except (ConnectionFailure, ServerSelectionTimeoutError) as e:
            logger.error("Failed to connect to MongoDB", error=str(e))
            raise UpstreamDependencyError() from e
        await ensure_indexes(self._database)
        logger.info("Connected to MongoDB", database=self.config.name)

    async def close(self) -> None:
        if self._client is not None:
            self._client.close()
            logger.info("Disconnected from MongoDB")

    async def ping(self) -> bool:
        """Check store connectivity."""
        if self._client is None:
            return True
        try:
            await self._client.admin.command("ping")
            return True
        except PyMongoError as e:
            logger.warning("Database ping failed", error=str(e))
            return False
