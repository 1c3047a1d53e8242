"""MongoDB connection lifecycle."""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

import structlog
from pymongo import AsyncMongoClient
from pymongo.asynchronous.collection import AsyncCollection
from pymongo.errors import PyMongoError

from cp_progress.config import Settings
from cp_progress.errors import StoreUnavailable

logger = structlog.get_logger()


@dataclass(frozen=True)
class DatabaseResources:
    """Process-wide client and the users collection it serves."""

    client: AsyncMongoClient
    collection: AsyncCollection


async def ensure_indexes(collection: AsyncCollection) -> None:
    """Create the unique email index used to key user documents."""
    await collection.create_index("email", unique=True)


@asynccontextmanager
async def open_database(settings: Settings) -> AsyncIterator[DatabaseResources]:
    """Connect to MongoDB and yield the users collection.

    The client is closed when the context exits, whether or not the body
    raised.

    Raises:
        StoreUnavailable: If the server cannot be reached within the
            configured timeout.
    """
    client: AsyncMongoClient = AsyncMongoClient(
        settings.mongo_uri,
        serverSelectionTimeoutMS=settings.store_timeout_ms,
        timeoutMS=settings.store_timeout_ms,
    )
    try:
        try:
            async with asyncio.timeout(settings.store_timeout_seconds):
                await client.admin.command("ping")
                collection = client[settings.database_name][settings.collection_name]
                await ensure_indexes(collection)
        except (PyMongoError, TimeoutError) as e:
            logger.error("mongo_connect_failed", error=str(e))
            raise StoreUnavailable(f"Cannot connect to MongoDB: {e}") from e
        logger.info(
            "mongo_connected",
            database=settings.database_name,
            collection=settings.collection_name,
        )
        yield DatabaseResources(client=client, collection=collection)
    finally:
        await client.close()
        logger.info("mongo_disconnected")
