"""
Database connection and Beanie ODM initialization.

Beanie is an async ODM for MongoDB built on Motor and Pydantic.
We initialize it once at startup and close the client at shutdown.
"""

import logging
from typing import Callable, List, Type

from beanie import init_beanie
from motor.motor_asyncio import AsyncIOMotorClient

from roommate_finder.config import Settings
from roommate_finder.models.user import User

logger = logging.getLogger(__name__)

ClientFactory = Callable[[str], AsyncIOMotorClient]


async def connect_to_mongo(
    settings: Settings,
    client_factory: ClientFactory = AsyncIOMotorClient,
) -> AsyncIOMotorClient:
    """
    Create the Motor client and initialize Beanie with document models.
    Called once at application startup; the caller owns the returned client.
    """
    client = client_factory(settings.mongodb_url)
    database = client[settings.mongodb_database]

    # Document models that Beanie will manage (collections + indexes)
    document_models: List[Type] = [User]

    await init_beanie(
        database=database,
        document_models=document_models,
    )
    logger.info("MongoDB connection established; Beanie initialized (db=%s).", settings.mongodb_database)
    return client


async def close_mongo_connection(client: AsyncIOMotorClient) -> None:
    """Close the MongoDB client on application shutdown."""
    logger.info("Closing MongoDB connection.")
    client.close()
