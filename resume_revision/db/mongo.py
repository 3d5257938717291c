# resume_revision/db/mongo.py
import logging
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from resume_revision.core.config import settings

logger = logging.getLogger(__name__)

_mongo_client: Optional[AsyncIOMotorClient] = None


def get_mongo_client() -> AsyncIOMotorClient:
    """
    Returns a cached Motor client.
    """
    global _mongo_client
    if _mongo_client is None:
        _mongo_client = AsyncIOMotorClient(settings.MONGODB_URI)
    return _mongo_client


def get_db() -> AsyncIOMotorDatabase:
    client = get_mongo_client()
    return client[settings.MONGODB_DB]


async def init_db() -> None:
    if settings.RECORD_STORE != "mongo":
        logger.info("Record store is %r; skipping MongoDB ping", settings.RECORD_STORE)
        return
    try:
        await get_db().command("ping")
        logger.info("Connected to MongoDB database %s", settings.MONGODB_DB)
    except Exception:
        # the API still starts; record store calls will report their own failures
        logger.exception("MongoDB ping failed for %s", settings.MONGODB_URI)


def close_db() -> None:
    global _mongo_client
    if _mongo_client is not None:
        _mongo_client.close()
        _mongo_client = None
