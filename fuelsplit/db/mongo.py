import logging

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from fuelsplit.core.config import settings

logger = logging.getLogger(__name__)

class MongoDatabase:
    """MongoDB connection manager."""

    client: AsyncIOMotorClient = None
    db: AsyncIOMotorDatabase = None

mongodb = MongoDatabase()

async def connect_to_mongo():
    """Connect to MongoDB."""
    mongodb.client = AsyncIOMotorClient(settings.MONGODB_URL)
    mongodb.db = mongodb.client[settings.DATABASE_NAME]

    # Create indexes
    await create_indexes()
    logger.info("Connected to MongoDB: %s", settings.DATABASE_NAME)

async def close_mongo_connection():
    """Disconnect from MongoDB."""
    if mongodb.client is not None:
        mongodb.client.close()
        mongodb.client = None
        mongodb.db = None
    logger.info("Disconnected from MongoDB")

async def create_indexes():
    """Create database indexes."""
    history = mongodb.db[settings.HISTORY_COLLECTION]
    await history.create_index([("timestamp", -1)])
    await history.create_index("type")

def get_db() -> AsyncIOMotorDatabase:
    """Get database instance."""
    return mongodb.db
