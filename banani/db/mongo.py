from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from banani.core.config import settings
from banani.core.errors import CollaboratorUnavailable
from banani.core.logging_config import get_logger

logger = get_logger(__name__)

class MongoDatabase:
    """MongoDB connection manager."""
    
    client: AsyncIOMotorClient = None
    db: AsyncIOMotorDatabase = None

mongodb = MongoDatabase()

async def connect_to_mongo():
    """Connect to MongoDB."""
    mongodb.client = AsyncIOMotorClient(settings.MONGODB_URL)
    mongodb.db = mongodb.client[settings.DATABASE_NAME]
    
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
    # User email unique index
    await mongodb.db["users"].create_index("email", unique=True)
    
    # Entry indexes (dashboard lists by owner, newest date first)
    await mongodb.db["entries"].create_index([("owner_id", 1), ("date", -1)])
    
    # Payment method indexes
    await mongodb.db["payment_methods"].create_index([("entry_id", 1), ("owner_id", 1)])

def get_db() -> AsyncIOMotorDatabase:
    """Get database instance."""
    return mongodb.db

def store_unavailable(exc: Exception) -> CollaboratorUnavailable:
    """Wrap a driver error so callers only ever see the service's error kinds."""
    logger.error("MongoDB operation failed: %s", exc)
    return CollaboratorUnavailable("store", "The data store is currently unavailable")
