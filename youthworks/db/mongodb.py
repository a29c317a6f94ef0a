"""
MongoDB Connection Utility

MongoDB stores:
- Raw CV text extracted from uploaded files
- LLM-parsed CV output (structured JSON)

Both vary in shape from one upload to the next, so they live outside the
relational schema. The profile row keeps the id of the latest CV document.
"""
import logging

from pymongo import MongoClient
from pymongo.collection import Collection
from pymongo.database import Database

from youthworks.core.config import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()

# Global client (connection pooling handled internally by pymongo)
_client: MongoClient = None
_db: Database = None

# Collection name constants (avoid typos)
COLLECTIONS = {
    "cv_documents": "cv_documents",
}


def get_mongo_client() -> MongoClient:
    """Get or create MongoDB client (singleton pattern)"""
    global _client
    if _client is None:
        _client = MongoClient(settings.mongodb_uri, serverSelectionTimeoutMS=3000)
    return _client


def get_mongo_db() -> Database:
    """Get the document database"""
    global _db
    if _db is None:
        _db = get_mongo_client()[settings.mongodb_db]
    return _db


def get_collection(name: str) -> Collection:
    return get_mongo_db()[name]


def test_mongo_connection() -> bool:
    """
    Test if MongoDB is reachable.
    Returns True if connection successful, False otherwise.
    """
    try:
        get_mongo_client().admin.command("ping")
        return True
    except Exception:
        logger.exception("MongoDB connection failed")
        return False


def init_mongo_indexes():
    """
    Create indexes for CV lookups.
    Call this once during app startup.
    """
    db = get_mongo_db()
    db[COLLECTIONS["cv_documents"]].create_index([("user_id", 1), ("uploaded_at", -1)])
    logger.info("MongoDB indexes created")
