"""
Database module - relational (SQLAlchemy) and document (MongoDB) connections.
"""
from youthworks.db.postgres import get_db_session, execute_raw_sql, init_db
from youthworks.db.mongodb import get_mongo_db, get_collection

__all__ = [
    "get_db_session",
    "execute_raw_sql",
    "init_db",
    "get_mongo_db",
    "get_collection",
]
