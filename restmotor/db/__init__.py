# restmotor/db/__init__.py
"""
Database module.

Owns the process-wide default connection used when a connector is not
given a database explicitly.
"""
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from ..core.config import settings
from ..core.logging import log, log_section

# Motor client instance
_client: Optional[AsyncIOMotorClient] = None
_db: Optional[AsyncIOMotorDatabase] = None


async def connect_db(url: Optional[str] = None, database: Optional[str] = None) -> AsyncIOMotorDatabase:
    """
    Connect to MongoDB and make the database the default connection.

    Fails fast (server selection timeout) if MongoDB is not reachable.
    """
    global _client, _db
    mongo_url = url or settings.mongo.url
    log_section("DB", "Connecting to MongoDB")
    client = AsyncIOMotorClient(
        mongo_url,
        serverSelectionTimeoutMS=settings.mongo.server_selection_timeout_ms,
    )
    await client.admin.command("ping")

    _client = client
    _db = client[database or settings.mongo.database]
    log("DB", f"Connected to MongoDB database '{_db.name}'")
    return _db


def use_db(database: Optional[AsyncIOMotorDatabase]) -> None:
    """Install an already-open database (or None) as the default connection."""
    global _db
    _db = database


async def disconnect_db() -> None:
    """Disconnect from MongoDB."""
    global _client, _db
    if _client:
        _client.close()
        log("DB", "Disconnected from MongoDB")
    _client = None
    _db = None


def get_db() -> Optional[AsyncIOMotorDatabase]:
    """
    Get the default database.

    Returns None if MongoDB is not connected.
    """
    return _db


def is_connected() -> bool:
    """Check if a default database is available."""
    return _db is not None
