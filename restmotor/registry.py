# restmotor/registry.py
"""
Connector registry - the two caches the connector depends on.

    schemas  model name -> StorageSchema            (SchemaBuilder)
    handles  (client, database name, model name) -> StorageHandle

Both are filled on first use and never evicted for the lifetime of the
registry. Handle creation awaits index builds, so concurrent first requests
for the same (database, model) pair are serialized on a per-key lock and
share one handle.
"""
import asyncio
from typing import Dict, Optional, Tuple

from motor.motor_asyncio import AsyncIOMotorDatabase

from .core.exceptions import ConnectionNotReadyError
from .core.logging import log
from .db import get_db
from .models.base import PropertySource
from .schema import SchemaBuilder, StorageSchema
from .storage.handle import StorageHandle

HandleKey = Tuple[int, str, str]


class ConnectorRegistry:

    def __init__(self, source: Optional[PropertySource] = None):
        self.schemas = SchemaBuilder(source)
        self._handles: Dict[HandleKey, StorageHandle] = {}
        self._locks: Dict[HandleKey, asyncio.Lock] = {}

    def build_schema(self, model: type) -> StorageSchema:
        return self.schemas.build(model)

    def cached_handle(self, model: type, database: AsyncIOMotorDatabase) -> Optional[StorageHandle]:
        return self._handles.get(self._key(model, database))

    async def get_handle(self, model: type, database: Optional[AsyncIOMotorDatabase] = None) -> StorageHandle:
        """
        Cached handle for `model` on `database` (default connection when
        omitted), built and initialized on first use.
        """
        if database is None:
            database = get_db()
            if database is None:
                raise ConnectionNotReadyError("No database connection: call connect_db() or pass a database")

        key = self._key(model, database)
        handle = self._handles.get(key)
        if handle is not None:
            return handle

        lock = self._locks.setdefault(key, asyncio.Lock())
        async with lock:
            handle = self._handles.get(key)
            if handle is not None:
                return handle

            schema = self.schemas.build(model)
            handle = StorageHandle(model, schema, database)
            await handle.init()
            self._handles[key] = handle
            log("HANDLE", f"Registered on collection '{schema.collection}'", model=schema.name)

        self._locks.pop(key, None)
        return handle

    @staticmethod
    def _key(model: type, database: AsyncIOMotorDatabase) -> HandleKey:
        # client[name] hands out a new database object per access, so key on
        # the client it belongs to. Cached handles keep that client alive.
        return id(database.client), database.name, model.__name__


# Process-wide default registry
registry = ConnectorRegistry()


async def get_storage_handle(model: type, database: Optional[AsyncIOMotorDatabase] = None) -> StorageHandle:
    """Get or build the storage handle for a model on a database."""
    return await registry.get_handle(model, database)
