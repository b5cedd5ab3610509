# restmotor/storage/handle.py
"""
Storage handle: one model bound to one Motor database.

Created by ConnectorRegistry the first time a model is used against a
database, initialized once (index creation), then reused.
"""
from typing import Any, Dict, List, Optional

from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo import ASCENDING

from ..core.config import settings
from ..core.logging import log
from ..schema import StorageSchema
from .documents import DocumentFactory, StoredDocument
from .query import cast_filter, find_options


class StorageHandle:
    """Executes queries and writes for one model on one database."""

    def __init__(self, model: type, schema: StorageSchema, database: AsyncIOMotorDatabase):
        self.model = model
        self.schema = schema
        self.database = database
        self.collection: AsyncIOMotorCollection = database[schema.collection]
        self.documents = DocumentFactory(schema)
        self.document_class = self.documents.document_class
        self.document_class.__storage_handle__ = self
        self.initialized = False

    @property
    def name(self) -> str:
        return self.schema.name

    def __repr__(self) -> str:
        return f"StorageHandle({self.name!r}, collection={self.schema.collection!r})"

    # --- lifecycle -----------------------------------------------------

    async def init(self) -> None:
        """Create the schema's indexes. Runs once per handle."""
        if self.initialized:
            return
        if settings.connector.create_indexes:
            await self.ensure_indexes()
        self.initialized = True

    async def ensure_indexes(self) -> List[str]:
        created: List[str] = []
        for path, unique in self.schema.index_specs():
            name = await self.collection.create_index([(path, ASCENDING)], unique=unique)
            created.append(name)
        if created:
            log("HANDLE", f"Indexes ready: {', '.join(created)}", model=self.name)
        return created

    # --- queries -------------------------------------------------------

    def cast(self, query: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        cast = cast_filter(self.schema, query)
        log("QUERY", f"{self.schema.collection} filter", cast, model=self.name)
        return cast

    async def find_one(self, query: Optional[Dict[str, Any]]) -> Optional[StoredDocument]:
        raw = await self.collection.find_one(self.cast(query))
        if raw is None:
            return None
        return self.documents.hydrate(raw)

    async def find(
        self,
        query: Optional[Dict[str, Any]] = None,
        projection: Optional[Any] = None,
        options: Optional[Dict[str, Any]] = None,
    ) -> List[StoredDocument]:
        kwargs = find_options(options)
        cursor = self.collection.find(self.cast(query), projection or None, **kwargs)
        raws = await cursor.to_list(length=None)
        return [self.documents.hydrate(raw) for raw in raws]

    async def delete_one(self, query: Optional[Dict[str, Any]]) -> int:
        result = await self.collection.delete_one(self.cast(query))
        return result.deleted_count

    async def delete_many(self, query: Optional[Dict[str, Any]]) -> int:
        result = await self.collection.delete_many(self.cast(query))
        return result.deleted_count

    # --- documents -----------------------------------------------------

    def new(self) -> StoredDocument:
        return self.documents.new()

    async def save(self, entity: StoredDocument) -> StoredDocument:
        """
        Validate and persist `entity`.

        New documents are inserted whole. Documents with an id only update
        the fields set on the instance, so saving a projected read leaves the
        fields it did not load untouched. The instance gets the validated
        values of the written fields and its id. Nothing is written if
        validation fails.
        """
        validated = self.documents.validate(entity)

        if validated.id is None:
            result = await self.collection.insert_one(self.documents.to_document(validated))
            validated.id = result.inserted_id
            written = set(type(validated).model_fields)
        else:
            written = set(entity.model_fields_set) - {"id"}
            update = self.documents.to_update(validated, written)
            if update:
                await self.collection.update_one({"_id": validated.id}, update, upsert=True)

        for name in written | {"id"}:
            setattr(entity, name, getattr(validated, name))
        return entity
