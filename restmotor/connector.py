# restmotor/connector.py
"""
MongoDB storage connector for the REST layer.

Every operation resolves the model's storage handle first (schema build
and index setup happen there, and configuration errors propagate as-is),
then runs against MongoDB. Failures raised while the operation runs go
through handle_error(), so callers only ever see a RestError, an
UnhandledStorageError (strict mode) or nothing at all (lenient mode).
"""
from typing import Awaitable, Callable, List, Optional

from bson.errors import InvalidId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pydantic import ValidationError

from .core.config import settings
from .core.exceptions import CastError, DocumentValidationError, UnhandledStorageError
from .core.logging import log
from .registry import ConnectorRegistry, registry as default_registry
from .rest import (
    ERROR_BAD_FORMAT_CODE,
    ERROR_NOT_FOUND_CODE,
    ERROR_VALIDATION_CODE,
    RestError,
    RestRequest,
)
from .storage.documents import StoredDocument
from .storage.handle import StorageHandle
from .storage.query import build_one_query

ConnectionProvider = Callable[[RestRequest], Awaitable[AsyncIOMotorDatabase]]


def handle_error(error: Optional[BaseException], strict: Optional[bool] = None) -> None:
    """
    Translate a storage failure into a RestError.

    Cast failures are 404s (NOT_FOUND on _id, BAD_FORMAT elsewhere),
    validation failures are 400s. Anything else raises
    UnhandledStorageError in strict mode and is only logged otherwise.
    """
    if error is None:
        return

    # connector queries cast ids up front; InvalidId comes from callers that
    # build ObjectIds themselves and hand the failure to handle_error
    if isinstance(error, InvalidId):
        raise RestError(404, ERROR_NOT_FOUND_CODE) from error

    if isinstance(error, CastError):
        if error.path == "_id":
            raise RestError(404, ERROR_NOT_FOUND_CODE) from error
        raise RestError(404, ERROR_BAD_FORMAT_CODE, field=error.path) from error

    if isinstance(error, (ValidationError, DocumentValidationError)):
        raise RestError(400, ERROR_VALIDATION_CODE) from error

    if strict is None:
        strict = settings.connector.strict_errors
    if strict:
        raise UnhandledStorageError(error) from error

    log("CONNECTOR", f"Ignoring unrecognized storage error {type(error).__name__}: {error}")


class MotorConnector:
    """
    Storage connector over Motor.

    database:        fixed database for every request
    get_connection:  async per-request database provider, takes precedence
    Neither given:   the default connection from restmotor.db
    """

    def __init__(
        self,
        registry: Optional[ConnectorRegistry] = None,
        database: Optional[AsyncIOMotorDatabase] = None,
        get_connection: Optional[ConnectionProvider] = None,
        strict_errors: Optional[bool] = None,
    ):
        self.registry = registry or default_registry
        self.database = database
        self.get_connection = get_connection
        self.strict_errors = strict_errors

    async def get_handle(self, model: type, request: Optional[RestRequest] = None) -> StorageHandle:
        database = self.database
        if self.get_connection is not None and request is not None:
            database = await self.get_connection(request)
        return await self.registry.get_handle(model, database)

    def _fail(self, error: Exception) -> None:
        handle_error(error, self.strict_errors)

    async def find_one(self, model: type, request: RestRequest, use_filter: bool) -> Optional[StoredDocument]:
        handle = await self.get_handle(model, request)
        query = build_one_query(request, use_filter)
        try:
            return await handle.find_one(query)
        except Exception as e:
            self._fail(e)
        return None

    async def find(self, model: type, request: RestRequest) -> Optional[List[StoredDocument]]:
        handle = await self.get_handle(model, request)
        try:
            return await handle.find(request.query or {}, request.projection, request.options)
        except Exception as e:
            self._fail(e)
        return None

    async def delete_one(self, model: type, request: RestRequest) -> Optional[bool]:
        handle = await self.get_handle(model, request)
        query = build_one_query(request, True)
        try:
            await handle.delete_one(query)
            return True
        except Exception as e:
            self._fail(e)
        return None

    async def delete(self, model: type, request: RestRequest) -> Optional[bool]:
        handle = await self.get_handle(model, request)
        try:
            await handle.delete_many(request.query or {})
            return True
        except Exception as e:
            self._fail(e)
        return None

    async def create(self, model: type, request: RestRequest) -> Optional[StoredDocument]:
        handle = await self.get_handle(model, request)
        try:
            return handle.new()
        except Exception as e:
            self._fail(e)
        return None

    async def save(self, entity: StoredDocument) -> Optional[StoredDocument]:
        try:
            handle: Optional[StorageHandle] = getattr(type(entity), "__storage_handle__", None)
            if handle is None:
                raise DocumentValidationError(
                    f"{type(entity).__name__} was not created by a storage handle"
                )
            return await handle.save(entity)
        except Exception as e:
            self._fail(e)
        return None
