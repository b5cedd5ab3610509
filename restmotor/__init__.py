# restmotor/__init__.py
"""
restmotor - MongoDB storage connector for REST resource frameworks.

    from restmotor import RestModel, prop, MotorConnector, RestRequest

    class Task(RestModel):
        title: str = prop(required=True)
        done: bool = prop(default=False)

    connector = MotorConnector(database=db)
    task = await connector.create(Task, RestRequest())
    task.title = "write docs"
    await connector.save(task)
"""
from .connector import MotorConnector, handle_error
from .core import (
    settings,
    RestmotorError,
    SchemaConfigError,
    CastError,
    DocumentValidationError,
    UnhandledStorageError,
    ConnectionNotReadyError,
)
from .db import connect_db, disconnect_db, get_db, use_db
from .models import (
    Primitive,
    ArrayOf,
    Embedded,
    ObjectLiteral,
    PropConfig,
    PropertyDescriptor,
    RestModel,
    prop,
)
from .registry import ConnectorRegistry, registry, get_storage_handle
from .rest import (
    RestRequest,
    RestError,
    RestConnector,
    ERROR_NOT_FOUND_CODE,
    ERROR_BAD_FORMAT_CODE,
    ERROR_VALIDATION_CODE,
)
from .schema import FieldKind, FieldSpec, StorageSchema, SchemaBuilder
from .storage import StorageHandle, StoredDocument

__version__ = "0.1.0"

__all__ = [
    "MotorConnector",
    "handle_error",
    "settings",
    "RestmotorError",
    "SchemaConfigError",
    "CastError",
    "DocumentValidationError",
    "UnhandledStorageError",
    "ConnectionNotReadyError",
    "connect_db",
    "disconnect_db",
    "get_db",
    "use_db",
    "Primitive",
    "ArrayOf",
    "Embedded",
    "ObjectLiteral",
    "PropConfig",
    "PropertyDescriptor",
    "RestModel",
    "prop",
    "ConnectorRegistry",
    "registry",
    "get_storage_handle",
    "RestRequest",
    "RestError",
    "RestConnector",
    "ERROR_NOT_FOUND_CODE",
    "ERROR_BAD_FORMAT_CODE",
    "ERROR_VALIDATION_CODE",
    "FieldKind",
    "FieldSpec",
    "StorageSchema",
    "SchemaBuilder",
    "StorageHandle",
    "StoredDocument",
]
