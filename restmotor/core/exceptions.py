# restmotor/core/exceptions.py
"""
Custom exceptions for the connector.

REST-facing errors live in restmotor.rest; everything here is raised before
translation (or, for configuration errors, never translated at all).
"""
from typing import Any, Dict, Optional


class RestmotorError(Exception):
    """Base exception for all restmotor errors."""
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class SchemaConfigError(RestmotorError):
    """A model cannot be turned into a storage schema. Fatal for that model."""
    def __init__(self, model: str, message: str, prop: Optional[str] = None):
        super().__init__(
            f"In {model}: {message}",
            {"model": model, "property": prop}
        )
        self.model = model
        self.prop = prop


class CastError(RestmotorError):
    """A query value could not be cast to the type of its field."""
    def __init__(self, path: str, value: Any, kind: str):
        super().__init__(
            f"Cast to {kind} failed for value {value!r} at path '{path}'",
            {"path": path, "kind": kind}
        )
        self.path = path
        self.value = value
        self.kind = kind


class DocumentValidationError(RestmotorError):
    """Raised when a document handed to the storage layer is malformed."""
    pass


class UnhandledStorageError(RestmotorError):
    """A storage failure that maps to no REST error kind."""
    def __init__(self, cause: BaseException):
        super().__init__(
            f"Unhandled storage error: {type(cause).__name__}: {cause}",
            {"error_type": type(cause).__name__}
        )
        self.cause = cause


class ConnectionNotReadyError(RestmotorError):
    """No database is available for a connector operation."""
    pass
