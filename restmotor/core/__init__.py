# restmotor/core/__init__.py
"""
Core module - configuration, logging and shared exceptions.
"""
from .config import settings
from .exceptions import (
    RestmotorError,
    SchemaConfigError,
    CastError,
    DocumentValidationError,
    UnhandledStorageError,
    ConnectionNotReadyError,
)
from .logging import log, log_section

__all__ = [
    "settings",
    "RestmotorError",
    "SchemaConfigError",
    "CastError",
    "DocumentValidationError",
    "UnhandledStorageError",
    "ConnectionNotReadyError",
    "log",
    "log_section",
]
