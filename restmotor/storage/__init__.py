# restmotor/storage/__init__.py
"""
Storage layer - generated document classes, filter casting and the
per-(model, database) storage handle.
"""
from .documents import DocumentFactory, StoredDocument, SubDocument, to_bson, from_bson
from .query import build_one_query, cast_filter, cast_value, find_options
from .handle import StorageHandle

__all__ = [
    "DocumentFactory",
    "StoredDocument",
    "SubDocument",
    "to_bson",
    "from_bson",
    "build_one_query",
    "cast_filter",
    "cast_value",
    "find_options",
    "StorageHandle",
]
