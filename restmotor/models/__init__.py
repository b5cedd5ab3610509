# restmotor/models/__init__.py
"""
Model description: tagged property types and the declarative registration
mechanism that produces them.
"""
from .types import (
    Primitive,
    ArrayOf,
    Embedded,
    ObjectLiteral,
    PropType,
    PropConfig,
    PropertyDescriptor,
)
from .base import (
    RestModel,
    prop,
    classify,
    list_properties_of,
    parent_of,
    collection_name_of,
    PropertySource,
    RestModelSource,
)

__all__ = [
    "Primitive",
    "ArrayOf",
    "Embedded",
    "ObjectLiteral",
    "PropType",
    "PropConfig",
    "PropertyDescriptor",
    "RestModel",
    "prop",
    "classify",
    "list_properties_of",
    "parent_of",
    "collection_name_of",
    "PropertySource",
    "RestModelSource",
]
