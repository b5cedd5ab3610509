# restmotor/models/types.py
"""
Property descriptors as an explicit tagged variant.

A property type is one of:
    Primitive      scalar stored as-is
    ArrayOf        list of a primitive or of an embedded model
    Embedded       sub-document described by another model
    ObjectLiteral  untyped structured object

The schema builder dispatches on these tags only; no reflection happens
after registration.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional, Union


class Primitive(str, Enum):
    OBJECT_ID = "ObjectId"
    STRING = "String"
    NUMBER = "Number"
    BOOLEAN = "Boolean"
    DATE = "Date"
    DECIMAL128 = "Decimal128"


@dataclass(frozen=True)
class Embedded:
    model: type


@dataclass(frozen=True)
class ObjectLiteral:
    pass


@dataclass(frozen=True)
class ArrayOf:
    element: Union[Primitive, Embedded]


PropType = Union[Primitive, ArrayOf, Embedded, ObjectLiteral]


@dataclass
class PropConfig:
    """Per-property constraints, as declared with prop()."""
    required: bool = False
    index: bool = False
    unique: bool = False
    default: Any = None
    validate: Optional[Callable[[Any], bool]] = None
    enum: Any = None
    # only meaningful on arrays of embedded models: store ids, not sub-documents
    ref: bool = False


@dataclass
class PropertyDescriptor:
    name: str
    type: PropType
    config: Optional[PropConfig]
