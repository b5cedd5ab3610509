# restmotor/schema.py
"""
Storage schema derivation.

SchemaBuilder turns a model description into a StorageSchema: an ordered,
frozen mapping from property name to FieldSpec. Embedded models and arrays
of embedded models get nested schemas; reference arrays only store ids.
A child model starts from a clone of its parent's schema, so the chain is
always built root-first.
"""
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple
import inspect

from .core.exceptions import SchemaConfigError
from .core.logging import log
from .models.base import RestModel, RestModelSource, PropertySource, collection_name_of
from .models.types import (
    ArrayOf,
    Embedded,
    ObjectLiteral,
    Primitive,
    PropConfig,
    PropertyDescriptor,
)


class FieldKind(str, Enum):
    SCALAR = "scalar"
    ARRAY = "array"                  # list of primitives
    REF_ARRAY = "ref_array"          # list of ObjectIds pointing at other documents
    SUBDOC_ARRAY = "subdoc_array"    # list of embedded documents
    EMBEDDED = "embedded"            # single embedded document
    MIXED = "mixed"                  # untyped object


@dataclass(frozen=True)
class FieldSpec:
    kind: FieldKind
    primitive: Optional[Primitive] = None
    schema: Optional["StorageSchema"] = None
    required: bool = False
    index: bool = False
    unique: bool = False
    default: Any = None
    validate: Optional[Callable[[Any], bool]] = None
    enum: Optional[Tuple[Any, ...]] = None


class StorageSchema(Mapping):
    """Ordered property name -> FieldSpec mapping for one model."""

    def __init__(self, name: str, collection: Optional[str] = None, fields: Optional[Dict[str, FieldSpec]] = None):
        self.name = name
        self.collection = collection or name
        self._fields: Dict[str, FieldSpec] = dict(fields or {})
        self._frozen = False

    def __getitem__(self, key: str) -> FieldSpec:
        return self._fields[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __repr__(self) -> str:
        return f"StorageSchema({self.name!r}, fields={list(self._fields)})"

    @property
    def fields(self) -> Mapping:
        return MappingProxyType(self._fields)

    @property
    def frozen(self) -> bool:
        return self._frozen

    def add(self, name: str, spec: FieldSpec) -> None:
        if self._frozen:
            raise SchemaConfigError(self.name, f"Schema is frozen, cannot add '{name}'", name)
        # re-inserting moves nothing: an overridden field keeps its inherited position
        self._fields[name] = spec

    def freeze(self) -> "StorageSchema":
        self._frozen = True
        return self

    def clone(self, name: str, collection: Optional[str] = None) -> "StorageSchema":
        return StorageSchema(name, collection, self._fields)

    def resolve_path(self, path: str) -> Optional[FieldSpec]:
        """FieldSpec for a dotted path, descending into sub-documents."""
        head, _, rest = path.partition(".")
        spec = self._fields.get(head)
        if spec is None or not rest:
            return spec

        if spec.kind in (FieldKind.ARRAY, FieldKind.REF_ARRAY, FieldKind.SUBDOC_ARRAY):
            # positional segment: items.0.name
            first, _, remainder = rest.partition(".")
            if first.isdigit():
                if not remainder:
                    return spec
                rest = remainder

        if spec.schema is not None:
            return spec.schema.resolve_path(rest)
        return None

    def index_specs(self, prefix: str = "") -> List[Tuple[str, bool]]:
        """(dotted path, unique) for every indexed field, nested ones included."""
        specs: List[Tuple[str, bool]] = []
        for name, spec in self._fields.items():
            path = f"{prefix}{name}"
            if spec.index or spec.unique:
                specs.append((path, spec.unique))
            if spec.schema is not None:
                specs.extend(spec.schema.index_specs(prefix=f"{path}."))
        return specs


def expand_enum(model: str, prop_name: str, enum: Any) -> Tuple[Any, ...]:
    """Allowed values of an enum option, in declaration order."""
    if inspect.isclass(enum) and issubclass(enum, Enum):
        return tuple(member.value for member in enum)
    if isinstance(enum, Mapping):
        return tuple(enum.values())
    if isinstance(enum, (list, tuple, set, frozenset)):
        return tuple(enum)
    raise SchemaConfigError(model, "Option 'enum' must be an array, object literal, or enum type", prop_name)


class SchemaBuilder:
    """
    Builds and memoizes storage schemas, keyed by model name.

    Schemas are built once and never evicted. A model requested again while
    it is still being built (an embedded cycle) is a configuration error.
    """

    def __init__(self, source: Optional[PropertySource] = None):
        self.source = source or RestModelSource()
        self._schemas: Dict[str, StorageSchema] = {}
        self._building: List[str] = []

    def __contains__(self, model: type) -> bool:
        return model.__name__ in self._schemas

    def get(self, model: type) -> Optional[StorageSchema]:
        return self._schemas.get(model.__name__)

    def build(self, model: type) -> StorageSchema:
        name = model.__name__
        cached = self._schemas.get(name)
        if cached is not None:
            return cached

        if name in self._building:
            chain = " -> ".join(self._building[self._building.index(name):] + [name])
            raise SchemaConfigError(name, f"Cyclic model graph detected while building ({chain})")

        self._building.append(name)
        try:
            schema = self._build(model)
        finally:
            self._building.pop()

        schema.freeze()
        self._schemas[name] = schema
        log("SCHEMA", f"Built schema: {', '.join(schema) or '(no fields)'}", model=name)
        return schema

    def _build(self, model: type) -> StorageSchema:
        name = model.__name__
        collection = collection_name_of(model)

        parent = self.source.parent_of(model)
        if parent is not None and parent not in (RestModel, object):
            schema = self.build(parent).clone(name, collection)
        else:
            schema = StorageSchema(name, collection)

        for prop in self.source.list_properties(model):
            schema.add(prop.name, self._field_spec(name, prop))
        return schema

    def _field_spec(self, model: str, prop: PropertyDescriptor) -> FieldSpec:
        config: Optional[PropConfig] = prop.config
        if config is None:
            raise SchemaConfigError(
                model,
                f"Property '{prop.name}' is missing a configuration. You probably forgot to add prop() on it.",
                prop.name,
            )

        options: Dict[str, Any] = {
            "required": config.required or False,
            "index": config.index or False,
            "unique": config.unique or False,
            "default": config.default,
        }
        if config.validate:
            options["validate"] = config.validate
        if config.enum is not None:
            options["enum"] = expand_enum(model, prop.name, config.enum)

        prop_type = prop.type
        if isinstance(prop_type, ArrayOf):
            element = prop_type.element
            if isinstance(element, Primitive):
                return FieldSpec(FieldKind.ARRAY, primitive=element, **options)
            if config.ref:
                return FieldSpec(FieldKind.REF_ARRAY, primitive=Primitive.OBJECT_ID, **options)
            return FieldSpec(FieldKind.SUBDOC_ARRAY, schema=self.build(element.model), **options)

        if isinstance(prop_type, ObjectLiteral):
            return FieldSpec(FieldKind.MIXED, **options)

        if isinstance(prop_type, Embedded):
            return FieldSpec(FieldKind.EMBEDDED, schema=self.build(prop_type.model), **options)

        return FieldSpec(FieldKind.SCALAR, primitive=prop_type, **options)
