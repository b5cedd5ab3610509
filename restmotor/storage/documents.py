# restmotor/storage/documents.py
"""
Pydantic document classes generated from a StorageSchema.

Documents are validated on save, not on construction: create() hands out
an instance built with model_construct(), and documents read back from
MongoDB are hydrated the same way, since projections may leave required
fields out.
"""
from datetime import datetime
from decimal import Decimal
from typing import Annotated, Any, Callable, ClassVar, Dict, Iterable, List, Optional, Tuple, Type

from beanie import PydanticObjectId
from bson import Decimal128
from pydantic import AfterValidator, BaseModel, ConfigDict, Field, create_model

from ..core.exceptions import DocumentValidationError
from ..models.types import Primitive
from ..schema import FieldKind, FieldSpec, StorageSchema


PYTHON_TYPES: Dict[Primitive, type] = {
    Primitive.OBJECT_ID: PydanticObjectId,
    Primitive.STRING: str,
    Primitive.NUMBER: float,
    Primitive.BOOLEAN: bool,
    Primitive.DATE: datetime,
    Primitive.DECIMAL128: Decimal,
}


class SubDocument(BaseModel):
    """Base for embedded documents."""
    model_config = ConfigDict(revalidate_instances="always")


class StoredDocument(BaseModel):
    """Base for top-level documents; `id` maps to `_id`."""
    model_config = ConfigDict(revalidate_instances="always")

    # set on each generated class by its StorageHandle
    __storage_handle__: ClassVar[Any] = None

    id: Optional[PydanticObjectId] = None


# ═══════════════════════════════════════════════════════════════════════════════
# BSON CONVERSION
# ═══════════════════════════════════════════════════════════════════════════════

def to_bson(value: Any) -> Any:
    if isinstance(value, Decimal):
        return Decimal128(value)
    if isinstance(value, dict):
        return {k: to_bson(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_bson(v) for v in value]
    return value


def from_bson(value: Any) -> Any:
    if isinstance(value, Decimal128):
        return value.to_decimal()
    if isinstance(value, dict):
        return {k: from_bson(v) for k, v in value.items()}
    if isinstance(value, list):
        return [from_bson(v) for v in value]
    return value


# ═══════════════════════════════════════════════════════════════════════════════
# FIELD VALIDATORS
# ═══════════════════════════════════════════════════════════════════════════════

def _enum_check(allowed: Tuple[Any, ...]) -> Callable[[Any], Any]:
    def check(value: Any) -> Any:
        if value not in allowed:
            raise ValueError(f"{value!r} is not a valid enum value (allowed: {list(allowed)})")
        return value
    return check


def _custom_check(validate: Callable[[Any], bool]) -> Callable[[Any], Any]:
    def check(value: Any) -> Any:
        if not validate(value):
            raise ValueError(f"Validator failed for value {value!r}")
        return value
    return check


def _non_empty(value: str) -> str:
    if value == "":
        raise ValueError("Path is required")
    return value


class DocumentFactory:
    """
    Generates the pydantic classes for one schema (and its nested schemas)
    and converts between them and raw MongoDB documents.
    """

    def __init__(self, schema: StorageSchema):
        self.schema = schema
        self._classes: Dict[str, Type[BaseModel]] = {}
        self.document_class: Type[StoredDocument] = self._class_for(schema, StoredDocument)

    def _class_for(self, schema: StorageSchema, base: Type[BaseModel]) -> Type[BaseModel]:
        existing = self._classes.get(schema.name)
        if existing is not None and issubclass(existing, base):
            return existing

        definitions = {name: self._definition(spec) for name, spec in schema.items()}
        cls = create_model(schema.name, __base__=base, **definitions)
        self._classes[schema.name] = cls
        return cls

    def _python_type(self, spec: FieldSpec) -> Any:
        if spec.kind == FieldKind.MIXED:
            return Dict[str, Any]

        if spec.kind in (FieldKind.EMBEDDED, FieldKind.SUBDOC_ARRAY):
            element: Any = self._class_for(spec.schema, SubDocument)
        else:
            element = PYTHON_TYPES[spec.primitive]

        if spec.kind in (FieldKind.ARRAY, FieldKind.REF_ARRAY, FieldKind.SUBDOC_ARRAY):
            if spec.enum is not None:
                element = Annotated[element, AfterValidator(_enum_check(spec.enum))]
            return List[element]

        if spec.enum is not None:
            element = Annotated[element, AfterValidator(_enum_check(spec.enum))]
        if spec.required and spec.primitive == Primitive.STRING:
            element = Annotated[element, AfterValidator(_non_empty)]
        return element

    def _definition(self, spec: FieldSpec) -> Tuple[Any, Any]:
        annotation = self._python_type(spec)
        if spec.validate is not None:
            annotation = Annotated[annotation, AfterValidator(_custom_check(spec.validate))]

        if callable(spec.default):
            default: Any = Field(default_factory=spec.default)
        elif spec.default is not None:
            default = spec.default
        elif spec.kind in (FieldKind.ARRAY, FieldKind.REF_ARRAY, FieldKind.SUBDOC_ARRAY):
            default = Field(default_factory=list)
        elif spec.required:
            return annotation, ...
        else:
            default = None

        if spec.required:
            return annotation, default
        return Optional[annotation], default

    # --- instances -----------------------------------------------------

    def new(self) -> StoredDocument:
        """Unsaved, unvalidated instance with defaults applied."""
        return self.document_class.model_construct()

    def hydrate(self, raw: Dict[str, Any]) -> StoredDocument:
        values = self._hydrate_values(self.schema, raw)
        if "_id" in raw:
            values["id"] = raw["_id"]
        return self.document_class.model_construct(**values)

    def _hydrate_values(self, schema: StorageSchema, raw: Dict[str, Any]) -> Dict[str, Any]:
        values: Dict[str, Any] = {}
        for name, spec in schema.items():
            if name not in raw:
                continue
            value = from_bson(raw[name])
            if spec.kind == FieldKind.EMBEDDED and isinstance(value, dict):
                value = self._hydrate_sub(spec.schema, value)
            elif spec.kind == FieldKind.SUBDOC_ARRAY and isinstance(value, list):
                value = [self._hydrate_sub(spec.schema, v) if isinstance(v, dict) else v for v in value]
            values[name] = value
        return values

    def _hydrate_sub(self, schema: StorageSchema, raw: Dict[str, Any]) -> BaseModel:
        cls = self._class_for(schema, SubDocument)
        return cls.model_construct(**self._hydrate_values(schema, raw))

    def validate(self, entity: StoredDocument) -> StoredDocument:
        """Full validation of an instance; raises pydantic.ValidationError."""
        if not isinstance(entity, self.document_class):
            raise DocumentValidationError(
                f"Expected a {self.schema.name} document, got {type(entity).__name__}"
            )
        return self.document_class.model_validate(dict(entity))

    def to_document(self, validated: StoredDocument) -> Dict[str, Any]:
        """Raw MongoDB document for a validated instance."""
        # unset optional fields are left out, as they would be in MongoDB
        doc = to_bson(validated.model_dump(exclude_none=True))
        object_id = doc.pop("id", None)
        if object_id is not None:
            doc = {"_id": object_id, **doc}
        return doc

    def to_update(self, validated: StoredDocument, fields: Iterable[str]) -> Dict[str, Any]:
        """
        Update for an existing document. Only `fields` are written ($set, or
        $unset when None); everything else goes to $setOnInsert so an upsert
        still stores a complete document.
        """
        changed = set(fields)
        dumped = to_bson(validated.model_dump(exclude={"id"}))
        operations = {
            "$set": {k: v for k, v in dumped.items() if k in changed and v is not None},
            "$unset": {k: "" for k, v in dumped.items() if k in changed and v is None},
            "$setOnInsert": {k: v for k, v in dumped.items() if k not in changed and v is not None},
        }
        return {op: values for op, values in operations.items() if values}
