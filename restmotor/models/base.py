# restmotor/models/base.py
"""
Declarative property registration.

    class Address(RestModel):
        city: str = prop(required=True)
        zip: str = prop()

    class User(RestModel):
        email: str = prop(required=True, unique=True)
        role: str = prop(enum=Role, default=Role.USER.value)
        address: Address = prop()
        friends: List["User"] = prop(ref=True)

        class Settings:
            name = "users"

Annotations are classified into tagged property types the first time the
model's properties are listed, so forward references to models defined
later in the module resolve. An annotated attribute without prop() yields a
descriptor with no config, which the schema builder rejects.
"""
import inspect
import sys
import types
import typing
from datetime import datetime
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional, Protocol

from bson import Decimal128, ObjectId

from ..core.exceptions import SchemaConfigError
from .types import (
    ArrayOf,
    Embedded,
    ObjectLiteral,
    Primitive,
    PropConfig,
    PropertyDescriptor,
    PropType,
)


_PRIMITIVES: Dict[type, Primitive] = {
    str: Primitive.STRING,
    bool: Primitive.BOOLEAN,
    int: Primitive.NUMBER,
    float: Primitive.NUMBER,
    datetime: Primitive.DATE,
    Decimal: Primitive.DECIMAL128,
    Decimal128: Primitive.DECIMAL128,
}


class Prop:
    """Marker left in the class body by prop()."""

    def __init__(self, type: Any, config: PropConfig):
        self.type = type
        self.config = config

    def __repr__(self) -> str:
        return f"Prop(type={self.type!r}, config={self.config!r})"


def prop(
    type: Any = None,
    *,
    required: bool = False,
    index: bool = False,
    unique: bool = False,
    default: Any = None,
    validate: Optional[Callable[[Any], bool]] = None,
    enum: Any = None,
    ref: bool = False,
) -> Any:
    """
    Declare a persisted property.

    `type` is only needed when the attribute is not annotated; it accepts
    the same things as an annotation, a tagged PropType, or a one-element
    list such as [str].
    """
    return Prop(type, PropConfig(
        required=required,
        index=index,
        unique=unique,
        default=default,
        validate=validate,
        enum=enum,
        ref=ref,
    ))


class RestModel:
    """Base class for persisted models. Never instantiated by the connector."""
    pass


def _resolve_name(annotation: Any, model: type) -> Any:
    """Model named by a string in an explicit prop() type, e.g. prop(["User"])."""
    if isinstance(annotation, typing.ForwardRef):
        annotation = annotation.__forward_arg__
    if not isinstance(annotation, str):
        return annotation
    if annotation == model.__name__:
        return model
    resolved = getattr(sys.modules[model.__module__], annotation, None)
    if resolved is None:
        raise SchemaConfigError(model.__name__, f"Cannot resolve type {annotation!r}")
    return resolved


def _strip_optional(annotation: Any) -> Any:
    origin = typing.get_origin(annotation)
    if origin is typing.Annotated:
        return _strip_optional(typing.get_args(annotation)[0])
    if origin is typing.Union or isinstance(annotation, types.UnionType):
        args = [a for a in typing.get_args(annotation) if a is not type(None)]
        if len(args) == 1:
            return _strip_optional(args[0])
    return annotation


def classify(annotation: Any, model: type, name: str) -> PropType:
    """Turn an annotation (or prop() type) into a tagged property type."""
    annotation = _resolve_name(annotation, model)
    stripped = _strip_optional(annotation)
    if stripped is not annotation:
        return classify(stripped, model, name)

    if isinstance(annotation, (Primitive, ArrayOf, Embedded, ObjectLiteral)):
        return annotation

    if isinstance(annotation, list):
        if len(annotation) != 1:
            raise SchemaConfigError(model.__name__, f"Property '{name}': array type must declare exactly one element type", name)
        return ArrayOf(_classify_element(annotation[0], model, name))

    origin = typing.get_origin(annotation)
    if annotation is list or origin is list:
        args = typing.get_args(annotation)
        if not args:
            raise SchemaConfigError(model.__name__, f"Property '{name}': array type must declare its element type", name)
        return ArrayOf(_classify_element(args[0], model, name))

    if annotation is dict or origin is dict or annotation is object:
        return ObjectLiteral()

    if inspect.isclass(annotation):
        if annotation in _PRIMITIVES:
            return _PRIMITIVES[annotation]
        if issubclass(annotation, ObjectId):
            return Primitive.OBJECT_ID
        if issubclass(annotation, RestModel):
            return Embedded(annotation)

    raise SchemaConfigError(model.__name__, f"Property '{name}': unsupported type {annotation!r}", name)


def _classify_element(annotation: Any, model: type, name: str):
    element = classify(annotation, model, name)
    if not isinstance(element, (Primitive, Embedded)):
        raise SchemaConfigError(model.__name__, f"Property '{name}': array elements must be a primitive or a model", name)
    return element


def list_properties_of(model: type) -> List[PropertyDescriptor]:
    """
    Own properties of `model`, annotated ones first in declaration order,
    then prop() attributes without annotation.

    Computed once per model and kept on the class.
    """
    cached = model.__dict__.get("__restmotor_properties__")
    if cached is not None:
        return cached

    own = inspect.get_annotations(model)
    try:
        hints = typing.get_type_hints(model, localns={model.__name__: model}, include_extras=True)
    except NameError as e:
        raise SchemaConfigError(model.__name__, f"Cannot resolve property annotation: {e}")
    annotations = {name: hints[name] for name in own}

    props: List[PropertyDescriptor] = []
    for name, annotation in annotations.items():
        if typing.get_origin(annotation) is typing.ClassVar:
            continue
        value = model.__dict__.get(name)
        if isinstance(value, Prop):
            declared = value.type if value.type is not None else annotation
            props.append(PropertyDescriptor(name, classify(declared, model, name), value.config))
        else:
            props.append(PropertyDescriptor(name, classify(annotation, model, name), None))

    for name, value in model.__dict__.items():
        if isinstance(value, Prop) and name not in annotations:
            if value.type is None:
                raise SchemaConfigError(model.__name__, f"Property '{name}' has neither an annotation nor a type", name)
            props.append(PropertyDescriptor(name, classify(value.type, model, name), value.config))

    setattr(model, "__restmotor_properties__", props)
    return props


def parent_of(model: type) -> Optional[type]:
    bases = model.__bases__
    return bases[0] if bases else None


def collection_name_of(model: type) -> str:
    """`class Settings: name = ...` declared on the model itself, else the class name."""
    model_settings = model.__dict__.get("Settings")
    return getattr(model_settings, "name", None) or model.__name__


class PropertySource(Protocol):
    """Where the schema builder gets model metadata from."""

    def list_properties(self, model: type) -> List[PropertyDescriptor]:
        ...

    def parent_of(self, model: type) -> Optional[type]:
        ...


class RestModelSource:
    """PropertySource reading RestModel subclasses declared with prop()."""

    def list_properties(self, model: type) -> List[PropertyDescriptor]:
        return list_properties_of(model)

    def parent_of(self, model: type) -> Optional[type]:
        return parent_of(model)
