# restmotor/storage/query.py
"""
Query construction and casting.

Filters coming from a REST request carry strings and JSON scalars; before
they reach MongoDB every value compared against a known field is cast to
that field's storage type. A value that cannot be cast raises CastError,
which the connector turns into a 404.
"""
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional

from bson import Decimal128, ObjectId
from pydantic import TypeAdapter, ValidationError

from ..core.exceptions import CastError
from ..models.types import Primitive
from ..schema import FieldKind, FieldSpec, StorageSchema


LOGICAL_OPERATORS = {"$and", "$or", "$nor"}
CASTING_OPERATORS = {"$eq", "$ne", "$gt", "$gte", "$lt", "$lte", "$in", "$nin", "$all"}
LIST_OPERATORS = {"$in", "$nin", "$all"}

_ID_SPEC = FieldSpec(FieldKind.SCALAR, primitive=Primitive.OBJECT_ID)

_number = TypeAdapter(float)
_boolean = TypeAdapter(bool)
_date = TypeAdapter(datetime)


def build_one_query(request: Any, use_filter: bool) -> Dict[str, Any]:
    """
    Effective filter for a single-resource operation.

    With a path id: {"$and": [{"_id": id}, filter]}. The request filter is
    only honored when use_filter is set.
    """
    query = (request.query or {}) if use_filter else {}
    resource_id = request.params.get("id") if request.params else None
    if resource_id:
        return {"$and": [{"_id": resource_id}, query]}
    return query


def cast_value(primitive: Primitive, value: Any, path: str) -> Any:
    if value is None:
        return None
    try:
        if primitive == Primitive.OBJECT_ID:
            if isinstance(value, ObjectId):
                return value
            if isinstance(value, str) and ObjectId.is_valid(value):
                return ObjectId(value)
            raise CastError(path, value, primitive.value)
        if primitive == Primitive.STRING:
            if isinstance(value, str):
                return value
            if isinstance(value, (int, float, Decimal)) and not isinstance(value, bool):
                return str(value)
            raise CastError(path, value, primitive.value)
        if primitive == Primitive.NUMBER:
            return _number.validate_python(value)
        if primitive == Primitive.BOOLEAN:
            return _boolean.validate_python(value)
        if primitive == Primitive.DATE:
            return _date.validate_python(value)
        if primitive == Primitive.DECIMAL128:
            if isinstance(value, Decimal128):
                return value
            if isinstance(value, bool):
                raise CastError(path, value, primitive.value)
            return Decimal128(Decimal(str(value)))
    except (ValidationError, InvalidOperation, ValueError, TypeError):
        raise CastError(path, value, primitive.value)
    return value


def _cast_for_spec(spec: FieldSpec, value: Any, path: str) -> Any:
    if spec.primitive is None:
        # sub-documents and untyped objects are matched as given
        return value
    if isinstance(value, list) and spec.kind != FieldKind.SCALAR:
        return [cast_value(spec.primitive, v, path) for v in value]
    return cast_value(spec.primitive, value, path)


def _cast_condition(spec: FieldSpec, condition: Any, path: str) -> Any:
    if isinstance(condition, dict) and any(k.startswith("$") for k in condition):
        cast: Dict[str, Any] = {}
        for op, operand in condition.items():
            if op in LIST_OPERATORS and isinstance(operand, list):
                cast[op] = [_cast_for_spec(spec, v, path) for v in operand]
            elif op in CASTING_OPERATORS:
                cast[op] = _cast_for_spec(spec, operand, path)
            elif op == "$not":
                cast[op] = _cast_condition(spec, operand, path)
            else:
                cast[op] = operand
        return cast
    return _cast_for_spec(spec, condition, path)


def cast_filter(schema: StorageSchema, query: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Copy of `query` with values cast to the schema's storage types."""
    if not query:
        return {}

    cast: Dict[str, Any] = {}
    for key, condition in query.items():
        if key in LOGICAL_OPERATORS and isinstance(condition, list):
            cast[key] = [cast_filter(schema, clause) for clause in condition]
            continue
        if key.startswith("$"):
            cast[key] = condition
            continue

        spec: Optional[FieldSpec] = _ID_SPEC if key == "_id" else schema.resolve_path(key)
        if spec is None:
            cast[key] = condition
        else:
            cast[key] = _cast_condition(spec, condition, key)
    return cast


def find_options(options: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Keyword arguments for Collection.find() from request options."""
    if not options:
        return {}

    kwargs: Dict[str, Any] = {}
    for key in ("skip", "limit", "collation", "hint", "max_time_ms", "batch_size"):
        if options.get(key) is not None:
            kwargs[key] = options[key]

    sort = options.get("sort")
    if sort:
        if isinstance(sort, dict):
            kwargs["sort"] = normalize_sort(list(sort.items()))
        elif isinstance(sort, str):
            # "-created title" style
            kwargs["sort"] = [
                (part.lstrip("-"), -1 if part.startswith("-") else 1)
                for part in sort.split()
            ]
        else:
            kwargs["sort"] = normalize_sort([tuple(item) for item in sort])
    return kwargs


def sort_direction(value: Any) -> int:
    if isinstance(value, str):
        return -1 if value.lower() in ("-1", "desc", "descending") else 1
    return -1 if value < 0 else 1


def normalize_sort(sort: List[Any]) -> List[Any]:
    return [(field, sort_direction(direction)) for field, direction in sort]
