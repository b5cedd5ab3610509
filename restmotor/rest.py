# restmotor/rest.py
"""
REST boundary types: the normalized request the routing layer hands to a
connector, the error it gets back, and the connector contract itself.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol

from fastapi import HTTPException

ERROR_NOT_FOUND_CODE = "NOT_FOUND"
ERROR_BAD_FORMAT_CODE = "BAD_FORMAT"
ERROR_VALIDATION_CODE = "VALIDATION"


@dataclass
class RestRequest:
    """Normalized request. `params["id"]` addresses a single resource."""
    params: Dict[str, Any] = field(default_factory=dict)
    query: Optional[Dict[str, Any]] = None
    projection: Optional[Any] = None
    options: Optional[Dict[str, Any]] = None

    @property
    def id(self) -> Optional[str]:
        return self.params.get("id")


class RestError(HTTPException):
    """
    Error surfaced to the REST layer: status code plus {code, field?}.

    Being an HTTPException, FastAPI renders it as
    {"detail": {"code": ..., "field": ...}} with no extra handler.
    """
    def __init__(self, status_code: int, code: str, field: Optional[str] = None):
        detail: Dict[str, Any] = {"code": code}
        if field is not None:
            detail["field"] = field
        super().__init__(status_code=status_code, detail=detail)
        self.code = code
        self.field = field

    def __repr__(self) -> str:
        return f"RestError({self.status_code}, {self.detail!r})"


class RestConnector(Protocol):
    """What any storage adapter must provide to the REST layer."""

    async def find_one(self, model: type, request: RestRequest, use_filter: bool) -> Optional[Any]:
        ...

    async def find(self, model: type, request: RestRequest) -> List[Any]:
        ...

    async def create(self, model: type, request: RestRequest) -> Any:
        ...

    async def save(self, entity: Any) -> Any:
        ...

    async def delete_one(self, model: type, request: RestRequest) -> bool:
        ...

    async def delete(self, model: type, request: RestRequest) -> bool:
        ...
