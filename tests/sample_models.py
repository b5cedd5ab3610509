# tests/sample_models.py
"""
Models shared by the test suite. Kept at module level so that forward
references ("Person", "Node") resolve against this module.
"""
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Optional

from bson import ObjectId

from restmotor import RestModel, prop


class Color(Enum):
    RED = "red"
    GREEN = "green"


ROLES = {"ADMIN": "admin", "USER": "user"}


class Tag(RestModel):
    name: str = prop(required=True)
    color: str = prop(enum=Color)


class Address(RestModel):
    city: str = prop(required=True, index=True)
    zip: str = prop()


class Person(RestModel):
    name: str = prop(required=True, index=True)
    email: str = prop(unique=True)
    age: int = prop(validate=lambda v: v >= 0)
    born: datetime = prop()
    balance: Decimal = prop()
    active: bool = prop(default=True)
    role: str = prop(enum=ROLES, default="user")
    tags: List[str] = prop()
    address: Address = prop()
    labels: List[Tag] = prop()
    friends: List["Person"] = prop(ref=True)
    meta: Dict[str, str] = prop()


class Employee(Person):
    company: str = prop(required=True)
    name: str = prop(unique=True)


class Note(RestModel):
    title: str = prop(required=True)
    owner: ObjectId = prop()
    body: Optional[str] = prop()

    class Settings:
        name = "notes"


class Node(RestModel):
    label: str = prop()
    child: "Node" = prop()


class Unconfigured(RestModel):
    title: str = prop(required=True)
    subtitle: str


class BadEnum(RestModel):
    kind: str = prop(enum=42)


class Letters(RestModel):
    letter: str = prop(enum={"A": "a", "B": "b"})


class Zeta(RestModel):
    alpha: "Alpha" = prop()


class Alpha(RestModel):
    zeta: Zeta = prop()
