"""Descriptions of the attributes read from and written to CBOR maps."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Sequence

from .cbor import CborType


class CborAttrType(enum.IntEnum):
    """The type an attribute's value is expected to have."""

    INTEGER = 1
    UNSIGNED_INTEGER = 2
    BYTE_STRING = 3
    TEXT_STRING = 4
    BOOLEAN = 5
    HALF_FLOAT = 6
    FLOAT = 7
    DOUBLE = 8
    ARRAY = 9
    OBJECT = 10
    STRUCT_OBJECT = 11
    NULL = 12

    def matches(self, cbor_type: CborType) -> bool:
        """Whether a CBOR item of ``cbor_type`` can fill an attribute of this type."""
        return _MATCHING.get(self) is cbor_type


_MATCHING = {
    CborAttrType.INTEGER: CborType.INTEGER,
    CborAttrType.UNSIGNED_INTEGER: CborType.INTEGER,
    CborAttrType.BYTE_STRING: CborType.BYTE_STRING,
    CborAttrType.TEXT_STRING: CborType.TEXT_STRING,
    CborAttrType.BOOLEAN: CborType.BOOLEAN,
    CborAttrType.HALF_FLOAT: CborType.HALF_FLOAT,
    CborAttrType.FLOAT: CborType.FLOAT,
    CborAttrType.DOUBLE: CborType.DOUBLE,
    CborAttrType.ARRAY: CborType.ARRAY,
    CborAttrType.OBJECT: CborType.MAP,
    CborAttrType.NULL: CborType.NULL,
}

_ZERO_DEFAULTS = {
    CborAttrType.INTEGER: 0,
    CborAttrType.UNSIGNED_INTEGER: 0,
    CborAttrType.BOOLEAN: False,
    CborAttrType.HALF_FLOAT: 0.0,
    CborAttrType.FLOAT: 0.0,
    CborAttrType.DOUBLE: 0.0,
}


@dataclass
class ArraySpec:
    """How the elements of an array attribute are read.

    ``maxlen`` bounds the number of elements; ``store_len`` bounds the total
    space for text elements (each takes its length plus one); ``subtype``
    describes the members of each element when they are objects.
    """

    element_type: CborAttrType
    maxlen: int
    subtype: Sequence[Attr] | None = None
    store_len: int | None = None

    def __post_init__(self) -> None:
        self.element_type = CborAttrType(self.element_type)
        if self.maxlen < 0:
            raise ValueError("maxlen must not be negative")
        if self.element_type is CborAttrType.STRUCT_OBJECT and self.subtype is None:
            raise ValueError("object elements need a subtype")
        if self.store_len is not None and self.store_len < 0:
            raise ValueError("store_len must not be negative")


@dataclass
class Attr:
    """One attribute to look for in a CBOR map.

    ``attribute`` of None matches an item that has no text key. ``max_len``
    bounds byte and text strings. Unless ``nodefault`` is set, scalar
    attributes take ``default`` (zero of their type if not given) when absent.
    """

    attribute: str | None
    type: CborAttrType
    default: Any = None
    max_len: int | None = None
    nodefault: bool = False
    array: ArraySpec | None = None
    obj: Sequence[Attr] | None = None

    def __post_init__(self) -> None:
        self.type = CborAttrType(self.type)
        if self.default is None:
            self.default = _ZERO_DEFAULTS.get(self.type)
        if self.type is CborAttrType.ARRAY and self.array is None:
            raise ValueError(f"array attribute {self.attribute!r} needs an ArraySpec")
        if self.type is CborAttrType.OBJECT and self.obj is None:
            raise ValueError(f"object attribute {self.attribute!r} needs member attributes")
        if self.max_len is not None and self.max_len < 0:
            raise ValueError("max_len must not be negative")


@dataclass
class OutValue:
    """A value to be written as CBOR.

    Arrays hold a sequence of OutValue, objects a sequence of OutAttr.
    """

    type: CborAttrType
    value: Any = None

    def __post_init__(self) -> None:
        self.type = CborAttrType(self.type)
        if self.type is CborAttrType.ARRAY:
            self.value = list(self.value or ())
            if not all(isinstance(v, OutValue) for v in self.value):
                raise ValueError("array elements must be OutValue")
        elif self.type is CborAttrType.OBJECT:
            self.value = list(self.value or ())
            if not all(isinstance(v, OutAttr) for v in self.value):
                raise ValueError("object members must be OutAttr")


@dataclass
class OutAttr:
    """A key and value to be written into a CBOR map, unless ``omit`` is set."""

    attribute: str | None
    value: OutValue = field(default_factory=lambda: OutValue(CborAttrType.NULL))
    omit: bool = False