"""Reading attribute values out of CBOR maps."""

from __future__ import annotations

from typing import Any, Sequence

from .attrs import ArraySpec, Attr, CborAttrType
from .cbor import CborError, CborErrorKind, CborItem, CborType, decode

MAX_KEY_SIZE = 512

_INT64_HALF = 1 << 63
_UINT64 = 1 << 64

_SCALAR_DEFAULTS = frozenset(
    {
        CborAttrType.INTEGER,
        CborAttrType.UNSIGNED_INTEGER,
        CborAttrType.BOOLEAN,
        CborAttrType.HALF_FLOAT,
        CborAttrType.FLOAT,
        CborAttrType.DOUBLE,
    }
)

_FLOATING = frozenset({CborType.FLOAT, CborType.DOUBLE})


class AttrDecodeError(CborError):
    """Raised when a map or array cannot be read completely.

    ``partial`` holds whatever was read before and despite the failure.
    """

    def __init__(self, kind: CborErrorKind, partial: Any, message: str | None = None) -> None:
        super().__init__(kind, message)
        self.partial = partial


def _defaults(attrs: Sequence[Attr]) -> dict:
    return {
        attr.attribute: attr.default
        for attr in attrs
        if not attr.nodefault and attr.type in _SCALAR_DEFAULTS
    }


def _match(attrs: Sequence[Attr], key: str, value_type: CborType) -> Attr | None:
    fallback = None
    for attr in attrs:
        if not attr.type.matches(value_type):
            continue
        if attr.attribute is None:
            if key == "":
                fallback = attr
        elif attr.attribute == key:
            return attr
    return fallback


def _scalar(attr_type: CborAttrType, item: CborItem, max_len: int | None):
    """Convert one scalar item; returns ``(value, error_kind)``."""
    value = item.value
    if attr_type is CborAttrType.INTEGER:
        return ((value + _INT64_HALF) % _UINT64) - _INT64_HALF, None
    if attr_type is CborAttrType.UNSIGNED_INTEGER:
        # A negative integer yields the magnitude stored on the wire.
        return (value if value >= 0 else -1 - value), None
    if attr_type is CborAttrType.BOOLEAN:
        return bool(value), None
    if attr_type in (CborAttrType.HALF_FLOAT, CborAttrType.FLOAT, CborAttrType.DOUBLE):
        return float(value), None
    if attr_type is CborAttrType.BYTE_STRING:
        if max_len is not None and len(value) > max_len:
            return None, CborErrorKind.DATA_TOO_LARGE
        return bytes(value), None
    if attr_type is CborAttrType.TEXT_STRING:
        # Room is needed for the terminator as well.
        if max_len is not None and len(value.encode("utf-8")) + 1 > max_len:
            return None, CborErrorKind.DATA_TOO_LARGE
        return value, None
    return None, CborErrorKind.ILLEGAL_TYPE


def _store(result: dict, attr: Attr, value: CborItem) -> CborErrorKind | None:
    name = attr.attribute
    if attr.type is CborAttrType.NULL:
        return None
    if attr.type is CborAttrType.ARRAY:
        result[name], error = _read_array(value, attr.array)
        return error
    if attr.type is CborAttrType.OBJECT:
        result[name], error = _read_object(value, attr.obj)
        return error
    converted, error = _scalar(attr.type, value, attr.max_len)
    if error is None:
        result[name] = converted
    return error


def _read_object(item: CborItem, attrs: Sequence[Attr]):
    result = _defaults(attrs)
    if item.type is not CborType.MAP:
        return result, CborErrorKind.ILLEGAL_TYPE
    items = iter(item.value)
    for key_item in items:
        if key_item.type is CborType.TEXT_STRING:
            key = key_item.value
            if len(key.encode("utf-8")) > MAX_KEY_SIZE:
                return result, CborErrorKind.DATA_TOO_LARGE
            value = next(items, None)
            if value is None:
                return result, CborErrorKind.ILLEGAL_TYPE
        else:
            key, value = "", key_item
        attr = _match(attrs, key, value.type)
        if attr is None:
            continue
        error = _store(result, attr, value)
        if error is not None:
            return result, error
    return result, None


def _element_matches(element_type: CborAttrType, item_type: CborType) -> bool:
    if element_type in (CborAttrType.FLOAT, CborAttrType.DOUBLE):
        return item_type in _FLOATING
    return element_type.matches(item_type)


def _read_array(item: CborItem, spec: ArraySpec):
    if item.type is not CborType.ARRAY:
        return [], CborErrorKind.ILLEGAL_TYPE
    elements = item.value
    element_type = spec.element_type
    values: list = []
    first_error = None
    used = 0
    for element in elements[: spec.maxlen]:
        if element_type is CborAttrType.STRUCT_OBJECT:
            value, error = _read_object(element, spec.subtype)
        elif element_type is CborAttrType.TEXT_STRING:
            if element.type is not CborType.TEXT_STRING:
                value, error = None, CborErrorKind.ILLEGAL_TYPE
            else:
                size = len(element.value.encode("utf-8")) + 1
                if spec.store_len is not None and used + size > spec.store_len:
                    value, error = None, CborErrorKind.DATA_TOO_LARGE
                else:
                    value, error = element.value, None
                    used += size
        elif element_type in _SCALAR_DEFAULTS:
            if _element_matches(element_type, element.type):
                value, error = _scalar(element_type, element, None)
            else:
                value, error = None, CborErrorKind.ILLEGAL_TYPE
        else:
            value, error = None, CborErrorKind.ILLEGAL_TYPE
        values.append(value)
        first_error = first_error or error
    if len(elements) > spec.maxlen:
        first_error = first_error or CborErrorKind.DATA_TOO_LARGE
    return values, first_error


def read_object(item: CborItem, attrs: Sequence[Attr]) -> dict:
    """Read the attributes described by ``attrs`` from the map ``item``.

    Returns a dict keyed by attribute name (None for the unnamed attribute).
    """
    result, error = _read_object(item, attrs)
    if error is not None:
        raise AttrDecodeError(error, result)
    return result


def read_array(item: CborItem, spec: ArraySpec) -> list:
    """Read the elements of the array ``item`` as described by ``spec``."""
    values, error = _read_array(item, spec)
    if error is not None:
        raise AttrDecodeError(error, values)
    return values


def read_flat_attrs(data: bytes, attrs: Sequence[Attr]) -> dict:
    """Decode ``data`` and read the attributes described by ``attrs`` from it."""
    return read_object(decode(data), attrs)