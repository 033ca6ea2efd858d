"""Writing attribute maps as CBOR."""

from __future__ import annotations

from typing import Sequence

from .attrs import CborAttrType, OutAttr, OutValue
from .cbor import Encoder


class AttrEncodeError(ValueError):
    """Raised when an attribute or value cannot be written."""


def write_value(encoder: Encoder, value: OutValue) -> None:
    """Write one value to ``encoder``."""
    kind, data = value.type, value.value
    if kind is CborAttrType.NULL:
        encoder.null()
    elif kind is CborAttrType.BOOLEAN:
        encoder.boolean(bool(data))
    elif kind is CborAttrType.INTEGER:
        encoder.int(int(data or 0))
    elif kind is CborAttrType.UNSIGNED_INTEGER:
        encoder.uint(int(data or 0))
    elif kind is CborAttrType.HALF_FLOAT:
        encoder.half_float(int(data or 0))
    elif kind is CborAttrType.FLOAT:
        encoder.float(float(data or 0.0))
    elif kind is CborAttrType.DOUBLE:
        encoder.double(float(data or 0.0))
    elif kind is CborAttrType.BYTE_STRING:
        encoder.byte_string(b"" if data is None else data)
    elif kind is CborAttrType.TEXT_STRING:
        encoder.text_string("" if data is None else data)
    elif kind is CborAttrType.OBJECT:
        write_object(encoder, data)
    elif kind is CborAttrType.ARRAY:
        encoder.begin_array(len(data))
        for element in data:
            write_value(encoder, element)
        encoder.end()
    else:
        raise AttrEncodeError(f"cannot write a value of type {kind.name}")


def write_object(encoder: Encoder, attrs: Sequence[OutAttr]) -> None:
    """Write ``attrs`` as an indefinite-length map, skipping omitted ones."""
    encoder.begin_map()
    for attr in attrs:
        if attr.omit:
            continue
        if attr.attribute is None:
            raise AttrEncodeError("attribute without a name")
        encoder.text_string(attr.attribute)
        write_value(encoder, attr.value)
    encoder.end()


def encode_object(attrs: Sequence[OutAttr]) -> bytes:
    """Return the CBOR encoding of the map ``attrs``."""
    encoder = Encoder()
    write_object(encoder, attrs)
    return encoder.getvalue()