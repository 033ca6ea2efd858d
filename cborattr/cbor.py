"""A small CBOR reader and streaming writer."""

from __future__ import annotations

import enum
import math
import struct
from dataclasses import dataclass, field
from typing import Any

_MAX_DEPTH = 1024
_UINT64_LIMIT = 1 << 64


class CborType(enum.Enum):
    """The kind of a decoded CBOR data item."""

    INTEGER = enum.auto()
    BYTE_STRING = enum.auto()
    TEXT_STRING = enum.auto()
    ARRAY = enum.auto()
    MAP = enum.auto()
    TAG = enum.auto()
    SIMPLE = enum.auto()
    BOOLEAN = enum.auto()
    NULL = enum.auto()
    UNDEFINED = enum.auto()
    HALF_FLOAT = enum.auto()
    FLOAT = enum.auto()
    DOUBLE = enum.auto()


class CborErrorKind(enum.Enum):
    """Why reading or writing CBOR failed."""

    UNEXPECTED_EOF = enum.auto()
    UNEXPECTED_BREAK = enum.auto()
    UNKNOWN_TYPE = enum.auto()
    ILLEGAL_TYPE = enum.auto()
    ILLEGAL_NUMBER = enum.auto()
    ILLEGAL_SIMPLE_TYPE = enum.auto()
    INVALID_UTF8 = enum.auto()
    NESTING_TOO_DEEP = enum.auto()
    DATA_TOO_LARGE = enum.auto()
    TOO_MANY_ITEMS = enum.auto()
    TOO_FEW_ITEMS = enum.auto()


class CborError(Exception):
    """Raised for malformed input or misuse of the encoder."""

    def __init__(self, kind: CborErrorKind, message: str | None = None) -> None:
        super().__init__(message or kind.name.lower().replace("_", " "))
        self.kind = kind


@dataclass(frozen=True)
class CborItem:
    """One decoded data item.

    Arrays hold a list of items. Maps hold the flat sequence of their
    items, keys and values alternating, exactly as they appear on the wire.
    Tags hold a ``(tag_number, item)`` pair.
    """

    type: CborType
    value: Any = None


_BREAK = object()


class _Decoder:
    def __init__(self, data: bytes) -> None:
        self._data = bytes(data)
        self._pos = 0

    def _remaining(self) -> int:
        return len(self._data) - self._pos

    def _take(self, count: int) -> bytes:
        if count > self._remaining():
            raise CborError(CborErrorKind.UNEXPECTED_EOF)
        chunk = self._data[self._pos:self._pos + count]
        self._pos += count
        return chunk

    def _argument(self, info: int) -> int:
        if info < 24:
            return info
        if info in (24, 25, 26, 27):
            return int.from_bytes(self._take(1 << (info - 24)), "big")
        raise CborError(CborErrorKind.ILLEGAL_NUMBER)

    def _count(self, count: int) -> int:
        # Every item takes at least one byte, so a longer count cannot fit.
        if count > self._remaining():
            raise CborError(CborErrorKind.UNEXPECTED_EOF)
        return count

    def top(self) -> CborItem:
        item = self._item(0)
        if item is _BREAK:
            raise CborError(CborErrorKind.UNEXPECTED_BREAK)
        return item

    def _child(self, depth: int) -> CborItem:
        item = self._item(depth + 1)
        if item is _BREAK:
            raise CborError(CborErrorKind.UNEXPECTED_BREAK)
        return item

    def _until_break(self, depth: int) -> list[CborItem]:
        items = []
        while (item := self._item(depth + 1)) is not _BREAK:
            items.append(item)
        return items

    def _item(self, depth: int):
        if depth > _MAX_DEPTH:
            raise CborError(CborErrorKind.NESTING_TOO_DEEP)
        initial = self._take(1)[0]
        major, info = initial >> 5, initial & 0x1F
        if major == 7:
            return self._simple(info)
        if info == 31:
            if major in (2, 3):
                return self._chunked(major)
            if major == 4:
                return CborItem(CborType.ARRAY, self._until_break(depth))
            if major == 5:
                return CborItem(CborType.MAP, self._until_break(depth))
            raise CborError(CborErrorKind.ILLEGAL_NUMBER)
        arg = self._argument(info)
        if major == 0:
            return CborItem(CborType.INTEGER, arg)
        if major == 1:
            return CborItem(CborType.INTEGER, -1 - arg)
        if major == 2:
            return CborItem(CborType.BYTE_STRING, self._take(arg))
        if major == 3:
            return CborItem(CborType.TEXT_STRING, _text(self._take(arg)))
        if major == 4:
            count = self._count(arg)
            return CborItem(CborType.ARRAY, [self._child(depth) for _ in range(count)])
        if major == 5:
            count = self._count(2 * arg)
            return CborItem(CborType.MAP, [self._child(depth) for _ in range(count)])
        return CborItem(CborType.TAG, (arg, self._child(depth)))

    def _chunked(self, major: int) -> CborItem:
        parts = []
        while True:
            initial = self._take(1)[0]
            if initial == 0xFF:
                break
            if initial >> 5 != major or initial & 0x1F == 31:
                raise CborError(CborErrorKind.ILLEGAL_TYPE)
            parts.append(self._take(self._argument(initial & 0x1F)))
        raw = b"".join(parts)
        if major == 2:
            return CborItem(CborType.BYTE_STRING, raw)
        return CborItem(CborType.TEXT_STRING, _text(raw))

    def _simple(self, info: int):
        if info < 20:
            return CborItem(CborType.SIMPLE, info)
        if info == 20:
            return CborItem(CborType.BOOLEAN, False)
        if info == 21:
            return CborItem(CborType.BOOLEAN, True)
        if info == 22:
            return CborItem(CborType.NULL)
        if info == 23:
            return CborItem(CborType.UNDEFINED)
        if info == 24:
            value = self._take(1)[0]
            if value < 32:
                raise CborError(CborErrorKind.ILLEGAL_SIMPLE_TYPE)
            return CborItem(CborType.SIMPLE, value)
        if info == 25:
            return CborItem(CborType.HALF_FLOAT, struct.unpack(">e", self._take(2))[0])
        if info == 26:
            return CborItem(CborType.FLOAT, struct.unpack(">f", self._take(4))[0])
        if info == 27:
            return CborItem(CborType.DOUBLE, struct.unpack(">d", self._take(8))[0])
        if info == 31:
            return _BREAK
        raise CborError(CborErrorKind.UNKNOWN_TYPE)


def _text(raw: bytes) -> str:
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise CborError(CborErrorKind.INVALID_UTF8) from exc


def decode(data: bytes) -> CborItem:
    """Decode the first data item in ``data``; trailing bytes are ignored."""
    return _Decoder(data).top()


@dataclass
class _Container:
    expected: int | None
    count: int = field(default=0)


class Encoder:
    """Writes CBOR items one after another into an in-memory buffer."""

    def __init__(self) -> None:
        self._buf = bytearray()
        self._stack: list[_Container] = []

    def _count_item(self) -> None:
        if self._stack:
            self._stack[-1].count += 1

    def _head(self, major: int, arg: int) -> None:
        prefix = major << 5
        if arg < 24:
            self._buf.append(prefix | arg)
        elif arg <= 0xFF:
            self._buf += bytes((prefix | 24, arg))
        elif arg <= 0xFFFF:
            self._buf.append(prefix | 25)
            self._buf += arg.to_bytes(2, "big")
        elif arg <= 0xFFFFFFFF:
            self._buf.append(prefix | 26)
            self._buf += arg.to_bytes(4, "big")
        else:
            self._buf.append(prefix | 27)
            self._buf += arg.to_bytes(8, "big")

    def null(self) -> None:
        self._count_item()
        self._buf.append(0xF6)

    def boolean(self, value: bool) -> None:
        self._count_item()
        self._buf.append(0xF5 if value else 0xF4)

    def int(self, value: int) -> None:
        magnitude = value if value >= 0 else -1 - value
        if magnitude >= _UINT64_LIMIT:
            raise CborError(CborErrorKind.ILLEGAL_NUMBER, f"{value} out of range")
        self._count_item()
        self._head(0 if value >= 0 else 1, magnitude)

    def uint(self, value: int) -> None:
        if not 0 <= value < _UINT64_LIMIT:
            raise CborError(CborErrorKind.ILLEGAL_NUMBER, f"{value} out of range")
        self._count_item()
        self._head(0, value)

    def half_float(self, bits: int) -> None:
        if not 0 <= bits <= 0xFFFF:
            raise CborError(CborErrorKind.ILLEGAL_NUMBER, f"{bits} is not 16 bits")
        self._count_item()
        self._buf.append(0xF9)
        self._buf += bits.to_bytes(2, "big")

    def float(self, value: float) -> None:
        try:
            packed = struct.pack(">f", value)
        except OverflowError:
            packed = struct.pack(">f", math.copysign(math.inf, value))
        self._count_item()
        self._buf.append(0xFA)
        self._buf += packed

    def double(self, value: float) -> None:
        self._count_item()
        self._buf.append(0xFB)
        self._buf += struct.pack(">d", value)

    def byte_string(self, value: bytes) -> None:
        data = bytes(value)
        self._count_item()
        self._head(2, len(data))
        self._buf += data

    def text_string(self, value: str) -> None:
        data = value.encode("utf-8")
        self._count_item()
        self._head(3, len(data))
        self._buf += data

    def _begin(self, major: int, length: int | None, expected: int | None) -> None:
        self._count_item()
        if length is None:
            self._buf.append((major << 5) | 31)
        else:
            self._head(major, length)
        self._stack.append(_Container(expected))

    def begin_map(self, length: int | None = None) -> None:
        """Open a map of ``length`` pairs, or of indefinite length if None."""
        self._begin(5, length, None if length is None else 2 * length)

    def begin_array(self, length: int | None = None) -> None:
        """Open an array of ``length`` items, or of indefinite length if None."""
        self._begin(4, length, length)

    def end(self) -> None:
        """Close the innermost open container."""
        if not self._stack:
            raise CborError(CborErrorKind.ILLEGAL_TYPE, "no open container")
        container = self._stack[-1]
        if container.expected is None:
            self._buf.append(0xFF)
        elif container.count < container.expected:
            raise CborError(CborErrorKind.TOO_FEW_ITEMS)
        elif container.count > container.expected:
            raise CborError(CborErrorKind.TOO_MANY_ITEMS)
        self._stack.pop()

    def getvalue(self) -> bytes:
        """Return everything written so far."""
        return bytes(self._buf)