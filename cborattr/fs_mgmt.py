"""The file-system management command: chunked file download and upload."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from .attrs import Attr, CborAttrType
from .cbor import CborError, CborItem, decode
from .decode import read_object
from .fs_backend import FileBackend, MgmtErr, MgmtError

FS_MGMT_ID_FILE = 0

_ULLONG_MAX = (1 << 64) - 1

Request = Union[CborItem, bytes, bytearray]


def dl_chunk_size(buf_size: int, max_offset_len: int, requested: int | None = None) -> int:
    """Size of a download chunk that fits in a buffer of ``buf_size`` bytes.

    The space left after the map framing and the "off", "data", "rc" and
    "len" fields (each offset taking up to ``max_offset_len`` bytes) is used,
    unless ``requested`` is given and fits, in which case it is used as is.
    """
    overhead = (
        (9 + 1)
        + (1 + 3 + max_offset_len)
        + (1 + 4 + max_offset_len)
        + (1 + 2 + 1)
        + (1 + 3 + max_offset_len)
    )
    if requested is not None and requested + overhead <= buf_size:
        return requested
    size = buf_size - overhead
    if size <= 0:
        raise ValueError(f"a buffer of {buf_size} bytes leaves no room for file data")
    return size


@dataclass(frozen=True)
class FsMgmtConfig:
    """Limits on chunk sizes and path length."""

    dl_chunk_size: int = 512
    ul_chunk_size: int = 512
    path_size: int = 64

    def __post_init__(self) -> None:
        for name in ("dl_chunk_size", "ul_chunk_size", "path_size"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive")


@dataclass
class _UploadState:
    uploading: bool = False
    off: int = 0
    length: int = 0


class FsManager:
    """Handles file download and upload requests against a file backend."""

    def __init__(self, backend: FileBackend, config: FsMgmtConfig | None = None) -> None:
        self.backend = backend
        self.config = config or FsMgmtConfig()
        self._upload = _UploadState()

    @property
    def uploading(self) -> bool:
        """Whether an upload is in progress."""
        return self._upload.uploading

    def _read(self, request: Request, attrs: list[Attr]) -> dict:
        try:
            item = request if isinstance(request, CborItem) else decode(request)
            return read_object(item, attrs)
        except CborError as exc:
            raise MgmtError(MgmtErr.EINVAL, str(exc)) from exc

    def download(self, request: Request) -> dict:
        """Read one chunk of a file; the first response also carries its length."""
        fields = self._read(
            request,
            [
                Attr("off", CborAttrType.UNSIGNED_INTEGER),
                Attr("name", CborAttrType.TEXT_STRING, max_len=self.config.path_size + 1),
            ],
        )
        off = fields["off"]
        path = fields.get("name")
        if off == _ULLONG_MAX or path is None:
            raise MgmtError(MgmtErr.EINVAL)

        file_len = self.backend.filelen(path) if off == 0 else None
        data = self.backend.read(path, off, self.config.dl_chunk_size)

        response = {"off": off, "data": bytes(data), "rc": int(MgmtErr.EOK)}
        if file_len is not None:
            response["len"] = file_len
        return response

    def upload(self, request: Request) -> dict:
        """Write one chunk of a file; uploads start at offset 0 and carry the total length."""
        fields = self._read(
            request,
            [
                Attr("off", CborAttrType.UNSIGNED_INTEGER, nodefault=True),
                Attr("data", CborAttrType.BYTE_STRING, max_len=self.config.ul_chunk_size),
                Attr("len", CborAttrType.UNSIGNED_INTEGER, nodefault=True),
                Attr("name", CborAttrType.TEXT_STRING, max_len=self.config.path_size + 1),
            ],
        )
        off = fields.get("off", _ULLONG_MAX)
        total = fields.get("len", _ULLONG_MAX)
        name = fields.get("name", "")
        data = fields.get("data", b"")
        if off == _ULLONG_MAX or not name:
            raise MgmtError(MgmtErr.EINVAL)

        state = self._upload
        if off == 0:
            if total == _ULLONG_MAX:
                raise MgmtError(MgmtErr.EINVAL, "the first chunk must give the total length")
            state.uploading = True
            state.off = 0
            state.length = total
        else:
            if not state.uploading:
                raise MgmtError(MgmtErr.EINVAL, "no upload in progress")
            if off != state.off:
                # Drop the data and tell the requester where to continue.
                return {"rc": int(MgmtErr.EINVAL), "off": state.off}

        new_off = state.off + len(data)
        if new_off > state.length:
            raise MgmtError(MgmtErr.EINVAL, "data exceeds the file length")

        if data:
            self.backend.write(name, off, data)
            state.off = new_off

        if state.off == state.length:
            state.uploading = False

        return {"rc": int(MgmtErr.EOK), "off": state.off}