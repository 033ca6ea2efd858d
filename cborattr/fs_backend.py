"""File access used by the file-system management commands."""

from __future__ import annotations

import abc
import enum
import os
from pathlib import Path


class MgmtErr(enum.IntEnum):
    """Management result codes reported back to the requester."""

    EOK = 0
    EUNKNOWN = 1
    ENOMEM = 2
    EINVAL = 3
    ENOENT = 5
    ENOTSUP = 8


class MgmtError(Exception):
    """A management command failed with the result code ``code``."""

    def __init__(self, code: MgmtErr, message: str | None = None) -> None:
        self.code = MgmtErr(code)
        super().__init__(message or self.code.name)


class FileBackend(abc.ABC):
    """Reads and writes the files that management commands work on."""

    @abc.abstractmethod
    def filelen(self, path: str) -> int:
        """Return the length of the file at ``path``."""

    @abc.abstractmethod
    def read(self, path: str, offset: int, length: int) -> bytes:
        """Return up to ``length`` bytes of ``path`` starting at ``offset``."""

    @abc.abstractmethod
    def write(self, path: str, offset: int, data: bytes) -> None:
        """Write ``data`` at ``offset``; a write at offset 0 truncates the file."""


class UnsupportedBackend(FileBackend):
    """A backend for systems without file access: every call is refused."""

    def filelen(self, path: str) -> int:
        raise MgmtError(MgmtErr.ENOTSUP)

    def read(self, path: str, offset: int, length: int) -> bytes:
        raise MgmtError(MgmtErr.ENOTSUP)

    def write(self, path: str, offset: int, data: bytes) -> None:
        raise MgmtError(MgmtErr.ENOTSUP)


class DirectoryBackend(FileBackend):
    """Serves files from below a directory on the local file system."""

    def __init__(self, root: str | os.PathLike) -> None:
        self.root = Path(root).resolve()

    def _resolve(self, path: str) -> Path:
        target = (self.root / path.lstrip("/")).resolve()
        if target != self.root and self.root not in target.parents:
            raise MgmtError(MgmtErr.EINVAL, f"{path!r} lies outside the served directory")
        return target

    def filelen(self, path: str) -> int:
        target = self._resolve(path)
        try:
            info = target.stat()
        except OSError as exc:
            raise MgmtError(MgmtErr.EUNKNOWN, str(exc)) from exc
        if not target.is_file():
            raise MgmtError(MgmtErr.EUNKNOWN, f"{path!r} is not a file")
        return info.st_size

    def read(self, path: str, offset: int, length: int) -> bytes:
        target = self._resolve(path)
        try:
            handle = open(target, "rb")
        except OSError as exc:
            raise MgmtError(MgmtErr.ENOENT, str(exc)) from exc
        with handle:
            try:
                handle.seek(offset)
                return handle.read(length)
            except (OSError, ValueError) as exc:
                raise MgmtError(MgmtErr.EUNKNOWN, str(exc)) from exc

    def _truncate(self, target: Path) -> None:
        # Removing an existing file stands in for truncating it.
        if target.is_file():
            try:
                target.unlink()
            except OSError as exc:
                raise MgmtError(MgmtErr.EUNKNOWN, str(exc)) from exc

    def write(self, path: str, offset: int, data: bytes) -> None:
        target = self._resolve(path)
        if offset == 0:
            self._truncate(target)
        try:
            fd = os.open(target, os.O_CREAT | os.O_WRONLY, 0o666)
        except OSError as exc:
            raise MgmtError(MgmtErr.EUNKNOWN, str(exc)) from exc
        with os.fdopen(fd, "wb") as handle:
            try:
                handle.seek(offset)
                handle.write(bytes(data))
            except (OSError, ValueError) as exc:
                raise MgmtError(MgmtErr.EUNKNOWN, str(exc)) from exc