"""
CompositeFS Providers: Shared Handle Classes.

- BytesFile: Read-only handle over in-memory content
- StreamFile: Read-only handle over an open binary stream (OS files)
- DirHandle: Directory handle with a private read cursor

Plus small constructors for the OSError subclasses providers raise.
"""

import errno
import io
from typing import BinaryIO, Callable, List, Optional

from compositefs.core.types import DirEntry, FileInfo


def not_found(path: str) -> FileNotFoundError:
    return FileNotFoundError(errno.ENOENT, "No such file or directory", path)


def not_a_directory(path: str) -> NotADirectoryError:
    return NotADirectoryError(errno.ENOTDIR, "Not a directory", path)


def invalid_path(path: str) -> OSError:
    return OSError(errno.EINVAL, "Invalid path", path)


class _Handle:
    """Context manager support shared by every handle."""

    def close(self) -> None:
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class BytesFile(_Handle):
    """Read-only file handle over bytes."""

    def __init__(self, data: bytes, info: FileInfo):
        self._buffer = io.BytesIO(data)
        self._info = info

    def read(self, size: int = -1) -> bytes:
        return self._buffer.read(size)

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> int:
        return self._buffer.seek(offset, whence)

    def stat(self) -> FileInfo:
        return self._info

    def close(self) -> None:
        self._buffer.close()

    @property
    def closed(self) -> bool:
        return self._buffer.closed


class StreamFile(_Handle):
    """Read-only file handle over a binary stream.

    The stream is owned by the handle and closed with it.
    """

    def __init__(self, stream: BinaryIO, info: FileInfo):
        self._stream = stream
        self._info = info

    def read(self, size: int = -1) -> bytes:
        return self._stream.read(size)

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> int:
        return self._stream.seek(offset, whence)

    def stat(self) -> FileInfo:
        return self._info

    def close(self) -> None:
        self._stream.close()

    @property
    def closed(self) -> bool:
        return self._stream.closed


class DirHandle(_Handle):
    """Directory handle.

    Entries are loaded on the first read_dir() call, so opening a directory
    only to stat it never lists it.
    """

    def __init__(self, path: str, info: FileInfo, loader: Callable[[], List[DirEntry]]):
        self.path = path
        self._info = info
        self._loader = loader
        self._entries: Optional[List[DirEntry]] = None
        self._pos = 0

    def stat(self) -> FileInfo:
        return self._info

    def read(self, size: int = -1) -> bytes:
        raise IsADirectoryError(errno.EISDIR, "Is a directory", self.path)

    def read_dir(self, n: int = -1) -> List[DirEntry]:
        """Read up to n entries (all remaining if n <= 0); [] at the end."""
        if self._entries is None:
            self._entries = list(self._loader())

        end = len(self._entries) if n <= 0 else min(self._pos + n, len(self._entries))
        entries = self._entries[self._pos:end]
        self._pos = end
        return entries
