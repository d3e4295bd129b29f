"""
CompositeFS Providers: In-Memory Filesystem.

MemoryFS serves files held in a PyFilesystem2 memory filesystem. Parent
directories are implied by the paths of the files below them, and can also
be declared explicitly (e.g., to have an empty directory).

Example:
    >>> fs = MemoryFS({
    ...     "common.txt": b"A",
    ...     "views/home.html": "<h1>Home</h1>",
    ...     "empty": MemoryFile(mode=stat.S_IFDIR | 0o755),
    ... })
    >>> fs.read_file("views/home.html")
    b'<h1>Home</h1>'
"""

import errno
import stat
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Dict, Iterator, List, Mapping, Optional, Set, Union

from fs import memoryfs
from fs.base import FS
from fs.errors import DirectoryExpected, FileExpected, ResourceNotFound
from fs.info import Info

from compositefs.core.constants import READONLY_DIR_PERMISSIONS, READONLY_FILE_PERMISSIONS
from compositefs.core.path_utils import base_name, clean_path, join_path, split_path
from compositefs.core.types import DirEntry, File, FileInfo
from compositefs.providers.base import (
    DirHandle,
    StreamFile,
    invalid_path,
    not_a_directory,
    not_found,
)


@dataclass(frozen=True)
class MemoryFile:
    """
    One file (or explicit directory) of a MemoryFS.

    Attributes:
        data: File contents (ignored for directories)
        mode: File mode; a bare permission value means a regular file
        mtime: Modification timestamp
    """

    data: bytes = b""
    mode: int = READONLY_FILE_PERMISSIONS
    mtime: float = 0.0

    @property
    def is_dir(self) -> bool:
        return stat.S_ISDIR(self.mode)


MemoryContent = Union[bytes, str, MemoryFile]


def _as_memory_file(content: MemoryContent) -> MemoryFile:
    if isinstance(content, MemoryFile):
        return content
    if isinstance(content, str):
        content = content.encode("utf-8")
    return MemoryFile(data=bytes(content))


def _backend_path(path: str) -> str:
    return "/" if path == "." else "/" + path


@contextmanager
def _translate_errors(path: str) -> Iterator[None]:
    """Re-raise PyFilesystem2 errors as the OSError subclasses providers use."""
    try:
        yield
    except ResourceNotFound:
        raise not_found(path) from None
    except DirectoryExpected:
        raise not_a_directory(path) from None
    except FileExpected:
        raise IsADirectoryError(errno.EISDIR, "Is a directory", path) from None


class MemoryFS:
    """Read-only in-memory filesystem implementing every optional capability.

    Contents and modification times live in a ``fs.memoryfs.MemoryFS``;
    permission bits, which PyFilesystem2 does not keep for memory files, are
    tracked here.
    """

    def __init__(
        self,
        files: Optional[Mapping[str, MemoryContent]] = None,
        backend: Optional[FS] = None,
        permissions: Optional[Dict[str, int]] = None,
    ):
        """
        Initialize the filesystem.

        Args:
            files: Mapping of path to bytes, str (UTF-8 encoded) or MemoryFile
            backend: Existing PyFilesystem2 filesystem to serve instead of a
                     new memory filesystem (files are written into it)
            permissions: Permission bits by path for entries of backend

        Raises:
            OSError: EINVAL if a path climbs above the root
        """
        self._fs: FS = backend if backend is not None else memoryfs.MemoryFS()
        self._permissions: Dict[str, int] = dict(permissions or {})

        contents = {self._normalize(p): _as_memory_file(c) for p, c in (files or {}).items()}
        contents.pop(".", None)

        dirs: Set[str] = {p for p, c in contents.items() if c.is_dir}
        for path in contents:
            parts = split_path(path)
            for depth in range(1, len(parts)):
                dirs.add("/".join(parts[:depth]))

        # Parents first; a path that is both a file and a parent stays a directory
        for path in sorted(dirs, key=lambda p: p.count("/")):
            self._fs.makedirs(_backend_path(path), recreate=True)
            declared = contents.get(path)
            if declared is None or not declared.is_dir:
                declared = MemoryFile(mode=stat.S_IFDIR)
            self._set_metadata(path, declared)

        for path, memory_file in contents.items():
            if path in dirs:
                continue
            self._fs.writebytes(_backend_path(path), memory_file.data)
            self._set_metadata(path, memory_file)

    def _set_metadata(self, path: str, memory_file: MemoryFile) -> None:
        self._fs.setinfo(_backend_path(path), {"details": {"modified": memory_file.mtime}})
        permissions = stat.S_IMODE(memory_file.mode)
        if permissions:
            self._permissions[path] = permissions

    @staticmethod
    def _normalize(path: str) -> str:
        cleaned = clean_path(path).lstrip("/") or "."
        if cleaned == ".." or cleaned.startswith("../"):
            raise invalid_path(path)
        return cleaned

    def _file_info(self, path: str, info: Info) -> FileInfo:
        if info.is_dir:
            mode = stat.S_IFDIR | self._permissions.get(path, READONLY_DIR_PERMISSIONS)
        else:
            mode = stat.S_IFREG | self._permissions.get(path, READONLY_FILE_PERMISSIONS)

        return FileInfo(
            name=base_name(path),
            size=0 if info.is_dir else info.size,
            mode=mode,
            mtime=info.get("details", "modified") or 0.0,
        )

    def _info(self, path: str) -> FileInfo:
        with _translate_errors(path):
            info = self._fs.getinfo(_backend_path(path), namespaces=["details"])
        return self._file_info(path, info)

    def open(self, path: str) -> File:
        path = self._normalize(path)
        info = self._info(path)
        if info.is_dir:
            return DirHandle(path, info, lambda: self._list(path))

        with _translate_errors(path):
            return StreamFile(self._fs.openbin(_backend_path(path)), info)

    def stat(self, path: str) -> FileInfo:
        return self._info(self._normalize(path))

    def read_file(self, path: str) -> bytes:
        path = self._normalize(path)
        with _translate_errors(path):
            return self._fs.readbytes(_backend_path(path))

    def read_dir(self, path: str) -> List[DirEntry]:
        return self._list(self._normalize(path))

    def _list(self, path: str) -> List[DirEntry]:
        with _translate_errors(path):
            infos = list(self._fs.scandir(_backend_path(path), namespaces=["details"]))

        entries = []
        for info in sorted(infos, key=lambda i: i.name):
            file_info = self._file_info(join_path(path, info.name), info)
            entries.append(DirEntry(name=info.name, is_dir=file_info.is_dir, info=file_info))
        return entries

    def sub(self, path: str) -> "MemoryFS":
        """Get a MemoryFS rooted at a directory.

        Raises:
            FileNotFoundError: If the directory does not exist
            NotADirectoryError: If the path is a file
        """
        path = self._normalize(path)
        if path == ".":
            return self

        with _translate_errors(path):
            sub_fs = self._fs.opendir(_backend_path(path))

        prefix = path + "/"
        permissions = {
            p[len(prefix):]: bits for p, bits in self._permissions.items() if p.startswith(prefix)
        }
        return MemoryFS(backend=sub_fs, permissions=permissions)

    def __repr__(self) -> str:
        files = sum(1 for _ in self._fs.walk.files())
        return f"MemoryFS(files={files})"
