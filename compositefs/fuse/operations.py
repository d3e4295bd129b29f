"""
FUSE filesystem operations for CompositeFS.

This module exposes a composite (or any provider) as a read-only FUSE
filesystem:
- Metadata operations (getattr, statfs, access)
- Directory operations (readdir)
- File operations (open, read, release)

Every mutating operation fails with EROFS. Lookups are resolved by the
composite on every call; nothing is cached here.
"""

import errno
import os
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from fuse import FuseOSError, Operations

from compositefs.core import helpers
from compositefs.core.constants import Limits
from compositefs.core.errors import LayerError, is_not_found
from compositefs.core.path_utils import to_relative
from compositefs.core.types import File, FileInfo, Provider
from compositefs.infrastructure.logger import get_logger

_WRITE_FLAGS = os.O_WRONLY | os.O_RDWR | os.O_APPEND | os.O_CREAT | os.O_TRUNC


@dataclass
class FileHandle:
    """Represents an open file handle."""

    handle: File  # Handle returned by the provider
    path: str  # Provider path the handle was opened with
    position: int = 0  # Offset the next sequential read starts at
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)


class CompositeFSOperations(Operations):
    """
    Read-only FUSE operations backed by a provider.

    Thread Safety:
    - The provider is shared; composites are safe for concurrent readers
    - File handle tracking uses a lock
    - Each FUSE file handle owns its provider handle exclusively; reads on
      one handle are serialized by its lock
    """

    def __init__(self, provider: Provider):
        """
        Initialize FUSE operations.

        Args:
            provider: Filesystem to expose, usually a CompositeFS
        """
        self.provider = provider
        self.logger = get_logger("compositefs.fuse")

        self.fds: Dict[int, FileHandle] = {}
        self.fd_counter = 0
        self.fd_lock = threading.Lock()

        self.uid = os.getuid()
        self.gid = os.getgid()

        self.logger.info("FUSE operations initialized")

    # =========================================================================
    # Helpers
    # =========================================================================

    def _fuse_error(self, error: BaseException, path: str) -> FuseOSError:
        """Map a provider or composite failure to a FUSE errno."""
        if isinstance(error, LayerError):
            error = error.failure.error

        if is_not_found(error):
            return FuseOSError(errno.ENOENT)

        if isinstance(error, OSError) and error.errno:
            code = error.errno
        else:
            code = errno.EIO

        self.logger.warning("Operation failed", path=path, error=error, errno=code)
        return FuseOSError(code)

    def _attrs(self, info: FileInfo) -> Dict[str, Any]:
        return {
            "st_mode": info.mode,
            "st_nlink": 2 if info.is_dir else 1,
            "st_size": info.size,
            "st_mtime": info.mtime,
            "st_ctime": info.mtime,
            "st_atime": info.mtime,
            "st_uid": self.uid,
            "st_gid": self.gid,
        }

    def _get_handle(self, fh: int) -> FileHandle:
        with self.fd_lock:
            file_handle = self.fds.get(fh)
        if file_handle is None:
            raise FuseOSError(errno.EBADF)
        return file_handle

    # =========================================================================
    # FUSE Metadata Operations
    # =========================================================================

    def getattr(self, path: str, fh: Optional[int] = None) -> Dict[str, Any]:
        """
        Get file attributes (equivalent to stat()).

        Raises:
            FuseOSError: ENOENT if the path exists in no layer
        """
        try:
            info = helpers.stat(self.provider, to_relative(path))
        except Exception as e:
            raise self._fuse_error(e, path)

        return self._attrs(info)

    def access(self, path: str, mode: int) -> int:
        if mode & os.W_OK:
            raise FuseOSError(errno.EROFS)
        self.getattr(path)
        return 0

    def statfs(self, path: str) -> Dict[str, Any]:
        return {
            "f_bsize": 4096,
            "f_frsize": 4096,
            "f_blocks": 0,
            "f_bfree": 0,
            "f_bavail": 0,
            "f_files": 0,
            "f_ffree": 0,
            "f_favail": 0,
            "f_namemax": Limits.MAX_FILENAME_LENGTH,
        }

    # =========================================================================
    # FUSE Directory Operations
    # =========================================================================

    def readdir(self, path: str, fh: int) -> List[str]:
        """
        List directory contents merged across layers.

        Returns:
            List of directory entries (including "." and "..")
        """
        try:
            entries = helpers.read_dir(self.provider, to_relative(path))
        except Exception as e:
            raise self._fuse_error(e, path)

        return [".", ".."] + [entry.name for entry in entries]

    # =========================================================================
    # FUSE File Operations
    # =========================================================================

    def open(self, path: str, flags: int) -> int:
        """
        Open a file for reading.

        Raises:
            FuseOSError: EROFS for write access, EISDIR for directories,
                         ENOENT if the path exists in no layer
        """
        if flags & _WRITE_FLAGS:
            raise FuseOSError(errno.EROFS)

        relative = to_relative(path)
        try:
            handle = self.provider.open(relative)
        except Exception as e:
            raise self._fuse_error(e, path)

        try:
            is_dir = handle.stat().is_dir
        except Exception as e:
            handle.close()
            raise self._fuse_error(e, path)

        if is_dir:
            handle.close()
            raise FuseOSError(errno.EISDIR)

        with self.fd_lock:
            self.fd_counter += 1
            fh = self.fd_counter
            self.fds[fh] = FileHandle(handle=handle, path=relative)

        self.logger.debug("Opened file", path=path, fh=fh)
        return fh

    def read(self, path: str, size: int, offset: int, fh: int) -> bytes:
        """
        Read from an open file.

        Handles with seek() are positioned directly. Other handles are read
        sequentially; a backwards offset reopens the file.
        """
        file_handle = self._get_handle(fh)

        with file_handle.lock:
            try:
                if hasattr(file_handle.handle, "seek"):
                    file_handle.handle.seek(offset)
                else:
                    self._skip_to(file_handle, offset)
                data = file_handle.handle.read(size)
            except Exception as e:
                raise self._fuse_error(e, path)

            file_handle.position = offset + len(data)

        return data

    def _skip_to(self, file_handle: FileHandle, offset: int) -> None:
        if offset < file_handle.position:
            file_handle.handle.close()
            file_handle.handle = self.provider.open(file_handle.path)
            file_handle.position = 0

        while file_handle.position < offset:
            chunk = file_handle.handle.read(min(offset - file_handle.position, 65536))
            if not chunk:
                break
            file_handle.position += len(chunk)

    def release(self, path: str, fh: int) -> int:
        with self.fd_lock:
            file_handle = self.fds.pop(fh, None)

        if file_handle is not None:
            with file_handle.lock:
                file_handle.handle.close()
            self.logger.debug("Released file", path=path, fh=fh)

        return 0

    # =========================================================================
    # FUSE Mutating Operations (always refused)
    # =========================================================================

    def _read_only(self, *args: Any) -> None:
        raise FuseOSError(errno.EROFS)

    chmod = _read_only
    chown = _read_only
    create = _read_only
    link = _read_only
    mkdir = _read_only
    mknod = _read_only
    rename = _read_only
    rmdir = _read_only
    symlink = _read_only
    truncate = _read_only
    unlink = _read_only
    utimens = _read_only
    write = _read_only

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def destroy(self, path: str) -> None:
        """Close every handle still open at unmount."""
        with self.fd_lock:
            handles = list(self.fds.values())
            self.fds.clear()

        for file_handle in handles:
            with file_handle.lock:
                file_handle.handle.close()

    def get_stats(self) -> Dict[str, Any]:
        with self.fd_lock:
            return {"open_files": len(self.fds), "handles_issued": self.fd_counter}
