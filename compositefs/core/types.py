"""
CompositeFS Core: Provider Protocols and Data Structures.

This module defines the contract every filesystem provider satisfies:
- FileInfo: Immutable file metadata
- DirEntry: One entry of a directory listing
- File / DirFile: Readable handles returned by open()
- Provider: The required open() capability
- StatProvider, ReadDirProvider, ReadFileProvider, SubProvider: Optional
  capabilities, probed per call with isinstance()

Providers do not inherit from anything here. Any object with a matching
method satisfies the corresponding protocol.
"""

import os
import stat
from dataclasses import dataclass
from typing import List, Optional, Protocol, runtime_checkable


@dataclass(frozen=True)
class FileInfo:
    """
    Immutable file metadata.

    Attributes:
        name: Base name of the file (e.g., "home.html")
        size: Size in bytes (0 for directories)
        mode: File mode (type and permission bits)
        mtime: Modification timestamp (seconds since epoch)
    """

    name: str
    size: int
    mode: int
    mtime: float = 0.0

    @classmethod
    def from_stat(cls, name: str, file_stat: os.stat_result) -> "FileInfo":
        """
        Create FileInfo from an os.stat_result.

        Args:
            name: Base name to report
            file_stat: Result of os.stat() / os.fstat()

        Returns:
            FileInfo with size, mode and mtime from the stat result
        """
        return cls(
            name=name,
            size=file_stat.st_size,
            mode=file_stat.st_mode,
            mtime=file_stat.st_mtime,
        )

    @property
    def is_dir(self) -> bool:
        """Check if this is a directory."""
        return stat.S_ISDIR(self.mode)

    @property
    def is_file(self) -> bool:
        """Check if this is a regular file."""
        return stat.S_ISREG(self.mode)

    @property
    def permissions(self) -> int:
        """Permission bits only."""
        return stat.S_IMODE(self.mode)


@dataclass(frozen=True)
class DirEntry:
    """
    One entry in a directory listing.

    The name is a single path segment and is the identity key when
    listings from several layers are merged.
    """

    name: str
    is_dir: bool
    info: Optional[FileInfo] = None


@runtime_checkable
class File(Protocol):
    """Readable handle returned by Provider.open()."""

    def read(self, size: int = -1) -> bytes: ...

    def stat(self) -> FileInfo: ...

    def close(self) -> None: ...


@runtime_checkable
class DirFile(File, Protocol):
    """Handle for an opened directory that can list its entries."""

    def read_dir(self, n: int = -1) -> List[DirEntry]: ...


@runtime_checkable
class Provider(Protocol):
    """A filesystem. Only open() is required."""

    def open(self, path: str) -> File: ...


@runtime_checkable
class StatProvider(Protocol):
    def stat(self, path: str) -> FileInfo: ...


@runtime_checkable
class ReadDirProvider(Protocol):
    def read_dir(self, path: str) -> List[DirEntry]: ...


@runtime_checkable
class ReadFileProvider(Protocol):
    def read_file(self, path: str) -> bytes: ...


@runtime_checkable
class SubProvider(Protocol):
    def sub(self, path: str) -> Provider: ...
