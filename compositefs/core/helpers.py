"""
CompositeFS Core: Single-Provider Helpers.

These functions work on any one provider. Each uses the provider's native
capability when it has one and otherwise emulates it through open():

- stat(): native stat() or open() + handle.stat()
- read_file(): native read_file() or open() + handle.read()
- read_dir(): native read_dir() or open() + handle.read_dir(-1)
- sub(): native sub() or a SubDirFS view rooted at the directory

Handles opened for emulation are always closed before returning.
"""

import errno
from contextlib import closing
from typing import List

from compositefs.core.path_utils import clean_path, is_valid_path, join_path
from compositefs.core.types import (
    DirEntry,
    DirFile,
    File,
    FileInfo,
    Provider,
    ReadDirProvider,
    ReadFileProvider,
    StatProvider,
    SubProvider,
)


def stat(provider: Provider, path: str) -> FileInfo:
    """Get metadata for a path from one provider."""
    if isinstance(provider, StatProvider):
        return provider.stat(path)

    with closing(provider.open(path)) as handle:
        return handle.stat()


def read_file(provider: Provider, path: str) -> bytes:
    """Read a whole file from one provider."""
    if isinstance(provider, ReadFileProvider):
        return provider.read_file(path)

    with closing(provider.open(path)) as handle:
        return handle.read()


def read_dir(provider: Provider, path: str) -> List[DirEntry]:
    """List a directory of one provider.

    Args:
        provider: Filesystem to list
        path: Directory path

    Returns:
        Directory entries in the provider's order

    Raises:
        FileNotFoundError: If the path does not exist
        NotADirectoryError: If the path is not a directory
        OSError: EINVAL if the opened handle cannot list entries
    """
    if isinstance(provider, ReadDirProvider):
        return list(provider.read_dir(path))

    with closing(provider.open(path)) as handle:
        if isinstance(handle, DirFile):
            return list(handle.read_dir(-1))

        if not handle.stat().is_dir:
            raise NotADirectoryError(errno.ENOTDIR, "Not a directory", path)

    raise OSError(errno.EINVAL, "Directory handle cannot list entries", path)


def sub(provider: Provider, path: str) -> Provider:
    """Get a provider rooted at a directory of another provider.

    Args:
        provider: Filesystem to re-root
        path: Directory to use as the new root

    Returns:
        The provider's own sub-filesystem if it supports re-rooting,
        otherwise a SubDirFS view

    Raises:
        OSError: EINVAL if the path is invalid
        FileNotFoundError: If the directory does not exist (emulated case)
        NotADirectoryError: If the path is not a directory (emulated case)
    """
    path = clean_path(path)
    if not is_valid_path(path) or path.startswith("/"):
        raise OSError(errno.EINVAL, "Invalid sub-filesystem root", path)

    if path == ".":
        return provider

    if isinstance(provider, SubProvider):
        return provider.sub(path)

    if not stat(provider, path).is_dir:
        raise NotADirectoryError(errno.ENOTDIR, "Not a directory", path)

    return SubDirFS(provider, path)


class SubDirFS:
    """A view of a provider rooted at one of its directories.

    Paths are resolved relative to the root and may not climb above it.
    """

    def __init__(self, parent: Provider, root: str):
        self.parent = parent
        self.root = clean_path(root)

    def _full_path(self, path: str) -> str:
        path = clean_path(path)
        if path == ".." or path.startswith("../") or path.startswith("/"):
            raise OSError(errno.EINVAL, "Path escapes sub-filesystem root", path)
        return join_path(self.root, path)

    def open(self, path: str) -> File:
        return self.parent.open(self._full_path(path))

    def stat(self, path: str) -> FileInfo:
        return stat(self.parent, self._full_path(path))

    def read_file(self, path: str) -> bytes:
        return read_file(self.parent, self._full_path(path))

    def read_dir(self, path: str) -> List[DirEntry]:
        return read_dir(self.parent, self._full_path(path))

    def sub(self, path: str) -> Provider:
        return sub(self.parent, self._full_path(path))

    def __repr__(self) -> str:
        return f"SubDirFS({self.parent!r}, root='{self.root}')"
