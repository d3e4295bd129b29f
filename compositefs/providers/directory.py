"""
CompositeFS Providers: OS Directory.

DirFS exposes an operating system directory tree, read-only, with
provider-style relative paths. Symlinks are followed by the OS.
"""

import os
from pathlib import Path
from typing import List, Union

from compositefs.core.path_utils import base_name, clean_path
from compositefs.core.types import DirEntry, File, FileInfo
from compositefs.providers.base import (
    DirHandle,
    StreamFile,
    invalid_path,
    not_a_directory,
    not_found,
)


class DirFS:
    """
    Read-only view of an OS directory.

    Attributes:
        root: Absolute path of the directory this provider exposes
    """

    def __init__(self, root: Union[str, Path]):
        """
        Initialize the provider.

        Args:
            root: Directory to expose. It does not have to exist yet;
                  lookups fail with FileNotFoundError until it does.
        """
        self.root = os.path.abspath(os.fspath(root))

    def _real_path(self, path: str) -> str:
        cleaned = clean_path(path)
        if cleaned.startswith("/") or cleaned == ".." or cleaned.startswith("../"):
            raise invalid_path(path)
        if cleaned == ".":
            return self.root
        return os.path.join(self.root, *cleaned.split("/"))

    def open(self, path: str) -> File:
        real_path = self._real_path(path)
        info = FileInfo.from_stat(base_name(clean_path(path)), os.stat(real_path))

        if info.is_dir:
            return DirHandle(clean_path(path), info, lambda: self._list(real_path))

        return StreamFile(open(real_path, "rb"), info)

    def stat(self, path: str) -> FileInfo:
        real_path = self._real_path(path)
        return FileInfo.from_stat(base_name(clean_path(path)), os.stat(real_path))

    def read_file(self, path: str) -> bytes:
        return Path(self._real_path(path)).read_bytes()

    def read_dir(self, path: str) -> List[DirEntry]:
        return self._list(self._real_path(path))

    def _list(self, real_path: str) -> List[DirEntry]:
        entries = []
        with os.scandir(real_path) as it:
            for dir_entry in it:
                try:
                    info = FileInfo.from_stat(dir_entry.name, dir_entry.stat())
                except FileNotFoundError:
                    # Dangling symlink or removed since scandir() saw it
                    info = None
                is_dir = info.is_dir if info else False
                entries.append(DirEntry(name=dir_entry.name, is_dir=is_dir, info=info))
        entries.sort(key=lambda entry: entry.name)
        return entries

    def sub(self, path: str) -> "DirFS":
        """Get a DirFS rooted at a subdirectory.

        Raises:
            FileNotFoundError: If the directory does not exist
            NotADirectoryError: If the path is not a directory
        """
        real_path = self._real_path(path)
        if not os.path.isdir(real_path):
            if os.path.exists(real_path):
                raise not_a_directory(path)
            raise not_found(path)
        return DirFS(real_path)

    def __repr__(self) -> str:
        return f"DirFS('{self.root}')"
