"""
CompositeFS Providers: Bundled Package Resources.

PackageFS exposes resources shipped inside an importable Python package
(including zipped packages) through importlib.resources. It implements
only open() and read_dir(); stat, read_file and sub-rooting go through the
composite's open()-based fallbacks.

Example:
    >>> bundled = PackageFS("myapp", "templates")
    >>> with bundled.open("views/home.html") as handle:
    ...     handle.read()
"""

import stat
from importlib import resources
from importlib.resources.abc import Traversable
from typing import List

from compositefs.core.constants import READONLY_DIR_PERMISSIONS, READONLY_FILE_PERMISSIONS
from compositefs.core.path_utils import base_name, clean_path, split_path
from compositefs.core.types import DirEntry, File, FileInfo
from compositefs.providers.base import (
    BytesFile,
    DirHandle,
    invalid_path,
    not_a_directory,
    not_found,
)


def _dir_info(name: str) -> FileInfo:
    return FileInfo(name=name, size=0, mode=stat.S_IFDIR | READONLY_DIR_PERMISSIONS)


class PackageFS:
    """
    Read-only view of a package's resources.

    Attributes:
        package: Dotted name of the package
        root: Resource directory inside the package ("." for the package itself)
    """

    def __init__(self, package: str, root: str = "."):
        """
        Initialize the provider.

        Args:
            package: Importable package name (e.g., "myapp")
            root: Slash-separated directory inside the package

        Raises:
            ModuleNotFoundError: If the package cannot be imported
        """
        self.package = package
        self.root = clean_path(root)
        self._base: Traversable = resources.files(package)
        for part in split_path(self.root):
            self._base = self._base.joinpath(part)

    def _resource(self, path: str) -> Traversable:
        cleaned = clean_path(path)
        if cleaned.startswith("/") or cleaned == ".." or cleaned.startswith("../"):
            raise invalid_path(path)

        resource = self._base
        for part in split_path(cleaned):
            resource = resource.joinpath(part)

        if not resource.is_file() and not resource.is_dir():
            raise not_found(path)
        return resource

    def open(self, path: str) -> File:
        resource = self._resource(path)
        name = base_name(clean_path(path))

        if resource.is_dir():
            return DirHandle(clean_path(path), _dir_info(name), lambda: self._list(resource))

        data = resource.read_bytes()
        info = FileInfo(name=name, size=len(data), mode=stat.S_IFREG | READONLY_FILE_PERMISSIONS)
        return BytesFile(data, info)

    def read_dir(self, path: str) -> List[DirEntry]:
        resource = self._resource(path)
        if not resource.is_dir():
            raise not_a_directory(path)
        return self._list(resource)

    def _list(self, resource: Traversable) -> List[DirEntry]:
        entries = []
        for child in resource.iterdir():
            if child.name == "__pycache__":
                continue
            if child.is_dir():
                entries.append(DirEntry(name=child.name, is_dir=True, info=_dir_info(child.name)))
            else:
                entries.append(DirEntry(name=child.name, is_dir=False))
        entries.sort(key=lambda entry: entry.name)
        return entries

    def __repr__(self) -> str:
        return f"PackageFS('{self.package}', root='{self.root}')"
