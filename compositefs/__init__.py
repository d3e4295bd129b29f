"""CompositeFS - priority-ordered, read-only filesystem composition.

Layers are consulted in order; the first layer that has a path wins.
Lookups missing from every layer raise CompositeNotFoundError, which is
a FileNotFoundError.

Example:
    >>> from compositefs import DirFS, PackageFS, new_composite_fs
    >>> fs = new_composite_fs(DirFS("./dev"), PackageFS("myapp", "templates"))
    >>> fs.read_file("views/home.html")
"""

from compositefs.core.composite import (
    CompositeFS,
    new_best_effort_fs,
    new_composite_fs,
    new_overlay_fs,
)
from compositefs.core.constants import COMPOSITEFS_VERSION, DirectoryMode, Tolerance
from compositefs.core.errors import CompositeError, CompositeNotFoundError, LayerError, LayerFailure
from compositefs.core.types import DirEntry, FileInfo
from compositefs.providers import DirFS, LayerFactory, MemoryFile, MemoryFS, PackageFS

__version__ = COMPOSITEFS_VERSION

__all__ = [
    "CompositeFS",
    "new_composite_fs",
    "new_best_effort_fs",
    "new_overlay_fs",
    "Tolerance",
    "DirectoryMode",
    "CompositeError",
    "CompositeNotFoundError",
    "LayerError",
    "LayerFailure",
    "FileInfo",
    "DirEntry",
    "DirFS",
    "PackageFS",
    "MemoryFS",
    "MemoryFile",
    "LayerFactory",
    "__version__",
]
