"""CompositeFS Providers.

Ready-made layers for a composite:
- DirFS: a directory on the local filesystem
- PackageFS: resources bundled inside an installed Python package
- MemoryFS: an in-memory tree, handy for overrides and tests
- LayerFactory: build layers and composites from configuration
"""

from .directory import DirFS
from .factory import LayerFactory
from .memory import MemoryFile, MemoryFS
from .package import PackageFS

__all__ = [
    "DirFS",
    "PackageFS",
    "MemoryFS",
    "MemoryFile",
    "LayerFactory",
]
