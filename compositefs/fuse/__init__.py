"""CompositeFS FUSE Interface.

Exposes a composite as a read-only FUSE filesystem:
- CompositeFSOperations: FUSE callback implementations

Usage:
    from compositefs import new_composite_fs, DirFS
    from compositefs.fuse import CompositeFSOperations

    ops = CompositeFSOperations(new_composite_fs(DirFS("./dev"), DirFS("./base")))
"""

from compositefs.fuse.operations import CompositeFSOperations, FileHandle

__all__ = [
    "CompositeFSOperations",
    "FileHandle",
]
