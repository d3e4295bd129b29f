"""CompositeFS Core.

The composite itself and the contracts it is built on:
- Provider protocols and the FileInfo / DirEntry value types
- CompositeFS: priority-ordered resolution across layers
- Error aggregation for lookups that fail in every layer
"""

from .constants import DirectoryMode, ErrorCode, Tolerance
from .types import (
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
from .errors import CompositeError, CompositeNotFoundError, LayerError, LayerFailure
from .composite import CompositeFS, new_best_effort_fs, new_composite_fs, new_overlay_fs

__all__ = [
    "CompositeFS",
    "new_composite_fs",
    "new_best_effort_fs",
    "new_overlay_fs",
    "Tolerance",
    "DirectoryMode",
    "ErrorCode",
    "FileInfo",
    "DirEntry",
    "File",
    "DirFile",
    "Provider",
    "StatProvider",
    "ReadDirProvider",
    "ReadFileProvider",
    "SubProvider",
    "CompositeError",
    "CompositeNotFoundError",
    "LayerError",
    "LayerFailure",
]
