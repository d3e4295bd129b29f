"""
CompositeFS Core: Synthetic Overlay Directory Handle.

When a composite in overlay mode opens a path that is a directory in at
least one layer, it returns an OverlayDirFile holding the merged,
deduplicated entries of every layer's directory.
"""

import errno
import stat
from typing import Iterator, List, Optional

from compositefs.core.constants import SYNTHETIC_DIR_PERMISSIONS
from compositefs.core.path_utils import base_name
from compositefs.core.types import DirEntry, FileInfo


def synthetic_dir_info(path: str) -> FileInfo:
    """Metadata for a directory that has no layer-provided metadata."""
    return FileInfo(
        name=base_name(path),
        size=0,
        mode=stat.S_IFDIR | SYNTHETIC_DIR_PERMISSIONS,
        mtime=0.0,
    )


class OverlayDirFile:
    """Read-only directory handle over merged entries.

    The read cursor belongs to this handle only and advances monotonically.
    To list again from the start, open the directory again.

    Attributes:
        path: Cleaned path the handle was opened with
        info: Metadata of the highest-priority directory, if any
    """

    def __init__(self, path: str, info: Optional[FileInfo], entries: List[DirEntry]):
        self.path = path
        self.info = info
        self._entries = list(entries)
        self._pos = 0

    def stat(self) -> FileInfo:
        if self.info is not None:
            return self.info
        return synthetic_dir_info(self.path)

    def read(self, size: int = -1) -> bytes:
        raise IsADirectoryError(errno.EISDIR, "Is a directory", self.path)

    def read_dir(self, n: int = -1) -> List[DirEntry]:
        """Read directory entries.

        Args:
            n: Maximum number of entries to return. n <= 0 returns every
               remaining entry.

        Returns:
            Up to n entries; an empty list once the cursor reached the end
        """
        if n <= 0:
            end = len(self._entries)
        else:
            end = min(self._pos + n, len(self._entries))

        entries = self._entries[self._pos:end]
        self._pos = end
        return entries

    @property
    def exhausted(self) -> bool:
        """True once every entry has been returned."""
        return self._pos >= len(self._entries)

    def close(self) -> None:
        pass

    def __iter__(self) -> Iterator[DirEntry]:
        while not self.exhausted:
            yield from self.read_dir(1)

    def __enter__(self) -> "OverlayDirFile":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"OverlayDirFile(path='{self.path}', entries={len(self._entries)})"
