"""
CompositeFS Core: Layered Filesystem Resolution.

A CompositeFS presents an ordered list of providers as one read-only
filesystem. Index order is priority order: lower index wins on conflict.

Two policy switches are fixed at construction:
- Tolerance: STRICT aborts on the first failure that is not a not-found
  failure; BEST_EFFORT records it and keeps consulting lower layers
- DirectoryMode: FIRST_WINS returns the first layer's handle when opening
  a directory; OVERLAY synthesizes a handle over the merged entries of
  every layer

read_dir() merges entries across all layers in both modes.

Example:
    >>> dev = DirFS("./overrides")
    >>> bundled = PackageFS("myapp", "templates")
    >>> templates = new_composite_fs(dev, bundled)
    >>> templates.read_file("views/home.html")
"""

from typing import Callable, Iterable, List, Sequence, Set, Tuple, TypeVar, Union

from compositefs.core import helpers
from compositefs.core.constants import DirectoryMode, Tolerance
from compositefs.core.errors import ErrorCollector
from compositefs.core.overlay import OverlayDirFile
from compositefs.core.path_utils import to_relative
from compositefs.core.types import DirEntry, File, FileInfo, Provider, SubProvider
from compositefs.infrastructure.logger import get_logger

T = TypeVar("T")

logger = get_logger("compositefs.composite")


def merge_entries(listings: Iterable[List[DirEntry]]) -> List[DirEntry]:
    """Merge directory listings by name.

    The first listing to contribute a name wins; later duplicates are
    dropped. Entries keep discovery order.
    """
    merged: List[DirEntry] = []
    seen: Set[str] = set()
    for entries in listings:
        _merge_into(merged, seen, entries)
    return merged


def _merge_into(merged: List[DirEntry], seen: Set[str], entries: Iterable[DirEntry]) -> None:
    for entry in entries:
        if entry.name in seen:
            continue
        seen.add(entry.name)
        merged.append(entry)


class CompositeFS:
    """
    Read-only filesystem resolving each operation across ordered layers.

    CompositeFS satisfies every provider protocol itself, so composites can
    be layered inside other composites.

    Attributes:
        layers: Providers in priority order (immutable)
        tolerance: Failure handling policy
        directory_mode: Directory open policy
    """

    def __init__(
        self,
        layers: Sequence[Provider] = (),
        tolerance: Union[Tolerance, str] = Tolerance.STRICT,
        directory_mode: Union[DirectoryMode, str] = DirectoryMode.FIRST_WINS,
    ):
        """
        Initialize the composite.

        Args:
            layers: Providers, highest priority first. The sequence is copied.
            tolerance: Tolerance or its value ("strict", "best_effort")
            directory_mode: DirectoryMode or its value ("first_wins", "overlay")
        """
        self._layers: Tuple[Provider, ...] = tuple(layers)
        self._tolerance = Tolerance(tolerance)
        self._directory_mode = DirectoryMode(directory_mode)

    @property
    def layers(self) -> Tuple[Provider, ...]:
        return self._layers

    @property
    def tolerance(self) -> Tolerance:
        return self._tolerance

    @property
    def directory_mode(self) -> DirectoryMode:
        return self._directory_mode

    # =========================================================================
    # Traversal
    # =========================================================================

    def _collector(self, path: str) -> ErrorCollector:
        return ErrorCollector(path, self._tolerance, logger)

    def _first_success(
        self, path: str, attempt: Callable[[Provider, str], T], kind: str = "file"
    ) -> T:
        """Return the result of the first layer whose attempt succeeds.

        Raises:
            LayerError: Strict tolerance and a layer failed unexpectedly
            CompositeError: No layer succeeded
        """
        collector = self._collector(path)

        for index, provider in enumerate(self._layers):
            try:
                result = attempt(provider, path)
            except Exception as error:
                collector.record(index, error)
                continue

            logger.debug("Resolved", path=path, layer=index)
            return result

        raise collector.error(kind)

    def _consult_all(
        self,
        candidates: Iterable[Tuple[int, Provider]],
        path: str,
        attempt: Callable[[Provider, str], T],
        kind: str = "directory",
    ) -> List[T]:
        """Run an attempt on every candidate layer and keep the successes.

        Raises:
            LayerError: Strict tolerance and a layer failed unexpectedly
            CompositeError: No candidate succeeded
        """
        collector = self._collector(path)
        results: List[T] = []

        for index, provider in candidates:
            try:
                result = attempt(provider, path)
            except Exception as error:
                collector.record(index, error)
                continue

            collector.mark_found()
            results.append(result)

        if not results:
            raise collector.error(kind)

        return results

    # =========================================================================
    # Operations
    # =========================================================================

    def open(self, path: str) -> File:
        """
        Open a path.

        In FIRST_WINS mode the first layer that opens the path wins, whether
        it is a file or a directory. In OVERLAY mode directories are merged
        across layers into an OverlayDirFile.

        Args:
            path: Path inside the composite; a leading "/" is ignored

        Returns:
            Readable handle, owned by the caller

        Raises:
            FileNotFoundError: The path exists in no layer
                               (a CompositeNotFoundError)
            CompositeError: Some layer failed for another reason
        """
        path = to_relative(path)

        if self._directory_mode is DirectoryMode.OVERLAY:
            return self._open_overlay(path)

        return self._first_success(path, lambda provider, name: provider.open(name))

    def stat(self, path: str) -> FileInfo:
        """Get metadata from the first layer that has the path."""
        return self._first_success(to_relative(path), helpers.stat)

    def read_file(self, path: str) -> bytes:
        """Read the whole file from the first layer that has the path."""
        return self._first_success(to_relative(path), helpers.read_file)

    def read_dir(self, path: str) -> List[DirEntry]:
        """
        List a directory merged across every layer.

        Args:
            path: Directory path

        Returns:
            Entries deduplicated by name. On a name collision the entry from
            the lowest-index layer is kept. Order is layer order, then each
            layer's own order.

        Raises:
            FileNotFoundError: No layer has the directory
            CompositeError: No layer listed it and some failed unexpectedly
        """
        path = to_relative(path)
        listings = self._consult_all(enumerate(self._layers), path, helpers.read_dir)
        return merge_entries(listings)

    def sub(self, path: str) -> "CompositeFS":
        """
        Re-root every layer at a directory.

        Layers that cannot be re-rooted natively are left out, as are layers
        where re-rooting failed. The original composite is unchanged.

        Args:
            path: Directory to use as the new root

        Returns:
            New CompositeFS with the same policy

        Raises:
            FileNotFoundError: No layer could be re-rooted and every
                               attempted layer reported not-found
            CompositeError: No layer could be re-rooted otherwise
        """
        path = to_relative(path)
        candidates = [
            (index, provider)
            for index, provider in enumerate(self._layers)
            if isinstance(provider, SubProvider)
        ]
        sub_layers = self._consult_all(candidates, path, lambda provider, name: provider.sub(name))
        return CompositeFS(sub_layers, self._tolerance, self._directory_mode)

    def _open_overlay(self, path: str) -> File:
        collector = self._collector(path)
        found_dir = False
        listed = False
        dir_info = None
        entries: List[DirEntry] = []
        seen: Set[str] = set()

        for index, provider in enumerate(self._layers):
            try:
                handle = provider.open(path)
            except Exception as error:
                collector.record(index, error)
                continue

            try:
                info = handle.stat()
            except Exception as error:
                handle.close()
                collector.record(index, error)
                continue

            if not info.is_dir:
                if found_dir:
                    # A directory in a higher layer masks this file
                    handle.close()
                    continue
                logger.debug("Resolved", path=path, layer=index)
                return handle

            found_dir = True
            collector.mark_found()
            if dir_info is None:
                dir_info = info
            handle.close()

            try:
                layer_entries = helpers.read_dir(provider, path)
            except Exception as error:
                collector.record(index, error)
                continue

            listed = True
            _merge_into(entries, seen, layer_entries)

        if listed:
            logger.debug("Merged directory", path=path, entries=len(entries))
            return OverlayDirFile(path, dir_info, entries)

        raise collector.error("directory" if found_dir else "file")

    def __repr__(self) -> str:
        return (
            f"CompositeFS(layers={len(self._layers)}, "
            f"tolerance={self._tolerance.value}, directory_mode={self._directory_mode.value})"
        )


def new_composite_fs(*layers: Provider) -> CompositeFS:
    """Strict, first-wins composite."""
    return CompositeFS(layers, Tolerance.STRICT, DirectoryMode.FIRST_WINS)


def new_best_effort_fs(*layers: Provider) -> CompositeFS:
    """Best-effort, first-wins composite."""
    return CompositeFS(layers, Tolerance.BEST_EFFORT, DirectoryMode.FIRST_WINS)


def new_overlay_fs(*layers: Provider) -> CompositeFS:
    """Strict composite that merges directories when opening them."""
    return CompositeFS(layers, Tolerance.STRICT, DirectoryMode.OVERLAY)
