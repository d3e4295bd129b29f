"""
CompositeFS Core: Path Utilities.

Provider paths are slash-separated and relative to the provider root.
"." names the root itself.
"""
import posixpath
from typing import List

from compositefs.core.constants import Limits


def clean_path(path: str) -> str:
    """Normalize a path lexically.

    Removes "." segments, resolves ".." against preceding segments and
    collapses repeated separators. An empty result becomes ".".

    Args:
        path: Path to clean

    Returns:
        Cleaned path

    Example:
        >>> clean_path("views/./partials//../home.html")
        'views/home.html'
    """
    if not path:
        return "."

    cleaned = posixpath.normpath(path)

    # normpath keeps a leading "//" (POSIX allows it to be special)
    if cleaned.startswith("//"):
        cleaned = "/" + cleaned.lstrip("/")

    return cleaned


def to_relative(path: str) -> str:
    """Convert an absolute path (as FUSE or a URL hands it over) to a provider path.

    Args:
        path: Path such as "/views/home.html" or "/"

    Returns:
        Relative cleaned path such as "views/home.html" or "."
    """
    cleaned = clean_path(path).lstrip("/")
    return cleaned or "."


def join_path(base: str, name: str) -> str:
    """Join a provider path and a child name."""
    if base in ("", "."):
        return clean_path(name)
    return clean_path(f"{base}/{name}")


def split_path(path: str) -> List[str]:
    """Split a cleaned path into its segments. The root has no segments."""
    cleaned = clean_path(path)
    if cleaned in (".", "/"):
        return []
    return [part for part in cleaned.split("/") if part]


def base_name(path: str) -> str:
    """Return the final segment of a path ("." for the root)."""
    parts = split_path(path)
    return parts[-1] if parts else "."


def is_valid_path(path: str) -> bool:
    """Check that a path is usable as a provider path.

    A valid path is a non-empty string without NUL bytes, within the
    length limits, and does not climb above the root once cleaned.
    """
    if not isinstance(path, str) or not path:
        return False

    if "\0" in path:
        return False

    if len(path) > Limits.MAX_PATH_LENGTH:
        return False

    cleaned = clean_path(path).lstrip("/")
    if cleaned == ".." or cleaned.startswith("../"):
        return False

    return all(len(part) <= Limits.MAX_FILENAME_LENGTH for part in split_path(cleaned))
