"""
CompositeFS Core: Error Aggregation.

Every failed composite operation produces one CompositeError carrying:
- A dominant classification (ErrorKind.NOT_FOUND or ErrorKind.GENERIC)
- The ordered per-layer causes (LayerFailure), for diagnostics

The not-found variant is also a builtin FileNotFoundError, so callers can
ask "does this path exist anywhere" with a single except clause, and a
composite nested inside another composite is classified correctly.

Example:
    >>> try:
    ...     composite.open("missing.txt")
    ... except FileNotFoundError:
    ...     print("not in any layer")
"""

import errno
from dataclasses import dataclass
from typing import Iterable, List, Optional

from compositefs.core.constants import ErrorCode, ErrorKind, Tolerance
from compositefs.infrastructure.logger import Logger


@dataclass(frozen=True)
class LayerFailure:
    """A failure reported by one layer, tagged with the layer index."""

    index: int
    error: BaseException

    @property
    def not_found(self) -> bool:
        """True if the layer reported that the path does not exist."""
        return is_not_found(self.error)

    def __str__(self) -> str:
        return f"filesystem {self.index}: {self.error}"


def is_not_found(error: BaseException) -> bool:
    """Check whether an error is of the not-found class."""
    return isinstance(error, FileNotFoundError)


class CompositeError(Exception):
    """A composite operation failed in at least one layer for a reason other
    than nonexistence."""

    kind = ErrorKind.GENERIC
    error_code = ErrorCode.DEPENDENCY_ERROR

    def __init__(self, message: str, causes: Optional[Iterable[LayerFailure]] = None):
        """Initialize CompositeError.

        Args:
            message: Error message
            causes: Ordered per-layer failures
        """
        super().__init__(message)
        self.message = message
        self.causes: List[LayerFailure] = list(causes or [])

    @property
    def not_found(self) -> bool:
        """True if every consulted layer reported not-found."""
        return self.kind is ErrorKind.NOT_FOUND

    def __str__(self) -> str:
        return self.message


class CompositeNotFoundError(CompositeError, FileNotFoundError):
    """The path does not exist in any consulted layer."""

    kind = ErrorKind.NOT_FOUND
    error_code = ErrorCode.NOT_FOUND

    def __init__(self, message: str, causes: Optional[Iterable[LayerFailure]] = None):
        super().__init__(message, causes)
        self.errno = errno.ENOENT
        self.strerror = message


class LayerError(CompositeError):
    """Raised under strict tolerance when one layer fails unexpectedly.

    Later layers were never consulted, so the only cause is the failing layer.
    The provider's exception is chained as __cause__.
    """

    def __init__(self, failure: LayerFailure):
        super().__init__(str(failure), [failure])
        self.failure = failure
        self.index = failure.index


def aggregate_error(
    kind: str, path: str, causes: List[LayerFailure], all_not_found: bool
) -> CompositeError:
    """Build the classified error for an operation no layer could satisfy.

    Args:
        kind: What was looked up ("file" or "directory")
        path: Cleaned path of the lookup
        causes: Ordered per-layer failures
        all_not_found: Whether every consulted layer failed with not-found

    Returns:
        CompositeNotFoundError if all_not_found, else a generic CompositeError
    """
    message = f'{kind} "{path}" not found in any filesystem'
    if causes:
        message = f"{message}: " + "; ".join(str(cause) for cause in causes)

    if all_not_found:
        return CompositeNotFoundError(message, causes)
    return CompositeError(message, causes)


class ErrorCollector:
    """Accumulates per-layer outcomes for one composite operation.

    A collector is created fresh for every call and is never shared.

    Attributes:
        path: Cleaned path of the operation
        tolerance: STRICT raises on the first generic failure,
                   BEST_EFFORT records it and lets iteration continue
        failures: Ordered failures recorded so far
        all_not_found: False once any layer succeeded or failed generically
    """

    def __init__(self, path: str, tolerance: Tolerance, logger: Optional[Logger] = None):
        self.path = path
        self.tolerance = tolerance
        self.logger = logger
        self.failures: List[LayerFailure] = []
        self.all_not_found = True

    def record(self, index: int, error: BaseException) -> None:
        """Record a layer failure.

        Args:
            index: Layer index
            error: Exception raised by the layer

        Raises:
            LayerError: Under strict tolerance when the failure is not a
                        not-found failure
        """
        failure = LayerFailure(index, error)

        if failure.not_found:
            self.failures.append(failure)
            if self.logger:
                self.logger.debug("Layer miss", layer=index, path=self.path)
            return

        self.all_not_found = False

        if self.tolerance is Tolerance.STRICT:
            if self.logger:
                self.logger.warning(
                    "Layer failed, aborting", layer=index, path=self.path, error=error
                )
            raise LayerError(failure) from error

        self.failures.append(failure)
        if self.logger:
            self.logger.debug("Layer failed, continuing", layer=index, path=self.path, error=error)

    def mark_found(self) -> None:
        """Record that some layer satisfied part of a merge operation."""
        self.all_not_found = False

    def error(self, kind: str = "file") -> CompositeError:
        """Build the final classified error."""
        return aggregate_error(kind, self.path, self.failures, self.all_not_found)
