"""
CompositeFS Core: Constants and Type Definitions

This module provides system-wide constants, error codes, resolution policy
flags and default configuration values.
"""
from enum import Enum, IntEnum

# Version information
COMPOSITEFS_VERSION = "1.0.0"


# Error codes
class ErrorCode(IntEnum):
    """Standardized error codes for CompositeFS operations."""

    INVALID_INPUT = 1  # Bad path, invalid configuration
    NOT_FOUND = 2  # File or resource doesn't exist in any layer
    DEPENDENCY_ERROR = 5  # A provider failed for a reason other than nonexistence
    INTERNAL_ERROR = 6  # Bug in CompositeFS


class Tolerance(Enum):
    """How a non-not-found failure from one layer is handled."""

    STRICT = "strict"  # Abort the whole operation immediately
    BEST_EFFORT = "best_effort"  # Record the failure and keep consulting layers


class DirectoryMode(Enum):
    """How opening a directory path resolves across layers."""

    FIRST_WINS = "first_wins"  # Return the first layer's handle
    OVERLAY = "overlay"  # Synthesize a merged directory handle


class ErrorKind(Enum):
    """Dominant classification of an aggregated failure."""

    NOT_FOUND = "not_found"
    GENERIC = "generic"


class LayerType(Enum):
    """Provider types that can be built from configuration."""

    DIR = "dir"  # OS directory
    MEMORY = "memory"  # In-memory files
    PACKAGE = "package"  # Bundled package resources


class Limits:
    """Path limits."""

    MAX_PATH_LENGTH = 4096
    MAX_FILENAME_LENGTH = 255


# Permissions reported for directories synthesized by the overlay
SYNTHETIC_DIR_PERMISSIONS = 0o555

# Permissions reported by read-only providers without OS metadata
READONLY_FILE_PERMISSIONS = 0o444
READONLY_DIR_PERMISSIONS = 0o555


# Configuration keys
class ConfigKey:
    """Configuration key constants."""

    ROOT = "compositefs"
    TOLERANCE = "tolerance"
    DIRECTORY_MODE = "directory_mode"
    LAYERS = "layers"
    LOGGING = "logging"

    # Layer configuration
    LAYER_TYPE = "type"
    LAYER_PATH = "path"
    LAYER_PACKAGE = "package"
    LAYER_FILES = "files"
    LAYER_NAME = "name"


# Default configuration values
DEFAULT_CONFIG = {
    ConfigKey.TOLERANCE: Tolerance.STRICT.value,
    ConfigKey.DIRECTORY_MODE: DirectoryMode.FIRST_WINS.value,
    ConfigKey.LAYERS: [],
    ConfigKey.LOGGING: {
        "level": "INFO",
        "file": None,
    },
}
