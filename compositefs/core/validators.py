"""
CompositeFS Core: Input Validators.

This module validates configuration dictionaries describing a composite:
its resolution policy, its layers, and its logging settings.
"""
import re
from typing import Any, Dict

from compositefs.core.constants import ConfigKey, DirectoryMode, ErrorCode, LayerType, Tolerance
from compositefs.core.path_utils import is_valid_path

_PACKAGE_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)*$")
_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ValidationError(Exception):
    """Base exception for validation errors."""

    def __init__(self, message: str, error_code: ErrorCode = ErrorCode.INVALID_INPUT):
        """Initialize ValidationError.

        Args:
            message: Error message
            error_code: Associated error code
        """
        super().__init__(message)
        self.error_code = error_code


def validate_config(config: Dict[str, Any]) -> bool:
    """Validate a CompositeFS configuration section.

    Args:
        config: The dictionary found under the "compositefs" key

    Returns:
        True if valid

    Raises:
        ValidationError: If configuration is invalid
    """
    if not isinstance(config, dict):
        raise ValidationError("Configuration must be a dictionary")

    if ConfigKey.TOLERANCE in config:
        validate_tolerance(config[ConfigKey.TOLERANCE])

    if ConfigKey.DIRECTORY_MODE in config:
        validate_directory_mode(config[ConfigKey.DIRECTORY_MODE])

    if ConfigKey.LAYERS in config:
        layers = config[ConfigKey.LAYERS]
        if not isinstance(layers, list):
            raise ValidationError("Layers must be a list")

        for i, layer in enumerate(layers):
            try:
                validate_layer_config(layer)
            except ValidationError as e:
                raise ValidationError(f"Invalid layer configuration at index {i}: {e}")

    if ConfigKey.LOGGING in config:
        validate_logging_config(config[ConfigKey.LOGGING])

    return True


def validate_tolerance(value: Any) -> bool:
    try:
        Tolerance(value)
    except ValueError:
        valid = [t.value for t in Tolerance]
        raise ValidationError(f"Invalid tolerance: {value}. Must be one of {valid}")
    return True


def validate_directory_mode(value: Any) -> bool:
    try:
        DirectoryMode(value)
    except ValueError:
        valid = [m.value for m in DirectoryMode]
        raise ValidationError(f"Invalid directory mode: {value}. Must be one of {valid}")
    return True


def validate_layer_config(layer: Dict[str, Any]) -> bool:
    """Validate one layer description.

    Supported shapes:
        {"type": "dir", "path": "./overrides"}
        {"type": "package", "package": "myapp", "path": "templates"}
        {"type": "memory", "files": {"views/home.html": "..."}}

    Args:
        layer: Layer configuration dictionary

    Returns:
        True if valid

    Raises:
        ValidationError: If the layer is invalid
    """
    if not isinstance(layer, dict):
        raise ValidationError("Layer must be a dictionary")

    if ConfigKey.LAYER_TYPE not in layer:
        raise ValidationError("Layer must have 'type' field")

    try:
        layer_type = LayerType(layer[ConfigKey.LAYER_TYPE])
    except ValueError:
        valid = [t.value for t in LayerType]
        raise ValidationError(
            f"Invalid layer type: {layer[ConfigKey.LAYER_TYPE]}. Must be one of {valid}"
        )

    if layer_type is LayerType.DIR:
        if ConfigKey.LAYER_PATH not in layer:
            raise ValidationError("Directory layer must have 'path' field")
        validate_path(layer[ConfigKey.LAYER_PATH], allow_absolute=True)

    elif layer_type is LayerType.PACKAGE:
        package = layer.get(ConfigKey.LAYER_PACKAGE)
        if not isinstance(package, str) or not _PACKAGE_NAME.match(package):
            raise ValidationError(f"Invalid package name: {package}")
        if ConfigKey.LAYER_PATH in layer:
            validate_path(layer[ConfigKey.LAYER_PATH])

    elif layer_type is LayerType.MEMORY:
        files = layer.get(ConfigKey.LAYER_FILES, {})
        if not isinstance(files, dict):
            raise ValidationError("Memory layer 'files' must be a dictionary")
        for path, content in files.items():
            validate_path(path)
            if not isinstance(content, (str, bytes)):
                raise ValidationError(f"Memory file content must be text or bytes: {path}")

    if ConfigKey.LAYER_NAME in layer and not isinstance(layer[ConfigKey.LAYER_NAME], str):
        raise ValidationError(f"Layer name must be a string: {layer[ConfigKey.LAYER_NAME]}")

    return True


def validate_path(path: Any, allow_absolute: bool = False) -> bool:
    """Validate a path from configuration.

    Args:
        path: Path to validate
        allow_absolute: Accept absolute OS paths (directory layers)

    Returns:
        True if valid

    Raises:
        ValidationError: If the path is invalid
    """
    if not isinstance(path, str):
        raise ValidationError(f"Path must be a string: {path}")

    if not allow_absolute and path.startswith("/"):
        raise ValidationError(f"Path must be relative: {path}")

    if allow_absolute:
        if not path or "\0" in path:
            raise ValidationError(f"Invalid path: {path!r}")
        return True

    if not is_valid_path(path):
        raise ValidationError(f"Invalid path: {path!r}")

    return True


def validate_logging_config(logging_config: Any) -> bool:
    if not isinstance(logging_config, dict):
        raise ValidationError("Logging configuration must be a dictionary")

    level = logging_config.get("level", "INFO")
    if not isinstance(level, str) or level.upper() not in _LOG_LEVELS:
        raise ValidationError(f"Invalid log level: {level}. Must be one of {list(_LOG_LEVELS)}")

    log_file = logging_config.get("file")
    if log_file is not None and not isinstance(log_file, str):
        raise ValidationError(f"Log file must be a string: {log_file}")

    return True
