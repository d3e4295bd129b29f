#!/usr/bin/env python3
"""Hierarchical configuration manager for CompositeFS.

This module provides configuration management with:
- 6-level precedence hierarchy
- YAML configuration files
- Environment variable overrides (COMPOSITEFS_*)
- Validation of the composite section
- Thread-safe operations
- Deep merge of nested sections

Example:
    >>> config = ConfigManager()
    >>> config.load_file("compositefs.yaml")
    >>> config.get("compositefs.tolerance", default="strict")
"""

import os
import threading
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from compositefs.core.constants import DEFAULT_CONFIG, ConfigKey, ErrorCode
from compositefs.core.validators import ValidationError, validate_config

ENV_PREFIX = "COMPOSITEFS_"
ENV_NESTING = "__"


class ConfigSource(Enum):
    """Configuration source precedence levels."""

    COMPILED_DEFAULTS = 1  # Lowest precedence
    SYSTEM_CONFIG = 2
    USER_CONFIG = 3
    ENVIRONMENT = 4
    CLI_ARGS = 5
    RUNTIME = 6  # Highest precedence


class ConfigError(Exception):
    """Configuration error."""

    def __init__(self, message: str, error_code: ErrorCode = ErrorCode.INVALID_INPUT):
        self.message = message
        self.error_code = error_code
        super().__init__(message)


class ConfigManager:
    """Thread-safe hierarchical configuration manager.

    Manages configuration from multiple sources with precedence:
    1. Compiled defaults (lowest)
    2. System config (/etc/compositefs/config.yaml)
    3. User config (~/.config/compositefs/config.yaml or --config)
    4. Environment variables (COMPOSITEFS_*)
    5. CLI arguments
    6. Runtime updates (highest)

    Sections are deep-merged, so a higher source only needs to set the
    keys it overrides. Lists (such as the layer list) are replaced whole.
    """

    SYSTEM_CONFIG_PATH = "/etc/compositefs/config.yaml"
    USER_CONFIG_PATH = "~/.config/compositefs/config.yaml"

    def __init__(self, config_file: Optional[str] = None, load_environment: bool = True):
        """Initialize configuration manager.

        Args:
            config_file: Optional config file to load as USER_CONFIG
            load_environment: Read COMPOSITEFS_* environment variables
        """
        self._config: Dict[ConfigSource, Dict[str, Any]] = {}
        self._lock = threading.RLock()

        self._config[ConfigSource.COMPILED_DEFAULTS] = {ConfigKey.ROOT: _copy(DEFAULT_CONFIG)}

        if config_file:
            self.load_file(config_file)

        if load_environment:
            self._load_environment()

    def load_file(self, file_path: str, source: ConfigSource = ConfigSource.USER_CONFIG) -> None:
        """Load configuration from a YAML file.

        Args:
            file_path: Path to YAML config file
            source: Configuration source level

        Raises:
            ConfigError: If file cannot be loaded or parsed
        """
        path = Path(file_path).expanduser().resolve()

        if not path.exists():
            raise ConfigError(f"Config file not found: {file_path}", ErrorCode.NOT_FOUND)

        try:
            with open(path, "r", encoding="utf-8") as f:
                config_data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"YAML parse error in {file_path}: {e}", ErrorCode.INVALID_INPUT)
        except OSError as e:
            raise ConfigError(f"Error loading config {file_path}: {e}", ErrorCode.INTERNAL_ERROR)

        if not isinstance(config_data, dict):
            raise ConfigError(f"Invalid config format in {file_path}", ErrorCode.INVALID_INPUT)

        with self._lock:
            self._config[source] = config_data

    def load_defaults(self) -> None:
        """Load the system and user config files that exist."""
        for file_path, source in (
            (self.SYSTEM_CONFIG_PATH, ConfigSource.SYSTEM_CONFIG),
            (self.USER_CONFIG_PATH, ConfigSource.USER_CONFIG),
        ):
            if Path(file_path).expanduser().exists():
                self.load_file(file_path, source)

    def load_dict(
        self, config_data: Dict[str, Any], source: ConfigSource = ConfigSource.RUNTIME
    ) -> None:
        """Load configuration from a dictionary.

        Args:
            config_data: Configuration dictionary
            source: Configuration source level
        """
        with self._lock:
            self._config[source] = _copy(config_data)

    def _load_environment(self) -> None:
        """Load configuration from environment variables.

        Format: COMPOSITEFS_<KEY>[__<SUBKEY>...]=value
        Example: COMPOSITEFS_DIRECTORY_MODE=overlay
                 COMPOSITEFS_LOGGING__LEVEL=DEBUG
        """
        env_config: Dict[str, Any] = {}

        for key, value in os.environ.items():
            if not key.startswith(ENV_PREFIX):
                continue

            parts = key[len(ENV_PREFIX):].lower().split(ENV_NESTING)
            if not all(parts):
                continue

            current = env_config
            for part in parts[:-1]:
                current = current.setdefault(part, {})
                if not isinstance(current, dict):
                    break
            else:
                current[parts[-1]] = self._parse_env_value(value)

        if env_config:
            with self._lock:
                self._config[ConfigSource.ENVIRONMENT] = {ConfigKey.ROOT: env_config}

    def _parse_env_value(self, value: str) -> Any:
        """Parse an environment variable value to bool, int, float or str."""
        if value.lower() in ("true", "yes"):
            return True
        if value.lower() in ("false", "no"):
            return False

        try:
            return int(value)
        except ValueError:
            pass

        try:
            return float(value)
        except ValueError:
            pass

        return value

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value by key.

        Args:
            key: Dot-separated key path (e.g., "compositefs.logging.level")
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        with self._lock:
            for source in sorted(self._config.keys(), key=lambda s: s.value, reverse=True):
                value = self._get_nested(self._config[source], key)
                if value is not None:
                    return value

            return default

    def _get_nested(self, config: Dict[str, Any], key: str) -> Optional[Any]:
        current: Any = config
        for part in key.split("."):
            if not isinstance(current, dict) or part not in current:
                return None
            current = current[part]
        return current

    def set(self, key: str, value: Any, source: ConfigSource = ConfigSource.RUNTIME) -> None:
        """Set configuration value.

        Args:
            key: Dot-separated key path
            value: Value to set
            source: Configuration source level
        """
        with self._lock:
            current = self._config.setdefault(source, {})
            parts = key.split(".")
            for part in parts[:-1]:
                current = current.setdefault(part, {})
            current[parts[-1]] = value

    def get_all(self) -> Dict[str, Any]:
        """Get merged configuration from all sources.

        Returns:
            Merged configuration dictionary
        """
        with self._lock:
            merged: Dict[str, Any] = {}
            for source in sorted(self._config.keys(), key=lambda s: s.value):
                merged = self._deep_merge(merged, self._config[source])
            return _copy(merged)

    def get_section(self) -> Dict[str, Any]:
        """Get the merged "compositefs" section."""
        return self.get_all().get(ConfigKey.ROOT, {})

    def _deep_merge(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result

    def validate(self) -> bool:
        """Validate the merged composite section.

        Returns:
            True if valid

        Raises:
            ConfigError: If validation fails
        """
        try:
            return validate_config(self.get_section())
        except ValidationError as e:
            raise ConfigError(str(e), e.error_code)

    def clear(self, source: Optional[ConfigSource] = None) -> None:
        """Clear configuration.

        Args:
            source: Specific source to clear, or None for all except defaults
        """
        with self._lock:
            if source:
                if source in self._config and source != ConfigSource.COMPILED_DEFAULTS:
                    del self._config[source]
            else:
                for s in [s for s in self._config if s != ConfigSource.COMPILED_DEFAULTS]:
                    del self._config[s]


def _copy(data: Dict[str, Any]) -> Dict[str, Any]:
    """Copy nested dictionaries so later updates never touch the original."""
    return {
        k: _copy(v) if isinstance(v, dict) else list(v) if isinstance(v, list) else v
        for k, v in data.items()
    }

