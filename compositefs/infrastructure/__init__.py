"""CompositeFS Infrastructure.

Services shared by the composite, its providers and its front ends:
- Logger: Structured logging system
- ConfigManager: Hierarchical configuration (defaults, YAML, environment, CLI)
"""

from .logger import Logger, LogLevel, configure_logging, get_logger, set_global_logger
from .config_manager import ConfigError
from .config_manager import ConfigManager as Config
from .config_manager import ConfigSource

__all__ = [
    # Logger exports
    "Logger",
    "LogLevel",
    "get_logger",
    "set_global_logger",
    "configure_logging",
    # ConfigManager exports
    "ConfigSource",
    "ConfigError",
    "Config",
]
