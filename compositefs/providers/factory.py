"""
CompositeFS Providers: Factory.

Builds providers and composites from configuration dictionaries.

Example:
    >>> composite = LayerFactory.create_composite({
    ...     "tolerance": "best_effort",
    ...     "directory_mode": "overlay",
    ...     "layers": [
    ...         {"type": "dir", "path": "./overrides"},
    ...         {"type": "package", "package": "myapp", "path": "templates"},
    ...     ],
    ... })
"""

from typing import Any, Dict, List

from compositefs.core.composite import CompositeFS
from compositefs.core.constants import ConfigKey, DirectoryMode, LayerType, Tolerance
from compositefs.core.types import Provider
from compositefs.core.validators import validate_config, validate_layer_config
from compositefs.infrastructure.logger import get_logger
from compositefs.providers.directory import DirFS
from compositefs.providers.memory import MemoryFS
from compositefs.providers.package import PackageFS

logger = get_logger("compositefs.factory")


class LayerFactory:
    """Factory functions for providers and composites."""

    @staticmethod
    def create_dir_layer(path: str) -> DirFS:
        return DirFS(path)

    @staticmethod
    def create_package_layer(package: str, path: str = ".") -> PackageFS:
        return PackageFS(package, path)

    @staticmethod
    def create_memory_layer(files: Dict[str, Any]) -> MemoryFS:
        return MemoryFS(files)

    @staticmethod
    def create_layer(layer_config: Dict[str, Any]) -> Provider:
        """
        Create one provider from its configuration.

        Args:
            layer_config: Layer dictionary (see validate_layer_config)

        Returns:
            Provider instance

        Raises:
            ValidationError: If the configuration is invalid
            ModuleNotFoundError: If a package layer names a missing package
        """
        validate_layer_config(layer_config)
        layer_type = LayerType(layer_config[ConfigKey.LAYER_TYPE])

        if layer_type is LayerType.DIR:
            return LayerFactory.create_dir_layer(layer_config[ConfigKey.LAYER_PATH])

        if layer_type is LayerType.PACKAGE:
            return LayerFactory.create_package_layer(
                layer_config[ConfigKey.LAYER_PACKAGE],
                layer_config.get(ConfigKey.LAYER_PATH, "."),
            )

        return LayerFactory.create_memory_layer(layer_config.get(ConfigKey.LAYER_FILES, {}))

    @staticmethod
    def create_layers(layer_configs: List[Dict[str, Any]]) -> List[Provider]:
        return [LayerFactory.create_layer(layer_config) for layer_config in layer_configs]

    @staticmethod
    def create_composite(config: Dict[str, Any]) -> CompositeFS:
        """
        Create a composite from the "compositefs" configuration section.

        Args:
            config: Section with "tolerance", "directory_mode" and "layers"

        Returns:
            CompositeFS with layers in configuration order

        Raises:
            ValidationError: If the configuration is invalid
        """
        validate_config(config)

        layers = LayerFactory.create_layers(config.get(ConfigKey.LAYERS, []))
        tolerance = Tolerance(config.get(ConfigKey.TOLERANCE, Tolerance.STRICT.value))
        directory_mode = DirectoryMode(
            config.get(ConfigKey.DIRECTORY_MODE, DirectoryMode.FIRST_WINS.value)
        )

        logger.info(
            "Composite created",
            layers=len(layers),
            tolerance=tolerance.value,
            directory_mode=directory_mode.value,
        )
        return CompositeFS(layers, tolerance, directory_mode)
