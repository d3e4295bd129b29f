#!/usr/bin/env python3
"""Mount entry point for CompositeFS.

This module handles:
- Building the composite from the merged configuration
- FUSE filesystem mounting (always read-only)
- Signal handling for graceful shutdown
- Cleanup on exit

Example:
    >>> from compositefs.main import run_mount
    >>> run_mount(args, config_manager, logger)
"""

import argparse
import signal
import sys
import threading
from typing import Any, Dict, Optional

from fuse import FUSE

from compositefs.core.composite import CompositeFS
from compositefs.fuse.operations import CompositeFSOperations
from compositefs.infrastructure.config_manager import ConfigManager
from compositefs.infrastructure.logger import Logger
from compositefs.providers.factory import LayerFactory


class CompositeFSMain:
    """
    Mount controller for CompositeFS.

    Handles composite construction, FUSE mounting, and shutdown.
    """

    def __init__(self, args: argparse.Namespace, config: ConfigManager, logger: Logger):
        """
        Initialize mount controller.

        Args:
            args: Parsed command-line arguments (uses mount, foreground,
                  allow_other, fuse_options)
            config: Configuration manager holding the merged configuration
            logger: Logger instance
        """
        self.args = args
        self.config = config
        self.logger = logger
        self.shutdown_event = threading.Event()

        self.composite: Optional[CompositeFS] = None
        self.fuse_ops: Optional[CompositeFSOperations] = None

    def initialize_components(self) -> None:
        """
        Build the composite and its FUSE adapter.

        Raises:
            ConfigError: If the merged configuration is invalid
        """
        self.logger.info("Initializing components...")

        self.config.validate()
        self.composite = LayerFactory.create_composite(self.config.get_section())
        self.fuse_ops = CompositeFSOperations(self.composite)

        self.logger.info("All components initialized successfully")

    def setup_signal_handlers(self) -> None:
        """
        Setup signal handlers for graceful shutdown.

        Handles:
        - SIGTERM: Graceful shutdown
        - SIGINT: Graceful shutdown (Ctrl+C)
        """

        def signal_handler(signum, frame):
            sig_name = signal.Signals(signum).name
            self.logger.info("Received signal, shutting down", signal=sig_name)
            self.shutdown_event.set()

        signal.signal(signal.SIGTERM, signal_handler)
        signal.signal(signal.SIGINT, signal_handler)

        self.logger.debug("Signal handlers registered")

    def mount_filesystem(self) -> int:
        """
        Mount the FUSE filesystem.

        Returns:
            Exit code (0 for success, non-zero for failure)
        """
        mount_point = self.args.mount
        if self.shutdown_event.is_set():
            self.logger.info("Shutdown requested before mount, skipping", mount=mount_point)
            return 0

        layers = len(self.composite.layers) if self.composite else 0

        self.logger.info("Mounting CompositeFS", mount=mount_point, layers=layers)

        try:
            # Blocks until unmount
            FUSE(
                self.fuse_ops,
                mount_point,
                foreground=self.args.foreground,
                **self._build_fuse_options(),
            )

            self.logger.info("FUSE unmounted successfully")
            return 0

        except RuntimeError as e:
            self.logger.exception("FUSE mount failed", e, mount=mount_point)
            return 1

    def _build_fuse_options(self) -> Dict[str, Any]:
        """
        Build FUSE mount options dictionary.

        Returns:
            Dictionary of FUSE options
        """
        options: Dict[str, Any] = {"ro": True}

        if getattr(self.args, "allow_other", False):
            options["allow_other"] = True

        for opt in getattr(self.args, "fuse_options", None) or []:
            if "=" in opt:
                key, value = opt.split("=", 1)
                options[key] = value
            else:
                options[opt] = True

        # The mount is read-only whatever was passed
        options["ro"] = True
        options.pop("rw", None)

        return options

    def cleanup(self) -> None:
        """Release open handles and log final statistics."""
        self.logger.info("Cleaning up...")

        if self.fuse_ops:
            self.logger.info("Final statistics", **self.fuse_ops.get_stats())
            self.fuse_ops.destroy("/")

        self.logger.info("Cleanup complete")

    def run(self) -> int:
        """
        Run the mount until the filesystem is unmounted.

        Returns:
            Exit code (0 for success, non-zero for failure)
        """
        try:
            self.setup_signal_handlers()
            self.initialize_components()
            return self.mount_filesystem()

        except KeyboardInterrupt:
            self.logger.info("Interrupted by user")
            return 130

        finally:
            self.cleanup()


def run_mount(args: argparse.Namespace, config: ConfigManager, logger: Logger) -> int:
    """
    Mount a composite described by configuration.

    Args:
        args: Parsed command-line arguments
        config: Configuration manager
        logger: Logger instance

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    return CompositeFSMain(args, config, logger).run()


def main():
    """Entry point when run as a standalone script."""
    from compositefs.cli import main as cli_main

    return cli_main()


if __name__ == "__main__":
    sys.exit(main())
