#!/usr/bin/env python3
"""Command-line interface for CompositeFS.

This module provides the CLI for inspecting and mounting composites:
- Argument parsing and validation
- Configuration loading (YAML file, environment, command line)
- cat / ls / stat against the composite
- Read-only FUSE mounting

Example:
    >>> from compositefs.cli import parse_arguments
    >>> args = parse_arguments(['--layer', './dev', '--layer', './base', 'ls', 'views'])
"""

import argparse
import os
import stat as stat_module
import sys
from datetime import datetime
from pathlib import Path
from typing import List, Optional, TextIO

from compositefs.core import helpers
from compositefs.core.composite import CompositeFS
from compositefs.core.constants import (
    COMPOSITEFS_VERSION,
    ConfigKey,
    DirectoryMode,
    LayerType,
    Tolerance,
)
from compositefs.core.errors import CompositeError
from compositefs.core.validators import ValidationError
from compositefs.infrastructure.config_manager import ConfigError, ConfigManager, ConfigSource
from compositefs.infrastructure.logger import Logger, configure_logging, get_logger
from compositefs.providers.factory import LayerFactory

DESCRIPTION = "CompositeFS - Priority-ordered read-only filesystem composition"


class CLIError(Exception):
    """Exception raised for CLI-related errors."""

    pass


def parse_arguments(args: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Args:
        args: Argument list to parse (defaults to sys.argv[1:])

    Returns:
        Parsed arguments namespace

    Raises:
        SystemExit: On invalid arguments or --help/--version
        CLIError: If validation fails
    """
    parser = argparse.ArgumentParser(
        prog="compositefs",
        description=DESCRIPTION,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Show a file, preferring ./dev over ./base
  compositefs --layer ./dev --layer ./base cat views/home.html

  # List a directory merged across all layers
  compositefs --layer ./dev --layer ./base --overlay ls views

  # Mount layers from a configuration file
  compositefs --config compositefs.yaml mount /mnt/templates --foreground
        """,
    )

    parser.add_argument(
        "-v",
        "--version",
        action="version",
        version=f"%(prog)s {COMPOSITEFS_VERSION}",
    )

    parser.add_argument(
        "-c",
        "--config",
        metavar="FILE",
        type=str,
        help="Configuration file path (YAML format)",
    )

    # Composite options
    fs_group = parser.add_argument_group("composite options")

    fs_group.add_argument(
        "-l",
        "--layer",
        metavar="DIR",
        action="append",
        dest="layers",
        help="Directory layer, highest priority first (can be specified multiple times)",
    )

    fs_group.add_argument(
        "--best-effort",
        action="store_true",
        help="Skip failing layers instead of aborting",
    )

    fs_group.add_argument(
        "--overlay",
        action="store_true",
        help="Merge directory listings across layers when opening directories",
    )

    # Logging options
    log_group = parser.add_argument_group("logging options")

    log_group.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    log_group.add_argument(
        "--log-file",
        metavar="FILE",
        type=str,
        help="Also write logs to this file",
    )

    commands = parser.add_subparsers(dest="command", metavar="COMMAND")
    commands.required = True

    cat_parser = commands.add_parser("cat", help="Print a file")
    cat_parser.add_argument("path", help="File path inside the composite")

    ls_parser = commands.add_parser("ls", help="List a directory")
    ls_parser.add_argument("path", nargs="?", default=".", help="Directory path (default: root)")

    stat_parser = commands.add_parser("stat", help="Show file metadata")
    stat_parser.add_argument("path", help="Path inside the composite")

    mount_parser = commands.add_parser("mount", help="Mount the composite read-only via FUSE")
    mount_parser.add_argument("mount", metavar="MOUNTPOINT", help="Mount point directory")
    mount_parser.add_argument(
        "--foreground",
        action="store_true",
        help="Run in foreground (don't daemonize)",
    )
    mount_parser.add_argument(
        "--allow-other",
        action="store_true",
        help="Allow other users to access the filesystem",
    )
    mount_parser.add_argument(
        "--fuse-opt",
        metavar="OPT",
        action="append",
        dest="fuse_options",
        help="Additional FUSE options (can be specified multiple times)",
    )

    parsed = parser.parse_args(args)

    _validate_arguments(parsed)

    return parsed


def _validate_arguments(args: argparse.Namespace) -> None:
    """
    Validate parsed arguments.

    Args:
        args: Parsed arguments namespace

    Raises:
        CLIError: If validation fails
    """
    if not args.config and not args.layers:
        raise CLIError(
            "Either --config or --layer must be specified\n" "Use --help for usage information"
        )

    for layer in args.layers or []:
        layer_path = Path(layer)

        if not layer_path.exists():
            raise CLIError(f"Layer directory does not exist: {layer}")

        if not layer_path.is_dir():
            raise CLIError(f"Layer is not a directory: {layer}")

    if args.config:
        config_path = Path(args.config)

        if not config_path.exists():
            raise CLIError(f"Configuration file does not exist: {args.config}")

        if not config_path.is_file():
            raise CLIError(f"Configuration path is not a file: {args.config}")

    if args.command == "mount":
        mount_path = Path(args.mount)

        if not mount_path.exists():
            raise CLIError(f"Mount point does not exist: {args.mount}")

        if not mount_path.is_dir():
            raise CLIError(f"Mount point is not a directory: {args.mount}")

        if list(mount_path.iterdir()):
            raise CLIError(f"Mount point is not empty: {args.mount}")


def build_config(args: argparse.Namespace) -> ConfigManager:
    """
    Build the configuration manager from config files, environment and arguments.

    System and user config files are read when present; --config takes the
    place of the user file.

    Command-line layers replace any configured layer list; flags only
    override the policy they name.

    Args:
        args: Parsed arguments namespace

    Returns:
        Configuration manager with CLI_ARGS applied

    Raises:
        CLIError: If the configuration file cannot be loaded
    """
    try:
        config = ConfigManager()
        config.load_defaults()
        if args.config:
            config.load_file(args.config)
    except ConfigError as e:
        raise CLIError(str(e))

    root = ConfigKey.ROOT

    if args.layers:
        layers = [
            {
                ConfigKey.LAYER_TYPE: LayerType.DIR.value,
                ConfigKey.LAYER_PATH: os.path.abspath(layer),
            }
            for layer in args.layers
        ]
        config.set(f"{root}.{ConfigKey.LAYERS}", layers, ConfigSource.CLI_ARGS)

    if args.best_effort:
        config.set(
            f"{root}.{ConfigKey.TOLERANCE}", Tolerance.BEST_EFFORT.value, ConfigSource.CLI_ARGS
        )

    if args.overlay:
        config.set(
            f"{root}.{ConfigKey.DIRECTORY_MODE}", DirectoryMode.OVERLAY.value, ConfigSource.CLI_ARGS
        )

    if args.debug:
        config.set(f"{root}.{ConfigKey.LOGGING}.level", "DEBUG", ConfigSource.CLI_ARGS)

    if args.log_file:
        config.set(f"{root}.{ConfigKey.LOGGING}.file", args.log_file, ConfigSource.CLI_ARGS)

    try:
        config.validate()
    except ConfigError as e:
        raise CLIError(f"Invalid configuration: {e}")

    return config


def setup_logging(config: ConfigManager) -> Logger:
    """
    Setup logging from the merged configuration.

    Args:
        config: Configuration manager

    Returns:
        Configured CLI logger
    """
    root = ConfigKey.ROOT
    level = config.get(f"{root}.{ConfigKey.LOGGING}.level", "INFO")
    log_file = config.get(f"{root}.{ConfigKey.LOGGING}.file")

    logger = get_logger("compositefs.cli")
    configure_logging(level, log_file)

    return logger


def build_composite(config: ConfigManager) -> CompositeFS:
    """Create the composite described by the configuration."""
    try:
        return LayerFactory.create_composite(config.get_section())
    except (ValidationError, ModuleNotFoundError) as e:
        raise CLIError(f"Cannot build composite: {e}")


def cmd_cat(composite: CompositeFS, path: str, out: TextIO) -> int:
    data = helpers.read_file(composite, path)
    out.flush()
    buffer = getattr(out, "buffer", None)
    if buffer is not None:
        buffer.write(data)
        buffer.flush()
    else:
        out.write(data.decode("utf-8", errors="replace"))
    return 0


def cmd_ls(composite: CompositeFS, path: str, out: TextIO) -> int:
    """Print one entry per line; directories end with "/"."""
    for entry in helpers.read_dir(composite, path):
        out.write(f"{entry.name}/\n" if entry.is_dir else f"{entry.name}\n")
    return 0


def cmd_stat(composite: CompositeFS, path: str, out: TextIO) -> int:
    info = helpers.stat(composite, path)
    kind = "directory" if info.is_dir else "regular file"
    modified = datetime.fromtimestamp(info.mtime).isoformat(sep=" ", timespec="seconds")

    out.write(f"  Name: {info.name}\n")
    out.write(f"  Type: {kind}\n")
    out.write(f"  Size: {info.size}\n")
    out.write(f"  Mode: {stat_module.filemode(info.mode)} ({info.permissions:o})\n")
    out.write(f"Modify: {modified}\n")
    return 0


def run_command(
    args: argparse.Namespace, config: ConfigManager, logger: Logger, out: TextIO
) -> int:
    """
    Dispatch a parsed command.

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    if args.command == "mount":
        from compositefs.main import run_mount

        return run_mount(args, config, logger)

    composite = build_composite(config)
    logger.debug("Running command", command=args.command, path=args.path)

    try:
        if args.command == "cat":
            return cmd_cat(composite, args.path, out)
        if args.command == "ls":
            return cmd_ls(composite, args.path, out)
        return cmd_stat(composite, args.path, out)
    except (OSError, CompositeError) as e:
        raise CLIError(f"{args.command}: {e}")


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point.

    Handles argument parsing, configuration and logging setup, then
    runs the requested command.
    """
    try:
        args = parse_arguments(argv)
        config = build_config(args)
        logger = setup_logging(config)

        return run_command(args, config, logger, sys.stdout)

    except CLIError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    except KeyboardInterrupt:
        print("\nInterrupted by user", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())
