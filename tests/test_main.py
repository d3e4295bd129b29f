#!/usr/bin/env python3
"""Tests for the mount controller."""

import argparse
import signal
from unittest.mock import MagicMock, patch

import pytest

try:
    import fuse  # noqa: F401
except (ImportError, OSError) as e:
    pytest.skip(f"FUSE not available: {e}", allow_module_level=True)

from compositefs.core.constants import DirectoryMode
from compositefs.fuse.operations import CompositeFSOperations
from compositefs.infrastructure.config_manager import ConfigError, ConfigManager, ConfigSource
from compositefs.infrastructure.logger import get_logger
from compositefs.main import CompositeFSMain, run_mount


@pytest.fixture
def config(sample_config):
    manager = ConfigManager(load_environment=False)
    manager.load_dict(sample_config, ConfigSource.CLI_ARGS)
    return manager


@pytest.fixture
def args(mount_dir):
    return argparse.Namespace(mount=str(mount_dir), foreground=True, allow_other=False, fuse_options=None)


@pytest.fixture
def controller(args, config):
    return CompositeFSMain(args, config, get_logger("compositefs.test"))


class TestInitialize:
    def test_builds_composite_and_operations(self, controller):
        controller.initialize_components()

        assert len(controller.composite.layers) == 3
        assert controller.composite.directory_mode is DirectoryMode.OVERLAY
        assert isinstance(controller.fuse_ops, CompositeFSOperations)
        assert controller.fuse_ops.provider is controller.composite

    def test_invalid_configuration(self, args):
        config = ConfigManager(load_environment=False)
        config.set("compositefs.tolerance", "sometimes")

        with pytest.raises(ConfigError):
            CompositeFSMain(args, config, get_logger("compositefs.test")).initialize_components()


class TestFuseOptions:
    def test_always_read_only(self, controller):
        controller.args.fuse_options = ["rw", "fsname=templates", "default_permissions"]

        options = controller._build_fuse_options()

        assert options == {"ro": True, "fsname": "templates", "default_permissions": True}

    def test_allow_other(self, controller):
        controller.args.allow_other = True
        assert controller._build_fuse_options() == {"ro": True, "allow_other": True}


class TestRun:
    """Tests for the mount lifecycle with FUSE mocked out."""

    @patch("compositefs.main.signal.signal")
    @patch("compositefs.main.FUSE")
    def test_mount(self, mock_fuse, mock_signal, controller, args):
        assert controller.run() == 0

        mock_fuse.assert_called_once_with(controller.fuse_ops, args.mount, foreground=True, ro=True)
        registered = [call_args[0][0] for call_args in mock_signal.call_args_list]
        assert registered == [signal.SIGTERM, signal.SIGINT]

    @patch("compositefs.main.signal.signal")
    @patch("compositefs.main.FUSE", side_effect=RuntimeError("mount failed"))
    def test_mount_failure(self, mock_fuse, mock_signal, controller):
        assert controller.run() == 1

    @patch("compositefs.main.signal.signal")
    @patch("compositefs.main.FUSE", side_effect=KeyboardInterrupt)
    def test_interrupted(self, mock_fuse, mock_signal, controller):
        assert controller.run() == 130

    @patch("compositefs.main.signal.signal")
    @patch("compositefs.main.FUSE")
    def test_cleanup_releases_handles(self, mock_fuse, mock_signal, controller):
        def mounted(ops, mount, **options):
            ops.open("/views/home.html", 0)

        mock_fuse.side_effect = mounted

        controller.run()

        assert controller.fuse_ops.get_stats()["open_files"] == 0

    def test_signal_handler_sets_shutdown(self, controller):
        with patch("compositefs.main.signal.signal") as mock_signal:
            controller.setup_signal_handlers()

        handler = mock_signal.call_args_list[0][0][1]
        handler(signal.SIGTERM, None)

        assert controller.shutdown_event.is_set()

    @patch("compositefs.main.FUSE")
    def test_signal_before_mount_skips_mount(self, mock_fuse, controller):
        with patch("compositefs.main.signal.signal") as mock_signal:
            initialize = controller.initialize_components

            def initialize_then_signal():
                initialize()
                handler = mock_signal.call_args_list[0][0][1]
                handler(signal.SIGTERM, None)

            controller.initialize_components = initialize_then_signal
            assert controller.run() == 0

        mock_fuse.assert_not_called()

    @patch("compositefs.main.signal.signal")
    @patch("compositefs.main.FUSE")
    def test_run_mount(self, mock_fuse, mock_signal, args, config):
        assert run_mount(args, config, MagicMock()) == 0
        mock_fuse.assert_called_once()
