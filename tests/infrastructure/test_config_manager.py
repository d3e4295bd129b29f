#!/usr/bin/env python3
"""Tests for the hierarchical configuration manager."""

import pytest
import yaml

from compositefs.core.constants import ErrorCode
from compositefs.infrastructure.config_manager import (
    ConfigError,
    ConfigManager,
    ConfigSource,
)


@pytest.fixture
def manager():
    """Manager with compiled defaults only."""
    return ConfigManager(load_environment=False)


def write_yaml(path, data):
    with open(path, "w") as f:
        yaml.dump(data, f)
    return path


class TestConfigSource:
    def test_precedence_order(self):
        """Test sources are ordered from defaults to runtime."""
        order = [
            ConfigSource.COMPILED_DEFAULTS,
            ConfigSource.SYSTEM_CONFIG,
            ConfigSource.USER_CONFIG,
            ConfigSource.ENVIRONMENT,
            ConfigSource.CLI_ARGS,
            ConfigSource.RUNTIME,
        ]
        assert [source.value for source in order] == sorted(source.value for source in order)

    def test_config_error_default_code(self):
        assert ConfigError("bad").error_code == ErrorCode.INVALID_INPUT


class TestDefaults:
    def test_compiled_defaults(self, manager):
        assert manager.get("compositefs.tolerance") == "strict"
        assert manager.get("compositefs.directory_mode") == "first_wins"
        assert manager.get("compositefs.layers") == []
        assert manager.get("compositefs.logging.level") == "INFO"

    def test_default_keys(self, manager):
        assert set(manager.get_section()) == {"tolerance", "directory_mode", "layers", "logging"}

    def test_defaults_are_not_shared(self, manager):
        manager.get_section()["layers"].append({"type": "memory"})
        assert ConfigManager(load_environment=False).get("compositefs.layers") == []

    def test_get_with_default(self, manager):
        assert manager.get("compositefs.nothing", default=42) == 42
        assert manager.get("compositefs.tolerance.deeper", default="x") == "x"


class TestLoadFile:
    """Tests for YAML loading."""

    def test_load_file(self, manager, config_file):
        manager.load_file(str(config_file))

        assert manager.get("compositefs.tolerance") == "best_effort"
        assert len(manager.get("compositefs.layers")) == 3

    def test_constructor_loads_file(self, config_file):
        manager = ConfigManager(str(config_file), load_environment=False)
        assert manager.get("compositefs.directory_mode") == "overlay"

    def test_file_not_found(self, manager, temp_dir):
        with pytest.raises(ConfigError) as exc_info:
            manager.load_file(str(temp_dir / "missing.yaml"))
        assert exc_info.value.error_code == ErrorCode.NOT_FOUND

    def test_invalid_yaml(self, manager, temp_dir):
        path = temp_dir / "bad.yaml"
        path.write_text("compositefs: [unclosed")

        with pytest.raises(ConfigError, match="YAML parse error"):
            manager.load_file(str(path))

    def test_not_a_mapping(self, manager, temp_dir):
        path = write_yaml(temp_dir / "list.yaml", ["a", "b"])

        with pytest.raises(ConfigError, match="Invalid config format"):
            manager.load_file(str(path))

    def test_load_defaults_reads_existing_files(self, manager, temp_dir, monkeypatch):
        system = write_yaml(temp_dir / "system.yaml", {"compositefs": {"tolerance": "best_effort"}})
        monkeypatch.setattr(ConfigManager, "SYSTEM_CONFIG_PATH", str(system))
        monkeypatch.setattr(ConfigManager, "USER_CONFIG_PATH", str(temp_dir / "absent.yaml"))

        manager.load_defaults()

        assert manager.get("compositefs.tolerance") == "best_effort"


class TestEnvironment:
    """Tests for COMPOSITEFS_* overrides."""

    def test_top_level_key(self, monkeypatch):
        monkeypatch.setenv("COMPOSITEFS_DIRECTORY_MODE", "overlay")
        assert ConfigManager().get("compositefs.directory_mode") == "overlay"

    def test_nested_key(self, monkeypatch):
        monkeypatch.setenv("COMPOSITEFS_LOGGING__LEVEL", "DEBUG")

        manager = ConfigManager()

        assert manager.get("compositefs.logging.level") == "DEBUG"
        assert manager.get_section()["logging"]["file"] is None

    def test_environment_beats_file(self, monkeypatch, config_file):
        monkeypatch.setenv("COMPOSITEFS_TOLERANCE", "strict")
        assert ConfigManager(str(config_file)).get("compositefs.tolerance") == "strict"

    def test_malformed_keys_ignored(self, monkeypatch):
        monkeypatch.setenv("COMPOSITEFS_", "x")
        monkeypatch.setenv("COMPOSITEFS_LOGGING____LEVEL", "x")

        manager = ConfigManager()

        assert manager.get("compositefs.logging.level") == "INFO"

    def test_disabled(self, monkeypatch):
        monkeypatch.setenv("COMPOSITEFS_TOLERANCE", "best_effort")
        assert ConfigManager(load_environment=False).get("compositefs.tolerance") == "strict"

    @pytest.mark.parametrize(
        "raw,parsed",
        [
            ("true", True),
            ("YES", True),
            ("false", False),
            ("no", False),
            ("42", 42),
            ("1.5", 1.5),
            ("overlay", "overlay"),
        ],
    )
    def test_parse_env_value(self, manager, raw, parsed):
        assert manager._parse_env_value(raw) == parsed


class TestPrecedence:
    def test_set_and_get(self, manager):
        manager.set("compositefs.tolerance", "best_effort")
        assert manager.get("compositefs.tolerance") == "best_effort"

    def test_higher_source_wins(self, manager):
        manager.set("compositefs.tolerance", "best_effort", ConfigSource.CLI_ARGS)
        manager.set("compositefs.tolerance", "strict", ConfigSource.ENVIRONMENT)
        assert manager.get("compositefs.tolerance") == "best_effort"

    def test_get_all_deep_merges(self, manager):
        manager.load_dict({"compositefs": {"logging": {"level": "DEBUG"}}}, ConfigSource.USER_CONFIG)

        section = manager.get_section()

        assert section["logging"] == {"level": "DEBUG", "file": None}
        assert section["tolerance"] == "strict"

    def test_lists_replaced_whole(self, manager):
        manager.load_dict({"compositefs": {"layers": [{"type": "memory"}]}}, ConfigSource.USER_CONFIG)
        manager.set("compositefs.layers", [{"type": "dir", "path": "."}], ConfigSource.CLI_ARGS)

        assert manager.get_section()["layers"] == [{"type": "dir", "path": "."}]

    def test_load_dict_copies(self, manager):
        data = {"compositefs": {"layers": []}}
        manager.load_dict(data)
        data["compositefs"]["layers"].append({"type": "memory"})

        assert manager.get("compositefs.layers") == []


class TestValidateAndClear:
    def test_validate(self, manager, config_file):
        manager.load_file(str(config_file))
        assert manager.validate()

    def test_validate_failure(self, manager):
        manager.set("compositefs.directory_mode", "union")

        with pytest.raises(ConfigError, match="Invalid directory mode") as exc_info:
            manager.validate()

        assert exc_info.value.error_code == ErrorCode.INVALID_INPUT

    def test_clear_specific_source(self, manager):
        manager.set("compositefs.tolerance", "best_effort", ConfigSource.CLI_ARGS)
        manager.clear(ConfigSource.CLI_ARGS)
        assert manager.get("compositefs.tolerance") == "strict"

    def test_clear_all_keeps_defaults(self, manager):
        manager.set("compositefs.tolerance", "best_effort")
        manager.set("compositefs.directory_mode", "overlay", ConfigSource.USER_CONFIG)

        manager.clear()
        manager.clear(ConfigSource.COMPILED_DEFAULTS)

        assert manager.get("compositefs.tolerance") == "strict"
        assert manager.get("compositefs.directory_mode") == "first_wins"

