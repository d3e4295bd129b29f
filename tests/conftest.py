"""Shared pytest fixtures for CompositeFS tests."""
import errno
import tempfile
from pathlib import Path
from typing import Any, Dict, Generator, List

import pytest
import yaml

from compositefs.core.types import DirEntry, File
from compositefs.providers.memory import MemoryFS


class OpenOnlyFS:
    """Provider exposing nothing but open(), to exercise the fallbacks."""

    def __init__(self, files: Dict[str, Any]):
        self._fs = MemoryFS(files)
        self.opened: List[str] = []

    def open(self, path: str) -> File:
        self.opened.append(path)
        return self._fs.open(path)


class FailingFS:
    """Provider whose every operation fails with the given error."""

    def __init__(self, error: BaseException):
        self.error = error
        self.calls = 0

    def open(self, path: str) -> File:
        self.calls += 1
        raise self.error

    def stat(self, path: str):
        self.calls += 1
        raise self.error

    def read_file(self, path: str) -> bytes:
        self.calls += 1
        raise self.error

    def read_dir(self, path: str) -> List[DirEntry]:
        self.calls += 1
        raise self.error

    def sub(self, path: str):
        self.calls += 1
        raise self.error


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def open_only():
    """Factory for open()-only providers."""
    return OpenOnlyFS


@pytest.fixture
def failing():
    """Factory for providers failing every call."""
    return FailingFS


@pytest.fixture
def io_error() -> OSError:
    return PermissionError(errno.EACCES, "Permission denied")


@pytest.fixture
def common_layers() -> List[MemoryFS]:
    """Two layers sharing common.txt, the second also holding only2.txt."""
    return [
        MemoryFS({"common.txt": "A"}),
        MemoryFS({"common.txt": "B", "only2.txt": "C"}),
    ]


@pytest.fixture
def views_layers() -> List[MemoryFS]:
    """Two layers with a views/ directory each; home.html collides."""
    return [
        MemoryFS({"views/home.html": "<h1>dev home</h1>"}),
        MemoryFS({"views/home.html": "<h1>home</h1>", "views/about.html": "<h1>about</h1>"}),
    ]


@pytest.fixture
def layer_dirs(temp_dir: Path) -> List[Path]:
    """Two OS directories: an override layer and a base layer."""
    dev = temp_dir / "dev"
    base = temp_dir / "base"

    (dev / "views").mkdir(parents=True)
    (dev / "views" / "home.html").write_text("dev home")

    (base / "views").mkdir(parents=True)
    (base / "views" / "home.html").write_text("home")
    (base / "views" / "about.html").write_text("about")
    (base / "README.md").write_text("# Base")

    return [dev, base]


@pytest.fixture
def sample_config(layer_dirs: List[Path]) -> Dict[str, Any]:
    """Provide a sample CompositeFS configuration."""
    return {
        "compositefs": {
            "tolerance": "best_effort",
            "directory_mode": "overlay",
            "layers": [
                {"type": "dir", "path": str(layer_dirs[0]), "name": "dev"},
                {"type": "dir", "path": str(layer_dirs[1]), "name": "base"},
                {"type": "memory", "files": {"extra.txt": "extra"}},
            ],
            "logging": {"level": "DEBUG", "file": None},
        }
    }


@pytest.fixture
def config_file(temp_dir: Path, sample_config: Dict[str, Any]) -> Path:
    """Create a configuration file."""
    config_path = temp_dir / "compositefs.yaml"
    with open(config_path, "w") as f:
        yaml.dump(sample_config, f)
    return config_path


@pytest.fixture
def mount_dir(temp_dir: Path) -> Path:
    """Create a mount point directory."""
    mount = temp_dir / "mount"
    mount.mkdir()
    return mount


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep COMPOSITEFS_* variables from the host out of tests."""
    import os

    for key in list(os.environ):
        if key.startswith("COMPOSITEFS_"):
            monkeypatch.delenv(key)
    yield
