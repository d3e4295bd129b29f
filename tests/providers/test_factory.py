#!/usr/bin/env python3
"""Tests for building layers and composites from configuration."""

import pytest

from compositefs.core.composite import CompositeFS
from compositefs.core.constants import DirectoryMode, Tolerance
from compositefs.core.validators import ValidationError
from compositefs.providers.directory import DirFS
from compositefs.providers.factory import LayerFactory
from compositefs.providers.memory import MemoryFS
from compositefs.providers.package import PackageFS


class TestCreateLayer:
    """Tests for LayerFactory.create_layer()."""

    def test_dir_layer(self, temp_dir):
        layer = LayerFactory.create_layer({"type": "dir", "path": str(temp_dir)})

        assert isinstance(layer, DirFS)
        assert layer.root == str(temp_dir)

    def test_package_layer(self):
        layer = LayerFactory.create_layer({"type": "package", "package": "email", "path": "mime"})

        assert isinstance(layer, PackageFS)
        assert layer.root == "mime"

    def test_package_layer_default_root(self):
        assert LayerFactory.create_layer({"type": "package", "package": "email"}).root == "."

    def test_memory_layer(self):
        layer = LayerFactory.create_layer({"type": "memory", "files": {"a.txt": "a"}})

        assert isinstance(layer, MemoryFS)
        assert layer.read_file("a.txt") == b"a"

    def test_memory_layer_without_files(self):
        assert LayerFactory.create_layer({"type": "memory"}).read_dir(".") == []

    def test_invalid_layer(self):
        with pytest.raises(ValidationError):
            LayerFactory.create_layer({"type": "s3", "bucket": "templates"})

    def test_create_layers_keeps_order(self, layer_dirs):
        layers = LayerFactory.create_layers(
            [{"type": "dir", "path": str(path)} for path in layer_dirs]
        )
        assert [layer.root for layer in layers] == [str(path) for path in layer_dirs]


class TestCreateComposite:
    """Tests for LayerFactory.create_composite()."""

    def test_from_sample_config(self, sample_config):
        composite = LayerFactory.create_composite(sample_config["compositefs"])

        assert isinstance(composite, CompositeFS)
        assert len(composite.layers) == 3
        assert composite.tolerance is Tolerance.BEST_EFFORT
        assert composite.directory_mode is DirectoryMode.OVERLAY
        assert composite.read_file("views/home.html") == b"dev home"
        assert composite.read_file("views/about.html") == b"about"
        assert composite.read_file("extra.txt") == b"extra"

    def test_defaults(self):
        composite = LayerFactory.create_composite({})

        assert composite.layers == ()
        assert composite.tolerance is Tolerance.STRICT
        assert composite.directory_mode is DirectoryMode.FIRST_WINS

    def test_invalid_config(self):
        with pytest.raises(ValidationError):
            LayerFactory.create_composite({"directory_mode": "union"})
