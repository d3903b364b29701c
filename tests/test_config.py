"""
Tests for config loading
"""

import json

import pytest

from gomarket_cart.config import CartConfig, load_config
from gomarket_cart.store import STORAGE_KEY


def test_defaults():
    config = CartConfig()

    assert config.storage.backend == "file"
    assert config.storage.key == STORAGE_KEY
    assert config.server.log_level == "INFO"


def test_load_from_file(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(
        json.dumps(
            {
                "storage": {"backend": "memory", "key": "cart"},
                "server": {"log_level": "DEBUG"},
            }
        )
    )

    config = load_config(str(path))

    assert config.storage.backend == "memory"
    assert config.storage.key == "cart"
    assert config.server.log_level == "DEBUG"


def test_explicit_missing_path_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(str(tmp_path / "missing.json"))


def test_missing_default_path_uses_defaults(tmp_path, monkeypatch):
    monkeypatch.setenv("CONFIG_PATH", str(tmp_path / "missing.json"))

    assert load_config() == CartConfig()
