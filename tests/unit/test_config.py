"""
Unit tests for server configuration.
"""

import logging
from pathlib import Path

import pytest

from staticserver.config import ServerConfig


class TestDefaults:

    def test_defaults(self):
        config = ServerConfig()

        assert config.root_dir == "."
        assert config.host == "127.0.0.1"
        assert config.port == 1337
        assert config.max_connections == 64
        assert config.respond_to_malformed
        assert config.confine_to_root

    def test_root_path_is_absolute(self, served_root):
        config = ServerConfig(root_dir=str(served_root))
        assert config.root_path == served_root.resolve()
        assert ServerConfig().root_path.is_absolute()

    def test_log_level_number(self):
        assert ServerConfig(log_level="debug").log_level_number == logging.DEBUG


class TestValidate:
    """Tests for ServerConfig.validate()."""

    def test_valid(self, served_root):
        ServerConfig(root_dir=str(served_root), port=0).validate()

    @pytest.mark.parametrize("overrides, message", [
        ({"port": -1}, "Invalid port"),
        ({"port": 65536}, "Invalid port"),
        ({"compression_level": 10}, "compression_level"),
        ({"max_connections": 0}, "max_connections"),
        ({"timeout": 0}, "timeout"),
        ({"buffer_size": 512}, "buffer_size"),
        ({"log_level": "LOUD"}, "log level"),
    ])
    def test_invalid_values(self, served_root, overrides, message):
        config = ServerConfig(root_dir=str(served_root), **overrides)

        with pytest.raises(ValueError, match=message):
            config.validate()

    def test_missing_root(self, tmp_path):
        with pytest.raises(ValueError, match="Root directory does not exist"):
            ServerConfig(root_dir=str(tmp_path / "nope")).validate()

    def test_root_must_be_a_directory(self, served_root):
        with pytest.raises(ValueError, match="Root directory"):
            ServerConfig(root_dir=str(served_root / "a.txt")).validate()

    def test_unbounded_values_are_allowed(self, served_root):
        ServerConfig(root_dir=str(served_root), max_connections=None, timeout=None).validate()


class TestFromEnv:
    """Tests for ServerConfig.from_env()."""

    def test_reads_environment(self, monkeypatch, tmp_path):
        monkeypatch.setenv("HTTP_ROOT", str(tmp_path))
        monkeypatch.setenv("HTTP_HOST", "0.0.0.0")
        monkeypatch.setenv("HTTP_PORT", "8080")
        monkeypatch.setenv("HTTP_TIMEOUT", "2.5")
        monkeypatch.setenv("HTTP_MAX_CONNECTIONS", "8")
        monkeypatch.setenv("HTTP_LOG_LEVEL", "DEBUG")

        config = ServerConfig.from_env()

        assert Path(config.root_dir) == tmp_path
        assert config.host == "0.0.0.0"
        assert config.port == 8080
        assert config.timeout == 2.5
        assert config.max_connections == 8
        assert config.log_level == "DEBUG"

    def test_defaults_without_environment(self, monkeypatch):
        for name in ["HTTP_ROOT", "HTTP_HOST", "HTTP_PORT", "HTTP_TIMEOUT",
                     "HTTP_MAX_CONNECTIONS", "HTTP_LOG_LEVEL"]:
            monkeypatch.delenv(name, raising=False)

        assert ServerConfig.from_env() == ServerConfig()

    def test_bad_number(self, monkeypatch):
        monkeypatch.setenv("HTTP_PORT", "eighty")

        with pytest.raises(ValueError):
            ServerConfig.from_env()
