"""
Unit tests for the command-line entry point.
"""

import logging
import socket

import pytest

from staticserver import StaticServer, __version__
from staticserver.__main__ import (
    build_parser,
    config_from_args,
    configure_logging,
    main,
)
from staticserver.config import ServerConfig


@pytest.fixture
def defaults() -> ServerConfig:
    return ServerConfig(root_dir="/srv/public", port=1337)


class TestParser:
    """Tests for argument parsing."""

    def test_no_arguments_keeps_defaults(self, defaults):
        args = build_parser(defaults).parse_args([])

        config = config_from_args(args, defaults)

        assert config.root_dir == "/srv/public"
        assert config.port == 1337
        assert config.respond_to_malformed

    def test_positional_root_and_port(self, defaults):
        args = build_parser(defaults).parse_args(["./public", "8080"])

        config = config_from_args(args, defaults)

        assert config.root_dir == "./public"
        assert config.port == 8080

    def test_options(self, defaults):
        args = build_parser(defaults).parse_args([
            ".", "0",
            "--host", "0.0.0.0",
            "--max-connections", "4",
            "--timeout", "1.5",
            "--drop-malformed",
            "--log-level", "debug",
        ])

        config = config_from_args(args, defaults)

        assert config.host == "0.0.0.0"
        assert config.max_connections == 4
        assert config.timeout == 1.5
        assert not config.respond_to_malformed
        assert config.log_level == "DEBUG"

    def test_non_numeric_port_is_rejected(self, defaults):
        with pytest.raises(SystemExit) as exc_info:
            build_parser(defaults).parse_args([".", "http"])

        assert exc_info.value.code == 2

    def test_unknown_log_level_is_rejected(self, defaults):
        with pytest.raises(SystemExit):
            build_parser(defaults).parse_args(["--log-level", "LOUD"])

    def test_version(self, defaults, capsys):
        with pytest.raises(SystemExit) as exc_info:
            build_parser(defaults).parse_args(["--version"])

        assert exc_info.value.code == 0
        assert capsys.readouterr().out.strip() == f"staticserver {__version__}"


class TestMain:
    """Tests for main() exit codes."""

    def test_missing_root_exits_2(self, tmp_path):
        assert main([str(tmp_path / "missing"), "0"]) == 2

    def test_bad_environment_exits_2(self, monkeypatch, capsys):
        monkeypatch.setenv("HTTP_PORT", "not-a-port")

        assert main([]) == 2
        assert "invalid environment setting" in capsys.readouterr().err

    def test_port_in_use_exits_1(self, served_root):
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as blocker:
            blocker.bind(("127.0.0.1", 0))
            blocker.listen(1)
            port = blocker.getsockname()[1]

            assert main([str(served_root), str(port), "--host", "127.0.0.1"]) == 1

    def test_unknown_log_level_in_environment_exits_2(self, monkeypatch, served_root, capsys):
        monkeypatch.setenv("HTTP_LOG_LEVEL", "LOUD")

        assert main([str(served_root), "0"]) == 2
        assert "Unknown log level: LOUD" in capsys.readouterr().err

    def test_clean_stop_exits_0(self, monkeypatch, served_root):
        """Test that main() hands the configured level to configure_logging."""
        levels = []
        monkeypatch.setattr("staticserver.__main__.configure_logging", levels.append)
        monkeypatch.setattr(StaticServer, "run", lambda self: None)

        assert main([str(served_root), "0", "--log-level", "warning"]) == 0
        assert levels == [logging.WARNING]


class TestConfigureLogging:

    @pytest.fixture(autouse=True)
    def restore_level(self):
        package_logger = logging.getLogger("staticserver")
        level = package_logger.level
        yield
        package_logger.setLevel(level)

    def test_sets_package_level(self):
        configure_logging(logging.DEBUG)

        assert logging.getLogger("staticserver").level == logging.DEBUG
        assert logging.getLogger("staticserver.server").isEnabledFor(logging.DEBUG)
