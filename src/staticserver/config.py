"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

Centralized configuration for the static server.

=============================================================================
CONFIGURATION SOURCES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │   Priority (highest to lowest):                                     │
    │                                                                     │
    │   1. Command-line arguments                                         │
    │      └── python -m staticserver ./public 8080                       │
    │                                                                     │
    │   2. Environment variables                                          │
    │      └── HTTP_ROOT=./public HTTP_PORT=8080 python -m staticserver   │
    │                                                                     │
    │   3. Default values (in this dataclass)                             │
    └─────────────────────────────────────────────────────────────────────┘

The CLI builds its defaults from ServerConfig.from_env(), so an argument
given on the command line always wins over the environment.

=============================================================================
INTERVIEW QUESTIONS ABOUT CONFIGURATION
=============================================================================

Q: "How do you validate configuration?"
A: "Eagerly, at startup. StaticServer calls validate() in its
   constructor, so a typo in the root directory fails before the port
   is even bound."

=============================================================================
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class ServerConfig:
    """
    Configuration for the static server.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    CONTENT
    - root_dir, confine_to_root, compression_level

    NETWORK
    - host, port, backlog, buffer_size, timeout, max_request_size

    CONCURRENCY AND LIFECYCLE
    - max_connections, poll_interval, shutdown_timeout,
      install_signal_handlers

    PROTOCOL
    - respond_to_malformed, server_name

    LOGGING
    - log_level

    =========================================================================
    """

    # ─────────────────────────────────────────────────────────────────────
    # CONTENT
    # ─────────────────────────────────────────────────────────────────────

    root_dir: str = "."
    """Directory whose contents are served. Request "/" maps to it."""

    confine_to_root: bool = True
    """
    Refuse paths that normalize to somewhere outside root_dir
    ("/../etc/passwd"). They are answered with 404.
    """

    compression_level: int = 6
    """gzip level for file bodies, 0 (store only) to 9 (smallest)."""

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK
    # ─────────────────────────────────────────────────────────────────────

    host: str = "127.0.0.1"
    """
    The IP address to bind to.
    - "127.0.0.1" - Localhost only
    - "0.0.0.0" - All network interfaces
    """

    port: int = 1337
    """Port to listen on. 0 lets the OS pick a free one."""

    backlog: int = 128
    """Maximum number of connections queued by the kernel."""

    buffer_size: int = 8192
    """Bytes requested per recv() call."""

    timeout: Optional[float] = 30.0
    """
    Socket read/write timeout in seconds.
    None = block forever (a silent client then holds a worker forever).
    """

    max_request_size: int = 64 * 1024
    """Largest accepted request head (request line + headers), in bytes."""

    # ─────────────────────────────────────────────────────────────────────
    # CONCURRENCY AND LIFECYCLE
    # ─────────────────────────────────────────────────────────────────────

    max_connections: Optional[int] = 64
    """
    Most connections handled at once, one thread each.
    None = unbounded.
    """

    poll_interval: float = 0.5
    """How often the accept loop re-checks the stop flag, in seconds."""

    shutdown_timeout: float = 5.0
    """How long shutdown waits for in-flight connections, in seconds."""

    install_signal_handlers: bool = True
    """
    Turn SIGINT/SIGTERM into a graceful shutdown. Only takes effect when
    the server runs in the main thread.
    """

    # ─────────────────────────────────────────────────────────────────────
    # PROTOCOL
    # ─────────────────────────────────────────────────────────────────────

    respond_to_malformed: bool = True
    """
    Answer unparseable requests with 400 Bad Request. When False the
    connection is closed without a response.
    """

    server_name: str = "StaticServer/1.0"
    """Value of the Server header."""

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"
    """Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)."""

    @property
    def root_path(self) -> Path:
        """Absolute path of root_dir."""
        return Path(self.root_dir).resolve()

    @property
    def log_level_number(self) -> int:
        return getattr(logging, self.log_level.upper())

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Create configuration from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        HTTP_ROOT             Served directory (default: .)
        HTTP_HOST             Server host (default: 127.0.0.1)
        HTTP_PORT             Server port (default: 1337)
        HTTP_TIMEOUT          Socket timeout in seconds (default: 30)
        HTTP_MAX_CONNECTIONS  Concurrent connection cap (default: 64)
        HTTP_LOG_LEVEL        Logging level (default: INFO)

        =====================================================================

        Raises:
            ValueError: If a numeric variable does not parse.
        """
        return cls(
            root_dir=os.getenv("HTTP_ROOT", "."),
            host=os.getenv("HTTP_HOST", "127.0.0.1"),
            port=int(os.getenv("HTTP_PORT", "1337")),
            timeout=float(os.getenv("HTTP_TIMEOUT", "30")),
            max_connections=int(os.getenv("HTTP_MAX_CONNECTIONS", "64")),
            log_level=os.getenv("HTTP_LOG_LEVEL", "INFO"),
        )

    def validate(self) -> None:
        """
        Validate configuration values.

        Raises:
            ValueError: On the first invalid value found.
        """
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if not Path(self.root_dir).is_dir():
            raise ValueError(f"Root directory does not exist: {self.root_dir}")

        if not 0 <= self.compression_level <= 9:
            raise ValueError(f"compression_level must be 0-9, got {self.compression_level}")

        if self.max_connections is not None and self.max_connections < 1:
            raise ValueError("max_connections must be >= 1")

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0")

        if self.buffer_size < 1024:
            raise ValueError("buffer_size must be >= 1024")

        if self.log_level.upper() not in LOG_LEVELS:
            raise ValueError(f"Unknown log level: {self.log_level}")


# =============================================================================
# MODULE SUMMARY
# =============================================================================
#
# 1. Type-safe configuration with a dataclass
# 2. Environment variable support (from_env)
# 3. Validation at startup (validate)
#
# DEPLOYMENT NOTES:
# - Bind to 0.0.0.0 inside containers
# - Keep confine_to_root on unless the root is itself a sandbox
# =============================================================================
