"""
=============================================================================
STATIC SERVER CLI ENTRY POINT
=============================================================================

Command-line interface for serving a directory.

=============================================================================
USAGE
=============================================================================

    # Serve the current directory on 127.0.0.1:1337
    python -m staticserver

    # Serve ./public on port 8080
    python -m staticserver ./public 8080

    # Listen on all interfaces (for containers)
    python -m staticserver ./public 8080 --host 0.0.0.0

    # Verbose logging, at most 16 concurrent connections
    python -m staticserver --log-level DEBUG --max-connections 16

Defaults come from the environment (HTTP_ROOT, HTTP_PORT, HTTP_HOST,
HTTP_TIMEOUT, HTTP_MAX_CONNECTIONS, HTTP_LOG_LEVEL); arguments override
them.

=============================================================================
EXIT CODES
=============================================================================

    0   stopped normally (Ctrl+C, SIGTERM)
    1   could not bind the listening socket
    2   invalid arguments or configuration

=============================================================================
"""

import argparse
import logging
import sys
from dataclasses import replace
from typing import Optional, Sequence

from . import __version__
from .config import LOG_LEVELS, ServerConfig
from .server import StaticServer


logger = logging.getLogger("staticserver")

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def build_parser(defaults: ServerConfig) -> argparse.ArgumentParser:
    """
    Build the argument parser, showing ``defaults`` in --help.
    """
    parser = argparse.ArgumentParser(
        prog="staticserver",
        description="Serve a directory over HTTP/1.1 with gzip and conditional requests",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m staticserver                         # Serve . on port 1337
  python -m staticserver ./public 8080           # Serve ./public on 8080
  python -m staticserver . 8080 --host 0.0.0.0   # All interfaces
        """
    )

    # ─────────────────────────────────────────────────────────────────────
    # WHAT AND WHERE
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "root",
        nargs="?",
        default=defaults.root_dir,
        help=f"Directory to serve (default: {defaults.root_dir})"
    )

    parser.add_argument(
        "port",
        nargs="?",
        type=int,
        default=defaults.port,
        help=f"Port to listen on, 0 for any free port (default: {defaults.port})"
    )

    parser.add_argument(
        "--host", "-H",
        default=defaults.host,
        help=f"Host to bind to (default: {defaults.host}, use 0.0.0.0 for containers)"
    )

    # ─────────────────────────────────────────────────────────────────────
    # BEHAVIOUR
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--max-connections", "-c",
        type=int,
        default=defaults.max_connections,
        help=f"Connections handled at once (default: {defaults.max_connections})"
    )

    parser.add_argument(
        "--timeout", "-t",
        type=float,
        default=defaults.timeout,
        help=f"Socket timeout in seconds (default: {defaults.timeout})"
    )

    parser.add_argument(
        "--drop-malformed",
        action="store_true",
        help="Close connections with malformed requests instead of answering 400"
    )

    parser.add_argument(
        "--log-level", "-l",
        type=str.upper,
        choices=LOG_LEVELS,
        default=defaults.log_level.upper(),
        help=f"Logging level (default: {defaults.log_level})"
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"staticserver {__version__}"
    )

    return parser


def config_from_args(args: argparse.Namespace, defaults: ServerConfig) -> ServerConfig:
    """Overlay parsed arguments on ``defaults``."""
    return replace(
        defaults,
        root_dir=args.root,
        port=args.port,
        host=args.host,
        max_connections=args.max_connections,
        timeout=args.timeout,
        respond_to_malformed=not args.drop_malformed,
        log_level=args.log_level,
    )


def configure_logging(level: int) -> None:
    """
    Configure process-wide logging. Called once, here, and nowhere in the
    library code.

    Args:
        level: Numeric logging level, e.g. logging.INFO.
    """
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
    )
    logging.getLogger("staticserver").setLevel(level)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    Main CLI entry point.

    Args:
        argv: Arguments without the program name. Defaults to sys.argv[1:].

    Returns:
        Process exit code.
    """
    try:
        defaults = ServerConfig.from_env()
    except ValueError as e:
        print(f"Error: invalid environment setting: {e}", file=sys.stderr)
        return 2

    args = build_parser(defaults).parse_args(argv)
    config = config_from_args(args, defaults)

    try:
        server = StaticServer(config)
    except ValueError as e:
        print(f"Error: invalid configuration: {e}", file=sys.stderr)
        return 2

    configure_logging(config.log_level_number)

    try:
        server.run()
    except OSError as e:
        logger.error(f"Server failed: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
