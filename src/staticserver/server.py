"""
=============================================================================
STATIC SERVER
=============================================================================

Ties the components together: accept loop, worker threads, request
parser and static handler.

=============================================================================
ARCHITECTURE OVERVIEW
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                         StaticServer                                │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                     │
    │    ┌──────────────┐    ┌──────────────┐    ┌───────────────────┐    │
    │    │ SocketServer │───►│ WorkerGroup  │───►│ _process_connection│   │
    │    │ (accept)     │    │ (1 thread    │    │  (worker thread)  │    │
    │    └──────────────┘    │  per conn)   │    └─────────┬─────────┘    │
    │                        └──────────────┘              │              │
    │                                       ┌──────────────┼───────────┐  │
    │                                       ▼              ▼           ▼  │
    │                               RequestParser  StaticFileHandler  log │
    │                                                      │              │
    │                                               PathResolver          │
    │                                                      │              │
    │                                                 FileSystem          │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
REQUEST LIFECYCLE
=============================================================================

    1. CLIENT CONNECTS
       └── SocketServer accepts, wraps the socket in a Connection
    2. SPAWN WORKER
       └── WorkerGroup starts a thread once a slot is free
    3. READ HEAD (worker thread)
       └── bytes up to the blank line, or until the client closes
    4. PARSE
       └── malformed → 400 (or silent close), stop
    5. HANDLE
       └── resolve path, evaluate conditionals, build response
    6. SEND
       └── sendall(); a vanished client is logged, not raised
    7. CLOSE
       └── always, one request per connection

=============================================================================
INTERVIEW QUESTIONS ABOUT THIS SERVER
=============================================================================

Q: "What happens during graceful shutdown?"
A: "1. SIGINT/SIGTERM (or shutdown()) clears the running flag
   2. The accept loop notices within poll_interval and closes the socket
   3. In-flight workers finish their single request
   4. run() waits up to shutdown_timeout for them, then returns"

Q: "How are errors kept from killing the server?"
A: "Expected failures (parse errors, timeouts, unreadable files, dropped
   clients) are handled in the worker and logged. Anything else is
   caught by the worker thread, logged with a traceback and the
   connection closed. Nothing reaches the accept loop."

=============================================================================
"""

import logging
import time
from typing import Optional, Tuple

from .access_log import RequestLog, log_request
from .config import ServerConfig
from .core import Connection, FileSystem, SocketServer, WorkerGroup
from .handlers import PathResolver, StaticFileHandler
from .http import HTTPParseError, RequestParser, bad_request


logger = logging.getLogger(__name__)


class StaticServer:
    """
    HTTP/1.1 server for a directory tree.

    =========================================================================
    USAGE
    =========================================================================

        server = StaticServer(ServerConfig(root_dir="./public", port=8080))
        server.run()  # Blocks until Ctrl+C / SIGTERM / shutdown()

    From another thread (tests, embedding):

        server = StaticServer(ServerConfig(port=0, install_signal_handlers=False))
        threading.Thread(target=server.run, daemon=True).start()
        server.wait_until_listening(5)
        host, port = server.address
        ...
        server.shutdown()

    =========================================================================
    """

    def __init__(
        self,
        config: Optional[ServerConfig] = None,
        filesystem: Optional[FileSystem] = None,
    ):
        """
        Args:
            config: Server configuration. Defaults apply if omitted.
            filesystem: Filesystem to serve from. Defaults to local disk.

        Raises:
            ValueError: If the configuration is invalid.
        """
        self.config = config or ServerConfig()
        self.config.validate()

        # ─────────────────────────────────────────────────────────────────
        # CORE COMPONENTS
        # ─────────────────────────────────────────────────────────────────

        self._socket_server = SocketServer(self.config)
        self._workers = WorkerGroup(self.config.max_connections)
        self._parser = RequestParser(max_request_size=self.config.max_request_size)

        # ─────────────────────────────────────────────────────────────────
        # CONTENT
        # ─────────────────────────────────────────────────────────────────

        self._resolver = PathResolver(
            self.config.root_path,
            filesystem=filesystem,
            compression_level=self.config.compression_level,
            confine_to_root=self.config.confine_to_root,
        )
        self._handler = StaticFileHandler(self._resolver, server_name=self.config.server_name)

    # =========================================================================
    # SERVER LIFECYCLE
    # =========================================================================

    @property
    def address(self) -> Tuple[str, int]:
        """Bound (host, port); the real port once listening."""
        return self._socket_server.address

    @property
    def is_running(self) -> bool:
        return self._socket_server.is_running

    def run(self):
        """
        Serve until shutdown() is called or a stop signal arrives.

        Raises:
            OSError: If the listening socket cannot be bound.
        """
        logger.info(f"Serving {self._resolver.root}")

        try:
            self._socket_server.start(self._handle_connection)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            self._wait_for_workers()

    def shutdown(self):
        """Stop accepting connections. run() returns once workers finish."""
        self._socket_server.shutdown()

    def wait_until_listening(self, timeout: Optional[float] = None) -> bool:
        """Block until the server accepts connections. False on timeout."""
        return self._socket_server.wait_until_listening(timeout)

    def _wait_for_workers(self):
        active = self._workers.active_count
        if active:
            logger.info(f"Waiting for {active} connection(s) to finish...")
        self._workers.join(self.config.shutdown_timeout)
        logger.info("Server stopped")

    # =========================================================================
    # REQUEST HANDLING
    # =========================================================================

    def _handle_connection(self, conn: Connection):
        """
        Hand a new connection to a worker thread (runs in the accept thread).

        Waits for a free worker slot, re-checking the stop flag every
        poll_interval. A connection still waiting at shutdown is closed.
        """
        while self._socket_server.is_running:
            worker = self._workers.spawn(
                self._process_connection,
                conn,
                timeout=self.config.poll_interval,
            )
            if worker is not None:
                return

        logger.warning(f"[{conn.id}] Server stopping, closing unserved connection")
        conn.close()

    def _process_connection(self, conn: Connection):
        """
        Serve one request on ``conn`` (runs in a worker thread).

        The connection is closed on every path out of this method.
        """
        with conn:
            try:
                raw_request = conn.read_request()
                if raw_request is None:
                    logger.debug(f"[{conn.id}] Client closed without sending a request")
                    return
                request = self._parser.parse(raw_request, conn.address)
            except HTTPParseError as e:
                logger.warning(f"[{conn.id}] Malformed request from {conn.client_ip}: {e}")
                if self.config.respond_to_malformed:
                    self._send_error(conn, e)
                return
            except TimeoutError:
                logger.warning(f"[{conn.id}] Timed out waiting for request from {conn.client_ip}")
                return

            logger.info(f"[{conn.id}] {request.method} {request.path}")
            start_time = time.time()

            try:
                response = self._handler.handle(request)
            except OSError as e:
                logger.warning(f"[{conn.id}] Could not read {request.path}: {e}")
                return

            duration_ms = (time.time() - start_time) * 1000

            if conn.send_response(response.to_bytes(self.config.server_name)):
                log_request(RequestLog.build(request, response, duration_ms, conn.id))

    def _send_error(self, conn: Connection, error: HTTPParseError):
        """Send a 400 Bad Request for a request the parser rejected."""
        response = bad_request(str(error), server_name=self.config.server_name)
        conn.send_response(response.to_bytes(self.config.server_name))


# =============================================================================
# MODULE SUMMARY
# =============================================================================
#
# 1. Component wiring: config, sockets, workers, parser, resolver, handler
# 2. Request flow: Accept → Spawn → Read → Parse → Handle → Send → Close
# 3. Lifecycle: startup, signal-driven shutdown, bounded wait for workers
#
# KEY DESIGN DECISIONS:
# - One thread per connection, capped by max_connections
# - One request per connection, no keep-alive
# - Nothing cached between requests
# =============================================================================
