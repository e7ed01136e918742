"""
=============================================================================
LISTENING SOCKET AND ACCEPT LOOP
=============================================================================

The acceptor owns exactly one socket, the listening one. It never reads
or writes request bytes itself: every accepted client is wrapped in a
Connection and handed to a callback that passes it on to a worker.

=============================================================================
ACCEPT LOOP TIMELINE
=============================================================================

    bind(host, port)          port 0 → kernel picks; read back with
        │                     getsockname() and exposed as .address
    listen(backlog)
        │
        ▼
    ┌──────────────────────── poll_interval ─────────────────────────┐
    │ accept() ── client ──► Connection ──► on_connection(conn)      │
    │    │                                                           │
    │    └── timeout ──► still running? ── yes ──► accept() again    │
    │                          │                                     │
    │                          no                                    │
    └──────────────────────────┼─────────────────────────────────────┘
                               ▼
                  close listening socket, restore signals

accept() never blocks longer than ``poll_interval``, so a shutdown()
from another thread or a signal handler is noticed within that delay.

=============================================================================
SOCKET OPTIONS
=============================================================================

SO_REUSEADDR  restart on the same port while old connections sit in
              TIME_WAIT. A port held by another live listener still fails
              with "Address already in use".
TCP_NODELAY   push the response out without waiting to coalesce segments.

=============================================================================
STOP SIGNALS
=============================================================================

SIGINT (Ctrl+C) and SIGTERM (kill, container stop) both call shutdown().
CPython only lets the main thread install handlers, so an acceptor
running in a background thread leaves them alone, as does one created
with ``install_signal_handlers=False``. Previous handlers are put back
when the loop ends.

=============================================================================
"""

import logging
import signal
import socket
import threading
from typing import Callable, Dict, Optional, Tuple

from ..config import ServerConfig
from .connection import Connection


logger = logging.getLogger(__name__)

STOP_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class SocketServer:
    """
    Accept loop over one listening TCP socket.

    Usage:
        acceptor = SocketServer(config)
        acceptor.start(lambda conn: workers.spawn(serve, conn))  # Blocks

        # elsewhere
        acceptor.shutdown()
    """

    def __init__(self, config: ServerConfig):
        self.config = config
        self._listener: Optional[socket.socket] = None
        self._running = False
        self._bound_address: Optional[Tuple[str, int]] = None
        self._listening = threading.Event()
        self._previous_handlers: Dict[int, object] = {}

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def address(self) -> Tuple[str, int]:
        """
        The (host, port) being served.

        Once bound this is what the kernel reports, so port 0 in the
        configuration reads back as the real ephemeral port.
        """
        if self._bound_address is not None:
            return self._bound_address
        return (self.config.host, self.config.port)

    # =========================================================================
    # SETUP
    # =========================================================================

    def _bind(self) -> socket.socket:
        """
        Create, configure and bind the listening socket.

        Raises:
            OSError: If host:port cannot be bound.
        """
        listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        listener.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        listener.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
        listener.settimeout(self.config.poll_interval)

        try:
            listener.bind((self.config.host, self.config.port))
        except OSError as e:
            logger.error(f"Cannot bind {self.config.host}:{self.config.port}: {e}")
            listener.close()
            raise
        return listener

    def _install_signal_handlers(self):
        if not self.config.install_signal_handlers:
            return
        if threading.current_thread() is not threading.main_thread():
            logger.debug("Running outside the main thread, stop signals not handled")
            return

        def on_signal(signum, frame):
            logger.info(f"Received {signal.Signals(signum).name}, shutting down")
            self.shutdown()

        for signum in STOP_SIGNALS:
            self._previous_handlers[signum] = signal.signal(signum, on_signal)

    def _restore_signal_handlers(self):
        while self._previous_handlers:
            signum, handler = self._previous_handlers.popitem()
            signal.signal(signum, handler)

    # =========================================================================
    # RUNNING
    # =========================================================================

    def start(self, on_connection: Callable[[Connection], None]):
        """
        Bind, listen and accept until shutdown() is called.

        Args:
            on_connection: Called in the accepting thread for every new
                           Connection. It should return quickly.

        Raises:
            OSError: If the address cannot be bound.
        """
        self._listener = self._bind()
        self._listener.listen(self.config.backlog)
        self._bound_address = self._listener.getsockname()[:2]
        self._running = True
        self._install_signal_handlers()

        host, port = self.address
        logger.info(f"Listening on {host}:{port}")
        self._listening.set()

        try:
            self._accept_until_stopped(on_connection)
        finally:
            self._close()

    def _accept_until_stopped(self, on_connection: Callable[[Connection], None]):
        while self._running:
            try:
                client, peer = self._listener.accept()
            except socket.timeout:
                continue
            except OSError as e:
                if self._running:
                    logger.error(f"accept() failed: {e}")
                break

            logger.debug(f"Accepted {peer[0]}:{peer[1]}")
            on_connection(Connection(
                socket=client,
                address=peer,
                buffer_size=self.config.buffer_size,
                timeout=self.config.timeout,
                max_request_size=self.config.max_request_size,
            ))

    def shutdown(self):
        """
        Ask the accept loop to stop. Idempotent, and safe from any thread
        or from a signal handler.
        """
        if self._running:
            logger.info("Stopping accept loop")
        self._running = False

    def _close(self):
        self._running = False
        self._restore_signal_handlers()
        if self._listener is not None:
            self._listener.close()
            self._listener = None
        self._listening.clear()
        logger.info("Listening socket closed")

    def wait_until_listening(self, timeout: Optional[float] = None) -> bool:
        """
        Block until the socket accepts connections.

        Returns:
            True once listening, False if ``timeout`` expired first.
        """
        return self._listening.wait(timeout)
