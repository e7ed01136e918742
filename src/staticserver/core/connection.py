"""
=============================================================================
CONNECTION MANAGEMENT
=============================================================================

Wraps one accepted client socket: read exactly one request head, write
exactly one response, close.

=============================================================================
TCP IS A BYTE STREAM, NOT A MESSAGE PROTOCOL
=============================================================================

TCP only guarantees that bytes arrive in order. A request head sent in one
write may arrive in several recv() calls:

    First recv():  b"GET /docs HT"
    Second recv(): b"TP/1.1\\r\\nHost: local"
    Third recv():  b"host\\r\\n\\r\\n"

So we buffer and look for the blank line that ends the head. Both the
proper CRLF form and the bare-LF form typed by hand in netcat are accepted:

    b"\\r\\n\\r\\n"   or   b"\\n\\n"

A client that closes its write side without a blank line (``printf 'GET /'
| nc``) still gets its buffered bytes parsed.

=============================================================================
CONNECTION LIFECYCLE
=============================================================================

    NEW ──read_request()──► READING ──► PROCESSING ──send_response()──► WRITING
                               │                                          │
                               │ timeout / EOF / error                    │
                               ▼                                          ▼
                            CLOSING ◄─────────────────────────────────────┘
                               │
                               ▼
                            CLOSED

There is no keep-alive: after one response the connection always closes.

=============================================================================
"""

import logging
import socket
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from ..http.request import MalformedRequestLine


logger = logging.getLogger(__name__)

HEAD_TERMINATORS = (b"\r\n\r\n", b"\n\n")


class ConnectionState(Enum):
    """Connection lifecycle states, used for logging."""
    NEW = "new"
    READING = "reading"
    PROCESSING = "processing"
    WRITING = "writing"
    CLOSING = "closing"
    CLOSED = "closed"


def find_head_end(buffer: bytes) -> int:
    """
    Find the end of the request head in ``buffer``.

    Returns:
        Index just past the first blank line, or -1 if there is none yet.
    """
    ends = []
    for terminator in HEAD_TERMINATORS:
        index = buffer.find(terminator)
        if index != -1:
            ends.append(index + len(terminator))
    return min(ends) if ends else -1


@dataclass
class Connection:
    """
    Represents a client connection.

    Attributes:
        socket: The client socket.
        address: Client's (ip, port) tuple.
        id: Short connection identifier for log lines.
        state: Current connection state.
        created_at: Timestamp when the connection was accepted.
    """

    socket: socket.socket
    address: tuple[str, int]

    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.NEW
    created_at: float = field(default_factory=time.time)

    buffer_size: int = 8192
    timeout: Optional[float] = 30.0
    max_request_size: int = 64 * 1024

    _buffer: bytes = field(default=b"", repr=False)

    def __post_init__(self):
        self.socket.setblocking(True)
        self.socket.settimeout(self.timeout)

    @property
    def client_ip(self) -> str:
        return self.address[0]

    @property
    def age(self) -> float:
        """Seconds since the connection was accepted."""
        return time.time() - self.created_at

    # =========================================================================
    # READING
    # =========================================================================

    def read_request(self) -> Optional[bytes]:
        """
        Read one request head from the socket.

        Returns:
            Head bytes up to and including the blank line, whatever was
            buffered when the client closed its side, or None if the client
            closed without sending anything.

        Raises:
            TimeoutError: If the client stops sending before the head ends.
            MalformedRequestLine: If the head grows past max_request_size.
        """
        self.state = ConnectionState.READING

        try:
            while True:
                head_end = find_head_end(self._buffer)
                if head_end != -1:
                    head, self._buffer = self._buffer[:head_end], self._buffer[head_end:]
                    break

                if len(self._buffer) > self.max_request_size:
                    raise MalformedRequestLine(
                        f"Request head too large: over {self.max_request_size} bytes"
                    )

                chunk = self._recv()
                if not chunk:
                    # Peer closed its write side; parse what we have
                    head, self._buffer = self._buffer, b""
                    break

                self._buffer += chunk
        except socket.timeout:
            raise TimeoutError("Request read timeout") from None

        if not head:
            return None

        if len(head) > self.max_request_size:
            raise MalformedRequestLine(f"Request head too large: {len(head)} bytes")

        self.state = ConnectionState.PROCESSING
        return head

    def _recv(self) -> bytes:
        """
        Receive data from the socket.

        Returns:
            Received bytes, or b"" if the connection was closed or reset.
        """
        try:
            return self.socket.recv(self.buffer_size)
        except (ConnectionResetError, BrokenPipeError):
            return b""

    # =========================================================================
    # WRITING
    # =========================================================================

    def send_response(self, data: bytes) -> bool:
        """
        Send a complete response with sendall().

        Returns:
            True if everything was written, False if the client went away.
        """
        self.state = ConnectionState.WRITING
        try:
            self.socket.sendall(data)
            return True
        except socket.timeout:
            logger.warning(f"[{self.id}] Timed out writing response to {self.client_ip}")
            return False
        except OSError as e:
            logger.warning(f"[{self.id}] Client has dropped the connection: {e}")
            return False

    # =========================================================================
    # CLOSING
    # =========================================================================

    def close(self):
        """
        Close the connection gracefully.

        1. shutdown(SHUT_WR) sends FIN so the client sees end of response
        2. drain whatever the client still sends, briefly
        3. close() releases the file descriptor
        """
        if self.state == ConnectionState.CLOSED:
            return

        self.state = ConnectionState.CLOSING

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass  # Already disconnected

        try:
            self.socket.settimeout(0.5)
            while self.socket.recv(1024):
                pass
        except OSError:
            pass

        try:
            self.socket.close()
        except OSError:
            pass

        self.state = ConnectionState.CLOSED
        logger.debug(f"[{self.id}] Connection closed after {self.age:.3f}s")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
