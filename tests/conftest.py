"""
pytest configuration and fixtures.
"""

import os
import socket
import threading
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Generator, List, Optional, Tuple
import pytest

# Add src to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from staticserver import StaticServer, ServerConfig


# Every file in the served tree gets this modification time
FIXED_MTIME = datetime(2021, 10, 19, 12, 0, 0, tzinfo=timezone.utc)

FILE_CONTENTS = {
    "a.txt": b"hello world\n",
    "image.png": b"\x89PNG\r\n\x1a\n" + bytes(range(64)),
    "report.pdf": b"%PDF-1.4\n% not really a pdf\n",
    "data.xyz": b"opaque data " * 20,
    "sub/inner.txt": b"inside sub\n",
}

EMPTY_DIRS = ["New folder", "Dügün"]


@pytest.fixture
def served_root(tmp_path: Path) -> Path:
    """
    Directory tree served in tests:

        a.txt  data.xyz  image.png  report.pdf
        sub/inner.txt
        New folder/
        Dügün/
    """
    root = tmp_path / "public"
    root.mkdir()

    timestamp = FIXED_MTIME.timestamp()
    for relative, content in FILE_CONTENTS.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
        os.utime(path, (timestamp, timestamp))

    for name in EMPTY_DIRS:
        (root / name).mkdir()

    return root


@pytest.fixture
def server_config(served_root: Path) -> ServerConfig:
    """Test configuration: ephemeral port, short timeouts, no signal handlers."""
    return ServerConfig(
        root_dir=str(served_root),
        host="127.0.0.1",
        port=0,
        timeout=5.0,
        poll_interval=0.05,
        shutdown_timeout=2.0,
        install_signal_handlers=False,
        log_level="WARNING",
    )


# =============================================================================
# RAW SOCKET CLIENT
# =============================================================================

@dataclass
class RawResponse:
    """A response as read off the wire."""

    status_line: str
    headers: List[Tuple[str, str]]
    body: bytes

    @property
    def status(self) -> int:
        return int(self.status_line.split(" ", 2)[1])

    @property
    def header_names(self) -> List[str]:
        return [name for name, _ in self.headers]

    def header(self, name: str) -> Optional[str]:
        for header_name, value in self.headers:
            if header_name.lower() == name.lower():
                return value
        return None


def parse_raw_response(data: bytes) -> RawResponse:
    head, _, body = data.partition(b"\r\n\r\n")
    lines = head.decode("utf-8").split("\r\n")
    headers = []
    for line in lines[1:]:
        name, _, value = line.partition(": ")
        headers.append((name, value))
    return RawResponse(status_line=lines[0], headers=headers, body=body)


class RawClient:
    """Sends hand-written requests over a fresh TCP connection each time."""

    def __init__(self, address: Tuple[str, int]):
        self.address = address

    def send(self, data: bytes, half_close: bool = False) -> bytes:
        """Send ``data`` and read until the server closes the connection."""
        with socket.create_connection(self.address, timeout=5.0) as sock:
            sock.sendall(data)
            if half_close:
                sock.shutdown(socket.SHUT_WR)

            chunks = []
            while True:
                chunk = sock.recv(65536)
                if not chunk:
                    break
                chunks.append(chunk)
        return b"".join(chunks)

    def request(
        self,
        path: str,
        method: str = "GET",
        headers: Optional[Dict[str, str]] = None,
    ) -> RawResponse:
        lines = [f"{method} {path} HTTP/1.1", "Host: localhost"]
        for name, value in (headers or {}).items():
            lines.append(f"{name}: {value}")
        raw = ("\r\n".join(lines) + "\r\n\r\n").encode("utf-8")
        return parse_raw_response(self.send(raw))


class TestServer:
    """Test server helper that runs in a background thread."""

    __test__ = False  # Not a test class

    def __init__(self, server: StaticServer):
        self.server = server
        self._thread: Optional[threading.Thread] = None

    @property
    def address(self) -> Tuple[str, int]:
        return self.server.address

    def start(self):
        """Start server in background thread."""
        self._thread = threading.Thread(target=self.server.run, daemon=True)
        self._thread.start()

        if not self.server.wait_until_listening(timeout=5.0):
            raise RuntimeError("Server failed to start")

    def stop(self):
        """Stop the server."""
        self.server.shutdown()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5.0)


@pytest.fixture
def running_server(server_config: ServerConfig) -> Generator[TestServer, None, None]:
    """A StaticServer serving ``served_root`` on an ephemeral port."""
    test_srv = TestServer(StaticServer(server_config))
    test_srv.start()

    yield test_srv

    test_srv.stop()


@pytest.fixture
def client(running_server: TestServer) -> RawClient:
    """Raw socket client pointed at ``running_server``."""
    return RawClient(running_server.address)


@pytest.fixture
def start_server(server_config: ServerConfig) -> Generator:
    """
    Factory for servers with non-default settings:

        srv = start_server(respond_to_malformed=False)
    """
    started = []

    def _start(**overrides) -> TestServer:
        test_srv = TestServer(StaticServer(replace(server_config, **overrides)))
        test_srv.start()
        started.append(test_srv)
        return test_srv

    yield _start

    for test_srv in started:
        test_srv.stop()
