"""
=============================================================================
CORE NETWORKING COMPONENTS
=============================================================================

Transport and process plumbing underneath the HTTP layer.

    ┌─────────────────────────────────────────────────────────────────────┐
    │ socket_server.py  listening socket, accept loop, signal handling    │
    │ connection.py     one client socket: read head, write, close        │
    │ workers.py        one thread per connection, bounded by semaphore   │
    │ filesystem.py     read-only view of the served directory tree       │
    └─────────────────────────────────────────────────────────────────────┘

    Client ──TCP──► SocketServer.accept() ──► WorkerGroup.spawn()
                                                   │
                                        ConnectionWorker thread
                                                   │
                                   Connection.read_request() / send_response()

=============================================================================
"""

from .socket_server import SocketServer
from .connection import Connection, ConnectionState
from .workers import ConnectionWorker, WorkerGroup
from .filesystem import FileSystem, LocalFileSystem

__all__ = [
    "SocketServer",
    "Connection",
    "ConnectionState",
    "ConnectionWorker",
    "WorkerGroup",
    "FileSystem",
    "LocalFileSystem",
]
