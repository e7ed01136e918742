"""
=============================================================================
STATICSERVER - HTTP/1.1 Static Content Server on Raw Sockets
=============================================================================

Serves a directory tree over HTTP/1.1 using nothing but the standard
library: every file is gzip-compressed and tagged with an MD5 Etag,
directories are rendered as HTML listings, and If-Match, If-None-Match
and If-Modified-Since are honoured.

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    staticserver/
    ├── __init__.py          # This file - package exports
    ├── __main__.py          # CLI entry point (python -m staticserver)
    ├── server.py            # StaticServer: wiring and connection handling
    ├── config.py            # ServerConfig dataclass
    ├── access_log.py        # Apache-style access log lines
    ├── core/                # Transport and filesystem
    │   ├── socket_server.py # Listening socket and accept loop
    │   ├── connection.py    # One client socket
    │   ├── workers.py       # Thread per connection, bounded
    │   └── filesystem.py    # FileSystem capability, local disk
    ├── http/                # Protocol
    │   ├── request.py       # Request head parsing, conditionals
    │   ├── response.py      # Response model and serialization
    │   ├── conditional.py   # 200 / 304 / 412 decision
    │   ├── dates.py         # Legacy date format codec
    │   ├── compression.py   # gzip body and Etag
    │   ├── mime_types.py    # Content-Type by extension
    │   └── status_codes.py  # Status codes and phrases
    └── handlers/
        ├── resources.py     # Path → Missing / Directory / File
        └── static.py        # Request → Response

=============================================================================
QUICK START
=============================================================================

    from staticserver import StaticServer, ServerConfig

    server = StaticServer(ServerConfig(root_dir="./public", port=8080))
    server.run()

Or from a shell:

    python -m staticserver ./public 8080

=============================================================================
"""

__version__ = "1.0.0"

from .server import StaticServer
from .config import ServerConfig

__all__ = ["StaticServer", "ServerConfig", "__version__"]
