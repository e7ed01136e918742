"""
=============================================================================
HTTP RESPONSE
=============================================================================

Holds a response (status, ordered headers, body) and serializes it into
the bytes written to the socket.

=============================================================================
HTTP RESPONSE ANATOMY
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                     │
    │   HTTP/1.1 200 OK\r\n                       ← status line           │
    │   Last-Modified: Tue Oct 19 12:00:00 UTC 2021\r\n                   │
    │   Content-Encoding: gzip\r\n                                        │
    │   Content-Length: 37\r\n                                            │
    │   Content-Type: text/txt\r\n                ← headers, in the       │
    │   Date: Mon Jan 05 10:00:00 UTC 2026\r\n       order they were set  │
    │   Etag: 9a0364b9e99bb480dd25e1f0284c8555\r\n                        │
    │   Server: StaticServer/1.0\r\n                                      │
    │   \r\n                                      ← blank line            │
    │   <37 gzip bytes>                           ← body (GET only)       │
    │                                                                     │
    └─────────────────────────────────────────────────────────────────────┘

Header order is part of the wire format of this server: each outcome
(200, 304, 404, 412) has a fixed order, so headers live in a plain dict
and are written in insertion order.

=============================================================================
INTERVIEW QUESTIONS ABOUT HTTP RESPONSES
=============================================================================

Q: "How does the client know when the response body ends?"
A: "Content-Length gives the exact byte count. We also close the
   connection after every response, which marks the end as well."

Q: "Why does a HEAD response still carry Content-Length?"
A: "HEAD must return the same headers GET would, so Content-Length
   describes the body the client would get, even though none is sent."

Q: "Why no Content-Length on 304?"
A: "A 304 never has a body. A Content-Length there would be read as the
   length of the cached representation, not of this message."

=============================================================================
"""

from dataclasses import dataclass, field, replace
from typing import Dict, Union

from .dates import format_legacy_date, utc_now
from .status_codes import HTTPStatus


DEFAULT_SERVER_NAME = "StaticServer/1.0"


@dataclass
class HTTPResponse:
    """
    Represents an HTTP response to be sent to the client.

    =========================================================================
    RESPONSE LIFECYCLE
    =========================================================================

        Handler returns          to_bytes()              Connection sends
        HTTPResponse    ─────►   serializes    ─────►    raw bytes
            │                       │                        │
        HTTPResponse(            b"HTTP/1.1 404 ...\\r\\n   conn.send_response(
          status=404,              Server: ...\\r\\n            response_bytes
          headers={...},           \\r\\n                    )
          body=b"...")             Requested URL ..."

    =========================================================================
    """

    status: HTTPStatus = HTTPStatus.OK
    headers: Dict[str, str] = field(default_factory=dict)  # Wire order
    body: bytes = b""
    version: str = "HTTP/1.1"

    @property
    def status_line(self) -> str:
        """
        Get the HTTP status line.

        Example: "HTTP/1.1 412 Precondition Failed"
        """
        return f"{self.version} {self.status} {self.status.phrase}"

    def without_body(self) -> "HTTPResponse":
        """
        Copy of this response with the body dropped.

        Headers are kept untouched, Content-Length included, so a HEAD
        (or any non-GET) response advertises the length of the GET body.
        """
        headers = dict(self.headers)
        if self.status.allows_body:
            headers.setdefault("Content-Length", str(len(self.body)))
        return replace(self, headers=headers, body=b"")

    def to_bytes(self, server_name: str = DEFAULT_SERVER_NAME) -> bytes:
        """
        Serialize the response to bytes for sending over the socket.

        =====================================================================
        AUTO-ADDED HEADERS
        =====================================================================

        Appended at the end only when the handler did not set them:

            Content-Length   length of body (never on 304)
            Date             current time, legacy layout, UTC
            Server           ``server_name``

        =====================================================================

        Args:
            server_name: Value for the Server header.

        Returns:
            Complete HTTP response as bytes ready for socket.sendall()
        """
        response_headers = dict(self.headers)

        if self.status.allows_body and "Content-Length" not in response_headers:
            response_headers["Content-Length"] = str(len(self.body))

        if "Date" not in response_headers:
            response_headers["Date"] = format_legacy_date(utc_now())

        if "Server" not in response_headers:
            response_headers["Server"] = server_name

        lines = [self.status_line]
        for name, value in response_headers.items():
            lines.append(f"{name}: {value}")
        lines.append("")

        header_bytes = "\r\n".join(lines).encode("utf-8") + b"\r\n"
        return header_bytes + self.body


class ResponseBuilder:
    """
    Fluent builder for constructing HTTP responses.

        response = (ResponseBuilder()
            .status(HTTPStatus.NOT_FOUND)
            .header("Server", "StaticServer/1.0")
            .text("Requested URL does not exist")
            .build())

    Every method except build() returns ``self``.
    """

    def __init__(self):
        self._status = HTTPStatus.OK
        self._headers: Dict[str, str] = {}
        self._body: bytes = b""

    def status(self, status: HTTPStatus) -> "ResponseBuilder":
        self._status = status
        return self

    def header(self, name: str, value: str) -> "ResponseBuilder":
        """Add a single response header (appended in call order)."""
        self._headers[name] = value
        return self

    def headers(self, headers: Dict[str, str]) -> "ResponseBuilder":
        """Add several headers, keeping the mapping's order."""
        self._headers.update(headers)
        return self

    def content_type(self, content_type: str) -> "ResponseBuilder":
        return self.header("Content-Type", content_type)

    def body(self, body: Union[str, bytes]) -> "ResponseBuilder":
        """Set the raw body (strings encoded as UTF-8)."""
        if isinstance(body, str):
            self._body = body.encode("utf-8")
        else:
            self._body = body
        return self

    def text(self, text: str, content_type: str = "text/plain; charset=utf-8") -> "ResponseBuilder":
        """Set a text body and its Content-Type."""
        self.content_type(content_type)
        return self.body(text)

    def build(self) -> HTTPResponse:
        """Construct the HTTPResponse."""
        return HTTPResponse(
            status=self._status,
            headers=self._headers,
            body=self._body,
        )


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================

NOT_FOUND_MESSAGE = "Requested URL does not exist"


def not_found(server_name: str = DEFAULT_SERVER_NAME) -> HTTPResponse:
    """
    Create the 404 Not Found response.

    Headers go out as Server, Content-Type, Date, Content-Length.
    """
    body = NOT_FOUND_MESSAGE.encode("iso-8859-1")
    return (ResponseBuilder()
        .status(HTTPStatus.NOT_FOUND)
        .header("Server", server_name)
        .content_type("text/html; charset=iso-8859-1")
        .header("Date", format_legacy_date(utc_now()))
        .header("Content-Length", str(len(body)))
        .body(body)
        .build())


def bad_request(message: str = "Bad Request", server_name: str = DEFAULT_SERVER_NAME) -> HTTPResponse:
    """
    Create a 400 Bad Request response with a plain-text explanation.

    Used for request heads the parser rejected.
    """
    return (ResponseBuilder()
        .status(HTTPStatus.BAD_REQUEST)
        .header("Server", server_name)
        .text(f"Bad Request: {message}\n")
        .build())
