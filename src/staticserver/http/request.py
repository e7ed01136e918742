"""
=============================================================================
HTTP REQUEST PARSER
=============================================================================

Parses the head of an HTTP/1.1 request (request line plus header lines)
into an immutable HTTPRequest. The static server reads exactly one request
per connection and never reads a body, so only the head is parsed.

=============================================================================
WHAT THE SERVER LOOKS AT
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                     │
    │   GET /docs/Read%20Me.txt?v=2 HTTP/1.1\r\n                          │
    │   ─┬─ ───────────┬──────────── ────┬───                             │
    │    │             │                 │                                │
    │  Method    request-target      Version (optional, HTTP/1.1)         │
    │    │             │                                                  │
    │    │             └── drop "?v=2", percent-decode                    │
    │    │                 → path "/docs/Read Me.txt"                     │
    │    └── must be a known method, exact case                           │
    │                                                                     │
    │   Host: localhost:1337\r\n                  stored, not used        │
    │   If-None-Match: 9a0364b9e99bb480dd25e1f0\r\n  → conditional        │
    │   \r\n                                      end of head             │
    │                                                                     │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
CONDITIONAL HEADERS
=============================================================================

Three headers make a request conditional:

    If-None-Match: <tag>          → IfNoneMatch      (304 when tag matches)
    If-Match: <tag>, <tag>, *     → IfMatch          (412 when none match)
    If-Modified-Since: <date>     → IfModifiedSince  (304 when not modified)

Only ONE condition is kept per request. Header lines are scanned top to
bottom and each conditional header replaces whatever condition was found
before it, so the last conditional header line wins:

    If-Match: abc
    If-Modified-Since: Tue Oct 19 21:42:22 CEST 2021
        → request.conditional == IfModifiedSince(2021-10-19 19:42:22 UTC)

Tags are normalized: whitespace, a weak "W/" prefix and surrounding double
quotes are removed, so "abc", W/"abc" and abc all compare equal.

=============================================================================
INTERVIEW QUESTIONS ABOUT HTTP PARSING
=============================================================================

Q: "Why percent-decode with errors='strict'?"
A: "A path like /%FF is not valid UTF-8. Replacing the byte with U+FFFD
   would quietly map it to a different file name, so we reject the request
   as malformed instead."

Q: "Why doesn't '+' become a space?"
A: "'+' means space only in application/x-www-form-urlencoded query
   strings. In a path it is a literal plus sign: /a+b.txt is a file
   literally named 'a+b.txt'."

Q: "What if If-Modified-Since cannot be parsed?"
A: "The whole request fails with MalformedDate (400). Silently ignoring
   the header would make the client believe its cache was validated."

=============================================================================
"""

import re
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, Optional, Tuple, Union
from urllib.parse import unquote

from .dates import parse_legacy_date


# =============================================================================
# ERRORS
# =============================================================================

class HTTPParseError(Exception):
    """
    Raised when HTTP request parsing fails.

    Carries the HTTP status code that should be returned to the client.
    Every parse failure of this server is a 400 Bad Request.
    """

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code  # HTTP status to return


class MalformedRequestLine(HTTPParseError):
    """Unknown method, missing target, bad escapes, empty or oversized head."""


class MalformedDate(HTTPParseError):
    """If-Modified-Since value that does not follow the legacy date layout."""


# =============================================================================
# REQUEST MODEL
# =============================================================================

class Method(str, Enum):
    """
    HTTP request methods.

    Subclassing str lets a Method compare equal to its name, so
    ``request.method == "GET"`` works as well as ``Method.GET``.
    """

    GET = "GET"
    HEAD = "HEAD"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    CONNECT = "CONNECT"
    OPTIONS = "OPTIONS"
    TRACE = "TRACE"
    PATCH = "PATCH"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class IfMatch:
    """If-Match: serve only if the current Etag is one of ``tags`` (or "*")."""

    tags: Tuple[str, ...]

    @property
    def is_wildcard(self) -> bool:
        return "*" in self.tags


@dataclass(frozen=True)
class IfNoneMatch:
    """If-None-Match: answer 304 if the current Etag equals ``tag``."""

    tag: str


@dataclass(frozen=True)
class IfModifiedSince:
    """If-Modified-Since: answer 304 if ``threshold`` is after Last-Modified."""

    threshold: datetime


Conditional = Union[IfMatch, IfNoneMatch, IfModifiedSince]


@dataclass(frozen=True)
class HTTPRequest:
    """
    A parsed request head.

    =========================================================================
    ATTRIBUTES
    =========================================================================

        method:         Method enum member, e.g. Method.GET
        path:           Percent-decoded path, query string removed, never
                        empty ("/" at minimum)
        target:         Raw request-target as sent, for logging
        version:        "HTTP/1.1" unless the request line said otherwise
        conditional:    The active IfMatch / IfNoneMatch / IfModifiedSince,
                        or None
        headers:        All header lines, lowercase names. Only used for
                        access logging.
        client_address: (ip, port) of the peer

    =========================================================================
    """

    method: Method
    path: str
    target: str = ""
    version: str = "HTTP/1.1"
    conditional: Optional[Conditional] = None
    headers: Dict[str, str] = field(default_factory=dict, compare=False)
    client_address: Tuple[str, int] = ("", 0)

    @property
    def sends_body(self) -> bool:
        """Only GET responses carry a body; every other method gets headers."""
        return self.method is Method.GET

    @property
    def user_agent(self) -> str:
        return self.headers.get("user-agent", "")


# =============================================================================
# PARSER
# =============================================================================

def normalize_tag(raw: str) -> str:
    """
    Strip whitespace, a weak ``W/`` prefix and surrounding quotes from a tag.

    Examples:
        >>> normalize_tag(' W/"9a0364b9" ')
        '9a0364b9'
        >>> normalize_tag('*')
        '*'
    """
    tag = raw.strip()
    if tag[:2] in ("W/", "w/"):
        tag = tag[2:]
    if len(tag) >= 2 and tag[0] == tag[-1] == '"':
        tag = tag[1:-1]
    return tag


class RequestParser:
    """
    Parses raw request-head bytes into HTTPRequest objects.

    ==========================================================================
    PARSER STEPS
    ==========================================================================

        Raw head bytes
              │
              ▼
        1. Decode as UTF-8 (bad bytes replaced), split on \\r\\n or \\n
        2. Request line: METHOD TARGET [VERSION]
              │  unknown method / no target → MalformedRequestLine
              ▼
        3. Target: drop ?query and #fragment, percent-decode (strict)
              │  invalid UTF-8 escape → MalformedRequestLine
              ▼
        4. Header lines until the first empty line
              │  conditional headers → IfMatch / IfNoneMatch / IfModifiedSince
              │  bad If-Modified-Since → MalformedDate
              ▼
        HTTPRequest (frozen)

    ==========================================================================
    """

    LINE_SPLIT_PATTERN = re.compile(r"\r?\n")
    HEADER_PATTERN = re.compile(r"^([^:]+):\s*(.*)$")

    def __init__(self, max_request_size: int = 64 * 1024):
        """
        Args:
            max_request_size: Largest accepted head, in bytes.
        """
        self.max_request_size = max_request_size

    def parse(
        self,
        data: bytes,
        client_address: Tuple[str, int] = ("", 0)
    ) -> HTTPRequest:
        """
        Parse a raw request head.

        Args:
            data: Bytes read from the socket, up to and including the blank
                  line that ends the head (a missing blank line is accepted).
            client_address: Client's (ip, port) tuple for logging.

        Returns:
            Parsed HTTPRequest.

        Raises:
            MalformedRequestLine: Bad request line, empty or oversized head.
            MalformedDate: Unparseable If-Modified-Since.
        """
        if len(data) > self.max_request_size:
            raise MalformedRequestLine(f"Request head too large: {len(data)} bytes")

        text = data.decode("utf-8", errors="replace")
        return self.parse_lines(self.LINE_SPLIT_PATTERN.split(text), client_address)

    def parse_lines(
        self,
        lines: list[str],
        client_address: Tuple[str, int] = ("", 0)
    ) -> HTTPRequest:
        """Parse an already split head: request line first, then header lines."""
        if not lines or not lines[0].strip():
            raise MalformedRequestLine("Empty request")

        method, target, path, version = self._parse_request_line(lines[0])
        headers, conditional = self._parse_headers(lines[1:])

        return HTTPRequest(
            method=method,
            path=path,
            target=target,
            version=version,
            conditional=conditional,
            headers=headers,
            client_address=client_address,
        )

    def _parse_request_line(self, line: str) -> Tuple[Method, str, str, str]:
        """
        Parse ``METHOD SP TARGET [SP VERSION]``.

        Returns:
            Tuple of (method, raw target, decoded path, version).
        """
        tokens = line.split()
        if len(tokens) < 2:
            raise MalformedRequestLine(f"Invalid request line: {line!r}")

        try:
            method = Method(tokens[0])
        except ValueError:
            raise MalformedRequestLine(f"Invalid method: {tokens[0]!r}") from None

        target = tokens[1]
        version = tokens[2] if len(tokens) > 2 else "HTTP/1.1"

        # "/a/b?x=1#top" → "/a/b"
        raw_path = target.split("?", 1)[0].split("#", 1)[0]
        try:
            path = unquote(raw_path, encoding="utf-8", errors="strict")
        except UnicodeDecodeError as e:
            raise MalformedRequestLine(f"Invalid escape in path {raw_path!r}: {e}") from None

        return method, target, path or "/", version

    def _parse_headers(
        self,
        lines: list[str]
    ) -> Tuple[Dict[str, str], Optional[Conditional]]:
        """
        Collect header lines and pick out the conditional one.

        Lines without a colon are skipped. Repeated names are joined with
        ", " in ``headers``.
        """
        headers: Dict[str, str] = {}
        conditional: Optional[Conditional] = None

        for line in lines:
            if not line:
                break  # End of head

            match = self.HEADER_PATTERN.match(line)
            if not match:
                continue

            name, value = match.groups()
            name = name.strip().lower()
            value = value.strip()

            if name in headers:
                headers[name] += ", " + value
            else:
                headers[name] = value

            if name == "if-none-match":
                conditional = IfNoneMatch(normalize_tag(value))
            elif name == "if-match":
                conditional = IfMatch(tuple(normalize_tag(tag) for tag in value.split(",")))
            elif name == "if-modified-since":
                try:
                    conditional = IfModifiedSince(parse_legacy_date(value))
                except ValueError as e:
                    raise MalformedDate(f"Invalid If-Modified-Since: {e}") from None

        return headers, conditional

