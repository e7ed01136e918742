"""
=============================================================================
HTTP PROTOCOL IMPLEMENTATION
=============================================================================

Everything between raw bytes and the static handler: parsing the request
head, deciding conditional outcomes, picking MIME types, compressing file
bodies and serializing responses.

    ┌─────────────────────────────────────────────────────────────────────┐
    │ request.py       bytes → HTTPRequest (method, path, conditional)    │
    │ dates.py         legacy "Tue Oct 19 21:42:22 CEST 2021" date codec  │
    │ conditional.py   Etag + Last-Modified + condition → 200/304/412     │
    │ mime_types.py    file name → Content-Type (+ Content-Disposition)   │
    │ compression.py   gzip body and its MD5 Etag                         │
    │ response.py      HTTPResponse → bytes                               │
    │ status_codes.py  the five status codes this server emits            │
    └─────────────────────────────────────────────────────────────────────┘

Wire rules shared by all of them:
- Lines end with CRLF on output; LF alone is accepted on input
- Header names are case-insensitive on input
- Headers are written in the order they were set

=============================================================================
"""

from .request import (
    HTTPRequest,
    RequestParser,
    Method,
    IfMatch,
    IfNoneMatch,
    IfModifiedSince,
    HTTPParseError,
    MalformedRequestLine,
    MalformedDate,
)
from .response import HTTPResponse, ResponseBuilder, bad_request, not_found
from .status_codes import HTTPStatus
from .mime_types import get_mime_type, get_content_headers
from .compression import gzip_compress, compute_etag
from .conditional import evaluate
from .dates import parse_legacy_date, format_legacy_date

__all__ = [
    # Request parsing
    "HTTPRequest",
    "RequestParser",
    "Method",
    "IfMatch",
    "IfNoneMatch",
    "IfModifiedSince",
    "HTTPParseError",
    "MalformedRequestLine",
    "MalformedDate",

    # Responses
    "HTTPResponse",
    "ResponseBuilder",
    "bad_request",
    "not_found",
    "HTTPStatus",

    # Representation
    "get_mime_type",
    "get_content_headers",
    "gzip_compress",
    "compute_etag",
    "evaluate",
    "parse_legacy_date",
    "format_legacy_date",
]
