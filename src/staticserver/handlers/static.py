"""
=============================================================================
STATIC CONTENT HANDLER
=============================================================================

Builds the response for one parsed request: a 404, a directory listing,
or a file answered with 200, 304 or 412.

=============================================================================
DECISION FLOW
=============================================================================

    HTTPRequest
        │
        ▼
    PathResolver.resolve(path)
        │
        ├── Missing ───────────────────────────────────► 404 text
        │
        ├── Directory ─────────────────────────────────► 200 HTML listing
        │   (conditional headers are ignored)
        │
        └── File ──► evaluate(etag, last_modified, conditional)
                        │
                        ├── If-Match failed ───────────► 412, no body
                        ├── not modified ──────────────► 304, no body
                        └── otherwise ─────────────────► 200, gzip body

    Any method other than GET gets the same status and headers with the
    body removed.

=============================================================================
HEADER ORDER PER OUTCOME
=============================================================================

    404        Server, Content-Type, Date, Content-Length
    listing    Server, Content-Type, Date, Content-Length
    412        Date, Server, Etag, Content-Length: 0
    304        Server, Etag, Content-Type[, Content-Disposition], Date
    200        Last-Modified, Content-Encoding, Content-Length,
               Content-Type[, Content-Disposition], Date, Etag, Server

=============================================================================
DIRECTORY LISTING
=============================================================================

    GET /docs

    <html><a href='..'>> ..</a><br>
    > <a href='/docs/a.txt/'><i>a.txt</i></a><br>
    > <a href='/docs/sub/'><i>sub</i></a><br>
    </html>

Every entry links with a trailing slash, files included; the file is
still found because trailing slashes are ignored when resolving. For the
root listing the links are relative ("a.txt/").

=============================================================================
INTERVIEW QUESTIONS ABOUT STATIC FILES
=============================================================================

Q: "What's the difference between Etag and Last-Modified?"
A: "The Etag is a hash of the bytes we send, so it only changes when the
   content changes. Last-Modified is the file timestamp; touching a
   file changes it without changing the content."

Q: "Why can If-Match produce 412 but not 304?"
A: "If-Match is a precondition for the client's own action ('only if
   it's still the version I saw'). When it fails there's nothing cached
   to fall back on, so the answer is an error, not 'use your copy'."

=============================================================================
"""

import html
import logging
from typing import Iterable
from urllib.parse import quote

from ..http.conditional import evaluate
from ..http.dates import format_legacy_date, utc_now
from ..http.mime_types import get_content_headers
from ..http.request import HTTPRequest
from ..http.response import (
    DEFAULT_SERVER_NAME,
    HTTPResponse,
    ResponseBuilder,
    not_found,
)
from ..http.status_codes import HTTPStatus
from .resources import Directory, File, Missing, PathResolver


logger = logging.getLogger(__name__)

LISTING_CONTENT_TYPE = "text/html; charset=utf-8"


def render_directory_listing(request_path: str, children: Iterable[str]) -> str:
    """
    Render the HTML listing of a directory.

    Args:
        request_path: Decoded path the client asked for, e.g. "/docs".
        children: Child names in display order.

    Returns:
        The listing document. Links are percent-encoded and labels
        HTML-escaped. Bytes of a name that are not UTF-8 keep their
        original value in the link and show as U+FFFD in the label.
    """
    prefix = "" if request_path == "/" else request_path.rstrip("/") + "/"

    lines = ["<html><a href='..'>> ..</a><br>\n"]
    for child in children:
        # names that are not valid UTF-8 on disk arrive as lone surrogates
        raw = f"{prefix}{child}/".encode("utf-8", "surrogateescape")
        href = quote(raw)
        label = html.escape(child.encode("utf-8", "surrogateescape").decode("utf-8", "replace"))
        lines.append(f"> <a href='{href}'><i>{label}</i></a><br>\n")
    lines.append("</html>\n")

    return "".join(lines)


class StaticFileHandler:
    """
    Serves a directory tree over HTTP.

    Usage:

        handler = StaticFileHandler(PathResolver("/srv/public"))
        response = handler.handle(request)
        conn.send_response(response.to_bytes())

    Args:
        resolver: Maps request paths to resources.
        server_name: Value of the Server header.
    """

    def __init__(self, resolver: PathResolver, server_name: str = DEFAULT_SERVER_NAME):
        self.resolver = resolver
        self.server_name = server_name

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        """
        Build the response for ``request``.

        Raises:
            OSError: If an existing file or directory cannot be read.
        """
        entry = self.resolver.resolve(request.path)

        if isinstance(entry, Missing):
            logger.info(f"Not found: {request.path}")
            response = not_found(self.server_name)
        elif isinstance(entry, Directory):
            logger.info(f"Serving directory: {request.path}")
            response = self._listing(entry)
        else:
            response = self._file(entry, request)

        if not request.sends_body:
            return response.without_body()
        return response

    def _listing(self, directory: Directory) -> HTTPResponse:
        body = render_directory_listing(directory.path, directory.children).encode("utf-8")
        return (ResponseBuilder()
            .status(HTTPStatus.OK)
            .header("Server", self.server_name)
            .content_type(LISTING_CONTENT_TYPE)
            .header("Date", format_legacy_date(utc_now()))
            .header("Content-Length", str(len(body)))
            .body(body)
            .build())

    def _file(self, file: File, request: HTTPRequest) -> HTTPResponse:
        status = evaluate(file.etag, file.last_modified, request.conditional)

        if status is HTTPStatus.PRECONDITION_FAILED:
            logger.info(f"Precondition failed: {request.path}")
            return (ResponseBuilder()
                .status(status)
                .header("Date", format_legacy_date(utc_now()))
                .header("Server", self.server_name)
                .header("Etag", file.etag)
                .header("Content-Length", "0")
                .build())

        content_headers = get_content_headers(file.name)

        if status is HTTPStatus.NOT_MODIFIED:
            logger.info(f"Not modified: {request.path}")
            return (ResponseBuilder()
                .status(status)
                .header("Server", self.server_name)
                .header("Etag", file.etag)
                .headers(content_headers)
                .header("Date", format_legacy_date(utc_now()))
                .build())

        logger.info(f"Serving file: {request.path}")
        return (ResponseBuilder()
            .status(HTTPStatus.OK)
            .header("Last-Modified", format_legacy_date(file.last_modified))
            .header("Content-Encoding", "gzip")
            .header("Content-Length", str(len(file.gzipped)))
            .headers(content_headers)
            .header("Date", format_legacy_date(utc_now()))
            .header("Etag", file.etag)
            .header("Server", self.server_name)
            .body(file.gzipped)
            .build())
