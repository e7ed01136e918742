"""
=============================================================================
HTTP STATUS CODES
=============================================================================

The static server answers with a deliberately small set of status codes.
Every code it can emit is listed here together with its reason phrase.

    ┌────────┬───────────────────────────────────────────────────────────┐
    │  200   │ OK                   - Listing or file served             │
    │  304   │ Not Modified         - Client copy is still current       │
    │  400   │ Bad Request          - Request line or date unparseable   │
    │  404   │ Not Found            - Path does not exist under the root │
    │  412   │ Precondition Failed  - If-Match did not match the Etag    │
    └────────┴───────────────────────────────────────────────────────────┘

The reason phrase is informational only (RFC 7230 section 3.1.2), but it is
always sent so that the status line reads naturally in logs and telnet
sessions.

=============================================================================
"""

from enum import IntEnum


class HTTPStatus(IntEnum):
    """
    HTTP status codes used by the server.

    IntEnum lets a status compare equal to its number, so both
    ``response.status == 404`` and ``response.status == HTTPStatus.NOT_FOUND``
    work, and f-strings render the bare number.
    """

    OK = 200                    # Listing or file content
    NOT_MODIFIED = 304          # Conditional GET, cached copy is valid
    BAD_REQUEST = 400           # Unparseable request line or header
    NOT_FOUND = 404             # Nothing at the requested path
    PRECONDITION_FAILED = 412   # If-Match failed

    def __str__(self) -> str:
        return str(self.value)

    @property
    def phrase(self) -> str:
        """
        Get the reason phrase for this status code.

            HTTP/1.1 412 Precondition Failed
                     ─── ───────────────────
                      │           │
                      │           └── Reason phrase
                      └────────────── Status code
        """
        return _STATUS_PHRASES[self]

    @property
    def allows_body(self) -> bool:
        """
        Whether a response with this status may carry a payload.

        A 304 never has a body, and its Content-Length (if any) would
        describe the cached representation, not the message.
        """
        return self is not HTTPStatus.NOT_MODIFIED


_STATUS_PHRASES = {
    HTTPStatus.OK: "OK",
    HTTPStatus.NOT_MODIFIED: "Not Modified",
    HTTPStatus.BAD_REQUEST: "Bad Request",
    HTTPStatus.NOT_FOUND: "Not Found",
    HTTPStatus.PRECONDITION_FAILED: "Precondition Failed",
}
