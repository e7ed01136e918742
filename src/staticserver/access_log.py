"""
=============================================================================
ACCESS LOG
=============================================================================

One line per answered request, in an Apache-like layout:

    127.0.0.1 - - [19/Oct/2021:21:42:22 +0000] "GET /a.txt" 200 37 1.42ms
    ────┬────       ───────────┬──────────────  ─────┬────  ─┬─ ┬─ ──┬───
        │                      │                     │       │  │    │
    client IP              timestamp          method + path  │  │  duration
                                                         status │
                                                          body bytes sent

Lines go to the "staticserver.access" logger, separate from the
application loggers, so they can be routed to their own file:

    logging.getLogger("staticserver.access").addHandler(file_handler)

Every record also carries the structured form in ``record.access``
(see RequestLog.to_dict) for handlers that emit JSON.

=============================================================================
"""

import logging
import time
from dataclasses import dataclass

from .http.request import HTTPRequest
from .http.response import HTTPResponse


logger = logging.getLogger("staticserver.access")


@dataclass
class RequestLog:
    """
    Structured log entry for a request.

    =========================================================================
    FIELDS
    =========================================================================

    request_id:     Connection id, ties the line to other log lines
    method:         HTTP method
    path:           Decoded request path
    client_ip:      Client's IP address
    user_agent:     Client identifier, "-" when absent
    status_code:    HTTP status sent
    content_length: Body bytes actually sent (0 for HEAD, 304, 412)
    duration_ms:    Time from parsed request to response built
    timestamp:      When the request was answered

    =========================================================================
    """

    request_id: str
    method: str
    path: str
    client_ip: str
    user_agent: str
    status_code: int
    content_length: int
    duration_ms: float
    timestamp: str

    @classmethod
    def build(
        cls,
        request: HTTPRequest,
        response: HTTPResponse,
        duration_ms: float,
        request_id: str = "-",
    ) -> "RequestLog":
        return cls(
            request_id=request_id,
            method=str(request.method),
            path=request.path,
            client_ip=request.client_address[0] or "-",
            user_agent=request.user_agent or "-",
            status_code=int(response.status),
            content_length=len(response.body),
            duration_ms=duration_ms,
            timestamp=time.strftime("%d/%b/%Y:%H:%M:%S %z"),
        )

    def to_dict(self) -> dict:
        """Convert to a dictionary for JSON serialization."""
        return {
            "request_id": self.request_id,
            "method": self.method,
            "path": self.path,
            "client_ip": self.client_ip,
            "user_agent": self.user_agent,
            "status_code": self.status_code,
            "content_length": self.content_length,
            "duration_ms": round(self.duration_ms, 2),
            "timestamp": self.timestamp,
        }

    def to_text(self) -> str:
        """Format as an Apache-style access log line."""
        return (
            f'{self.client_ip} - - [{self.timestamp}] '
            f'"{self.method} {self.path}" {self.status_code} '
            f'{self.content_length} {self.duration_ms:.2f}ms'
        )


def log_request(entry: RequestLog, level: int = logging.INFO) -> None:
    """Emit ``entry`` on the access logger."""
    logger.log(level, entry.to_text(), extra={"access": entry.to_dict()})
