"""
=============================================================================
CONDITIONAL REQUEST EVALUATION
=============================================================================

Decides the status of a file response from the request's conditional
header, the file's Etag and its last-modification time.

    ┌────────────────────────────────────────────────────────────────────┐
    │  PRIORITY (first rule that applies wins)                           │
    ├────────────────────────────────────────────────────────────────────┤
    │                                                                    │
    │  1. If-Match without "*" and without the current Etag   → 412      │
    │  2. If-None-Match equal to the current Etag             → 304      │
    │     If-Modified-Since strictly after Last-Modified      → 304      │
    │  3. anything else (including no condition at all)       → 200      │
    │                                                                    │
    └────────────────────────────────────────────────────────────────────┘

Only files are evaluated. A missing path is 404 and a directory is 200
whatever the request says; the static handler takes care of those.

Comparison of If-Modified-Since is done on full datetimes (no truncation
to seconds). A threshold exactly equal to Last-Modified is NOT after it,
so the file is sent again.

=============================================================================
"""

from datetime import datetime
from typing import Optional

from .request import Conditional, IfMatch, IfModifiedSince, IfNoneMatch
from .status_codes import HTTPStatus


def evaluate(
    etag: str,
    last_modified: datetime,
    conditional: Optional[Conditional],
) -> HTTPStatus:
    """
    Evaluate a conditional request against a file.

    Args:
        etag: Current entity tag of the file.
        last_modified: Aware UTC modification time of the file.
        conditional: The request's active condition, if any.

    Returns:
        HTTPStatus.PRECONDITION_FAILED, HTTPStatus.NOT_MODIFIED or
        HTTPStatus.OK.
    """
    if isinstance(conditional, IfMatch):
        if not conditional.is_wildcard and etag not in conditional.tags:
            return HTTPStatus.PRECONDITION_FAILED

    elif isinstance(conditional, IfNoneMatch):
        if conditional.tag == etag:
            return HTTPStatus.NOT_MODIFIED

    elif isinstance(conditional, IfModifiedSince):
        if conditional.threshold > last_modified:
            return HTTPStatus.NOT_MODIFIED

    return HTTPStatus.OK
