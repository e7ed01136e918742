"""
=============================================================================
MIME TYPE DETECTION
=============================================================================

Maps a file extension to the Content-Type header sent with the file.

=============================================================================
HOW THE LOOKUP WORKS
=============================================================================

Instead of one big extension -> type dictionary, extensions are grouped by
top-level media type and the subtype is simply the extension itself:

    ┌──────────────┬──────────────────────────────────┬──────────────────┐
    │  CATEGORY    │  EXTENSIONS                      │  RESULT          │
    ├──────────────┼──────────────────────────────────┼──────────────────┤
    │  image       │  png jpg jpeg gif svg            │  image/<ext>     │
    │  text        │  txt html ics css csv rtf        │  text/<ext>      │
    │  application │  pdf zip xml 7z json csv rtf     │  application/<ext│
    │  video       │  mp4 mpeg webm                   │  video/<ext>     │
    └──────────────┴──────────────────────────────────┴──────────────────┘

Categories are checked top to bottom and the first hit wins. csv and rtf
appear in both text and application; they resolve to text/csv and text/rtf
because text comes first. Keep the table order when editing it.

=============================================================================
UNKNOWN EXTENSIONS (RFC 2046)
=============================================================================

RFC 2046 section 4.5.1 says unknown data should be treated as
application/octet-stream. Browsers offer such responses as downloads, and
we add a Content-Disposition header so the download keeps its file name:

    Content-Type: application/octet-stream
    Content-Disposition: attachment; filename=archive.xyz

A name that is not a plain token (spaces, quotes, control characters,
non-ASCII) is sent RFC 6266 style instead: a quoted ASCII fallback with
every unsafe character replaced by "_", plus the exact name
percent-encoded as UTF-8. Nothing from the file name can end the header
line early:

    Content-Disposition: attachment; filename="r_sum_ 2.xyz";
                         filename*=UTF-8''r%C3%A9sum%C3%A9%202.xyz

=============================================================================
"""

import re
from typing import Dict, FrozenSet, Optional, Tuple
from urllib.parse import quote


MIME_CATEGORIES: Tuple[Tuple[str, FrozenSet[str]], ...] = (
    ("image", frozenset({"png", "jpg", "jpeg", "gif", "svg"})),
    ("text", frozenset({"txt", "html", "ics", "css", "csv", "rtf"})),
    ("application", frozenset({"pdf", "zip", "xml", "7z", "json", "csv", "rtf"})),
    ("video", frozenset({"mp4", "mpeg", "webm"})),
)

# application/octet-stream = "I don't know what this is, treat as binary"
DEFAULT_MIME_TYPE = "application/octet-stream"

# RFC 7230 token characters
_TOKEN_PATTERN = re.compile(r"[!#$%&'*+.^_`|~0-9A-Za-z-]+")


def get_extension(filename: str) -> str:
    """
    Get the lowercase text after the last dot of a file name.

    A name without a dot is returned whole, lowercased.

    Examples:
        >>> get_extension("Figure_3.PNG")
        'png'
        >>> get_extension("archive.tar.gz")
        'gz'
    """
    return filename.rsplit(".", 1)[-1].lower()


def get_mime_type(extension: str) -> Optional[str]:
    """
    Look up the MIME type for an extension.

    Returns:
        "<category>/<extension>" for the first matching category, or None
        when no category lists the extension.
    """
    extension = extension.lower()
    for category, extensions in MIME_CATEGORIES:
        if extension in extensions:
            return f"{category}/{extension}"
    return None


def content_disposition(filename: str) -> str:
    """
    Build an attachment Content-Disposition value for ``filename``.

    Plain token names are sent bare, as before. Anything else gets a quoted
    ASCII fallback and a percent-encoded ``filename*`` parameter, so CR, LF
    and quotes in a name never reach the header line.

    Examples:
        >>> content_disposition("data.xyz")
        'attachment; filename=data.xyz'
        >>> content_disposition("a b.xyz")
        'attachment; filename="a b.xyz"; filename*=UTF-8\'\'a%20b.xyz'
    """
    if _TOKEN_PATTERN.fullmatch(filename):
        return f"attachment; filename={filename}"

    fallback = "".join(
        char if " " <= char <= "~" and char not in '"\\' else "_"
        for char in filename
    )
    # surrogateescape keeps names that were not valid UTF-8 on disk
    encoded = quote(filename.encode("utf-8", "surrogateescape"), safe="")
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{encoded}"


def get_content_headers(filename: str) -> Dict[str, str]:
    """
    Build the content headers for serving ``filename``.

    Args:
        filename: Bare file name (no directories), e.g. "invoice.pdf".

    Returns:
        Ordered mapping with Content-Type, plus Content-Disposition when
        the extension is unknown.

    Examples:
        >>> get_content_headers("invoice.pdf")
        {'Content-Type': 'application/pdf'}
        >>> get_content_headers("data.xyz")
        {'Content-Type': 'application/octet-stream', 'Content-Disposition': 'attachment; filename=data.xyz'}
    """
    mime_type = get_mime_type(get_extension(filename))
    if mime_type is not None:
        return {"Content-Type": mime_type}

    return {
        "Content-Type": DEFAULT_MIME_TYPE,
        "Content-Disposition": content_disposition(filename),
    }
