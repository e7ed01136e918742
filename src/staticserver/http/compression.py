"""
=============================================================================
GZIP ENCODING AND ENTITY TAGS
=============================================================================

Every file is sent gzip-compressed (Content-Encoding: gzip) and the
compressed bytes double as the input for the entity tag:

    file bytes ──gzip_compress()──► gzip stream ──compute_etag()──► Etag
                                        │
                                        └──────────► response body

=============================================================================
WHY A FIXED GZIP MTIME?
=============================================================================

A gzip header carries a 4-byte modification time. gzip.compress() fills it
with the current time by default, which means compressing the same file
twice a second apart yields different bytes and therefore a different Etag.
Pinning mtime to 0 makes the stream a pure function of the content and
the compression level, so a client revalidating an unchanged file gets the
same tag back.

=============================================================================
WHY MD5?
=============================================================================

The tag only has to change when the representation changes; it is not a
security boundary. MD5 is fast, its 32 hex characters are easy to copy
into a header, and it is flagged ``usedforsecurity=False`` so it keeps
working on FIPS-restricted builds.

=============================================================================
INTERVIEW QUESTIONS
=============================================================================

Q: "Why hash the compressed bytes and not the raw file?"
A: "The Etag identifies the representation that goes on the wire. Here the
   only representation is the gzip one, so hashing exactly those bytes
   means equal tags always imply byte-identical bodies."

Q: "What does buffering the whole file cost?"
A: "Memory proportional to the file size per in-flight request, twice over
   for a moment (raw plus compressed). Fine for documents and images,
   not for multi-gigabyte media."

=============================================================================
"""

import gzip
import hashlib


DEFAULT_COMPRESSION_LEVEL = 6


def gzip_compress(data: bytes, level: int = DEFAULT_COMPRESSION_LEVEL) -> bytes:
    """
    Compress a whole payload into a gzip stream.

    Args:
        data: Raw file content.
        level: zlib compression level, 0 (store) to 9 (smallest).

    Returns:
        Complete gzip member (header, deflate data, CRC32 and size trailer).
    """
    return gzip.compress(data, compresslevel=level, mtime=0)


def compute_etag(payload: bytes) -> str:
    """
    Compute the entity tag for a response body.

    Returns:
        32-character lowercase MD5 hex digest, sent unquoted.
    """
    return hashlib.md5(payload, usedforsecurity=False).hexdigest()
