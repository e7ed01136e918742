"""
=============================================================================
PATH RESOLUTION
=============================================================================

Turns a decoded request path into exactly one of three resource kinds:

    ┌─────────────┬─────────────────────────────────────────────────────────┐
    │ Missing     │ nothing there, outside the root, or not a regular file  │
    │             │ or directory (socket, FIFO, device)                     │
    │ Directory   │ a directory; carries its child names, sorted            │
    │ File        │ a regular file; carries its gzip body and Etag          │
    └─────────────┴─────────────────────────────────────────────────────────┘

=============================================================================
SECURITY: PATH TRAVERSAL
=============================================================================

    GET /../../etc/passwd HTTP/1.1

    root      = /srv/public
    joined    = /srv/public/../../etc/passwd
    normpath  = /etc/passwd          ← not under /srv/public → Missing (404)

The check is lexical (os.path.normpath, no symlink resolution): ".."
segments cannot climb out of the root, while a symlink placed inside the
root by its owner is still followed. The refused path answers 404, not
403, so probing reveals nothing about what exists outside the root.

=============================================================================
"""

import logging
import os
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional, Tuple, Union

from ..core.filesystem import FileSystem, LocalFileSystem
from ..http.compression import DEFAULT_COMPRESSION_LEVEL, compute_etag, gzip_compress
from ..http.mime_types import get_extension


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Missing:
    """Nothing servable at ``path``."""
    path: str


@dataclass(frozen=True)
class Directory:
    """A directory and the names of its immediate children."""
    path: str
    children: Tuple[str, ...]


@dataclass(frozen=True)
class File:
    """
    A regular file, ready to send.

    Attributes:
        path: Request path that resolved to this file.
        name: Bare file name, used for Content-Disposition.
        extension: Lowercase extension, used for Content-Type.
        last_modified: Aware UTC modification time.
        gzipped: Whole file content, gzip-compressed.
        etag: MD5 hex digest of ``gzipped``.
    """
    path: str
    name: str
    extension: str
    last_modified: datetime
    gzipped: bytes
    etag: str


ResourceEntry = Union[Missing, Directory, File]


class PathResolver:
    """
    Maps request paths to ResourceEntry values under a served root.

    Args:
        root: Directory being served.
        filesystem: Filesystem to query. Defaults to the local disk.
        compression_level: gzip level for file bodies.
        confine_to_root: Treat paths that normalize outside ``root`` as
                         missing.
    """

    def __init__(
        self,
        root: Union[str, Path],
        filesystem: Optional[FileSystem] = None,
        compression_level: int = DEFAULT_COMPRESSION_LEVEL,
        confine_to_root: bool = True,
    ):
        self.root = Path(os.path.abspath(root))
        self.filesystem = filesystem or LocalFileSystem()
        self.compression_level = compression_level
        self.confine_to_root = confine_to_root

    def locate(self, request_path: str) -> Optional[Path]:
        """
        Map a decoded request path to a filesystem path.

        Leading and trailing slashes are ignored, so "/", "" and "//" all
        map to the root itself.

        Returns:
            The normalized path, or None if it escapes the root while
            confinement is on.
        """
        relative = request_path.strip("/")
        candidate = Path(os.path.normpath(os.path.join(self.root, relative)))

        if self.confine_to_root and not candidate.is_relative_to(self.root):
            logger.warning(f"Path traversal attempt: {request_path!r}")
            return None

        return candidate

    def resolve(self, request_path: str) -> ResourceEntry:
        """
        Describe what lives at ``request_path``.

        The file body is read and compressed on every call; nothing is
        cached between requests, so edits on disk show up immediately.

        Raises:
            OSError: If an existing file or directory cannot be read.
        """
        path = self.locate(request_path)
        if path is None or not self.filesystem.exists(path):
            return Missing(request_path)

        if self.filesystem.is_directory(path):
            children = tuple(sorted(self.filesystem.list_children(path)))
            return Directory(request_path, children)

        if not self.filesystem.is_file(path):
            logger.debug(f"Not a regular file, treating as missing: {path}")
            return Missing(request_path)

        last_modified = self.filesystem.last_modified(path)
        gzipped = gzip_compress(self.filesystem.read_bytes(path), self.compression_level)

        return File(
            path=request_path,
            name=path.name,
            extension=get_extension(path.name),
            last_modified=last_modified,
            gzipped=gzipped,
            etag=compute_etag(gzipped),
        )
