"""
=============================================================================
FILESYSTEM CAPABILITY
=============================================================================

The path resolver never touches ``os`` or ``pathlib`` directly. It asks a
FileSystem object, which keeps the request logic testable against a fake
tree and leaves room for other backends (zip archives, in-memory trees).

    ┌──────────────────┬──────────────────────────────────────────────────┐
    │ exists(p)        │ anything at p (file, directory, other)           │
    │ is_directory(p)  │ p is a directory                                 │
    │ is_file(p)       │ p is a regular file                              │
    │ list_children(p) │ immediate child names of a directory             │
    │ last_modified(p) │ modification time, aware UTC datetime            │
    │ read_bytes(p)    │ whole file content                               │
    └──────────────────┴──────────────────────────────────────────────────┘

Symlinks are followed, as the operating system does.

=============================================================================
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import List


class FileSystem(ABC):
    """Read-only view of a directory tree."""

    @abstractmethod
    def exists(self, path: Path) -> bool:
        ...

    @abstractmethod
    def is_directory(self, path: Path) -> bool:
        ...

    @abstractmethod
    def is_file(self, path: Path) -> bool:
        ...

    @abstractmethod
    def list_children(self, path: Path) -> List[str]:
        """
        Names (not paths) of the entries directly inside ``path``.

        Raises:
            OSError: If the directory cannot be listed.
        """

    @abstractmethod
    def last_modified(self, path: Path) -> datetime:
        """
        Modification time as an aware UTC datetime.

        Raises:
            OSError: If the file cannot be stat'ed.
        """

    @abstractmethod
    def read_bytes(self, path: Path) -> bytes:
        """
        Entire content of a regular file.

        Raises:
            OSError: If the file cannot be read.
        """


class LocalFileSystem(FileSystem):
    """FileSystem backed by the local disk through pathlib."""

    def exists(self, path: Path) -> bool:
        return path.exists()

    def is_directory(self, path: Path) -> bool:
        return path.is_dir()

    def is_file(self, path: Path) -> bool:
        return path.is_file()

    def list_children(self, path: Path) -> List[str]:
        return [child.name for child in path.iterdir()]

    def last_modified(self, path: Path) -> datetime:
        return datetime.fromtimestamp(path.stat().st_mtime, tz=timezone.utc)

    def read_bytes(self, path: Path) -> bytes:
        return path.read_bytes()
