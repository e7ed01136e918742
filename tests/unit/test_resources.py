"""
Unit tests for path resolution against an in-memory filesystem.
"""

import gzip
import hashlib
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List

import pytest

from staticserver.core.filesystem import FileSystem, LocalFileSystem
from staticserver.handlers.resources import Directory, File, Missing, PathResolver


ROOT = Path("/srv/public")
MTIME = datetime(2021, 10, 19, 12, 0, 0, tzinfo=timezone.utc)


class MemoryFileSystem(FileSystem):
    """Files and directories held in dicts keyed by absolute path."""

    def __init__(self, files: Dict[str, bytes], directories: List[str], special: List[str] = ()):
        self.files = {Path(p): data for p, data in files.items()}
        self.directories = {Path(p) for p in directories}
        self.special = {Path(p) for p in special}

    def exists(self, path):
        return path in self.files or path in self.directories or path in self.special

    def is_directory(self, path):
        return path in self.directories

    def is_file(self, path):
        return path in self.files

    def list_children(self, path):
        entries = list(self.files) + list(self.directories) + list(self.special)
        return [entry.name for entry in entries if entry.parent == path]

    def last_modified(self, path):
        return MTIME

    def read_bytes(self, path):
        return self.files[path]


@pytest.fixture
def memory_fs() -> MemoryFileSystem:
    return MemoryFileSystem(
        files={
            "/srv/public/b.txt": b"bee\n",
            "/srv/public/a.txt": b"hello world\n",
            "/srv/public/docs/guide.pdf": b"%PDF",
            "/srv/secret.txt": b"do not serve",
        },
        directories=["/srv", "/srv/public", "/srv/public/docs", "/srv/public/Zeta"],
        special=["/srv/public/events.fifo"],
    )


@pytest.fixture
def resolver(memory_fs: MemoryFileSystem) -> PathResolver:
    return PathResolver(ROOT, filesystem=memory_fs)


class TestLocate:
    """Tests for mapping request paths onto the root."""

    @pytest.mark.parametrize("request_path", ["/", "", "//"])
    def test_root_aliases(self, resolver, request_path):
        assert resolver.locate(request_path) == ROOT

    def test_trailing_slash_is_ignored(self, resolver):
        assert resolver.locate("/docs/guide.pdf/") == ROOT / "docs" / "guide.pdf"

    def test_dot_segments_inside_root(self, resolver):
        assert resolver.locate("/docs/../a.txt") == ROOT / "a.txt"

    @pytest.mark.parametrize("request_path", [
        "/..",
        "/../secret.txt",
        "/docs/../../secret.txt",
        "/../../etc/passwd",
    ])
    def test_traversal_is_refused(self, resolver, request_path):
        assert resolver.locate(request_path) is None

    def test_sibling_with_common_prefix_is_refused(self, resolver):
        """Test that /srv/public-other does not pass as inside /srv/public."""
        assert resolver.locate("/../public-other/x") is None

    def test_confinement_can_be_disabled(self, memory_fs):
        resolver = PathResolver(ROOT, filesystem=memory_fs, confine_to_root=False)
        assert resolver.locate("/../secret.txt") == Path("/srv/secret.txt")


class TestResolve:
    """Tests for PathResolver.resolve()."""

    def test_missing(self, resolver):
        assert resolver.resolve("/nope.txt") == Missing("/nope.txt")

    def test_traversal_is_missing(self, resolver):
        assert resolver.resolve("/../secret.txt") == Missing("/../secret.txt")

    def test_traversal_allowed_without_confinement(self, memory_fs):
        resolver = PathResolver(ROOT, filesystem=memory_fs, confine_to_root=False)
        assert isinstance(resolver.resolve("/../secret.txt"), File)

    def test_directory_children_are_sorted(self, resolver):
        """Test that children come back in code-point order."""
        entry = resolver.resolve("/")

        assert entry == Directory("/", ("Zeta", "a.txt", "b.txt", "docs", "events.fifo"))

    def test_subdirectory(self, resolver):
        assert resolver.resolve("/docs/") == Directory("/docs/", ("guide.pdf",))

    def test_special_file_is_missing(self, resolver):
        assert resolver.resolve("/events.fifo") == Missing("/events.fifo")

    def test_file(self, resolver):
        """Test that a file carries its gzip body and the MD5 of that body."""
        entry = resolver.resolve("/a.txt")

        assert isinstance(entry, File)
        assert entry.path == "/a.txt"
        assert entry.name == "a.txt"
        assert entry.extension == "txt"
        assert entry.last_modified == MTIME
        assert gzip.decompress(entry.gzipped) == b"hello world\n"
        assert entry.etag == hashlib.md5(entry.gzipped).hexdigest()

    def test_file_with_trailing_slash(self, resolver):
        entry = resolver.resolve("/docs/guide.pdf/")

        assert isinstance(entry, File)
        assert entry.name == "guide.pdf"

    def test_etag_is_stable(self, resolver):
        assert resolver.resolve("/a.txt").etag == resolver.resolve("/a.txt").etag

    def test_etag_differs_between_files(self, resolver):
        assert resolver.resolve("/a.txt").etag != resolver.resolve("/b.txt").etag


class TestLocalFileSystem:
    """Tests for the disk-backed FileSystem."""

    def test_resolves_served_root(self, served_root):
        resolver = PathResolver(served_root)
        entry = resolver.resolve("/")

        assert isinstance(entry, Directory)
        assert "a.txt" in entry.children
        assert "Dügün" in entry.children
        assert list(entry.children) == sorted(entry.children)

    def test_last_modified_is_aware_utc(self, served_root):
        modified = LocalFileSystem().last_modified(served_root / "a.txt")

        assert modified.tzinfo == timezone.utc
        assert modified == datetime(2021, 10, 19, 12, 0, 0, tzinfo=timezone.utc)

    def test_nul_byte_is_missing(self, served_root):
        resolver = PathResolver(served_root)
        assert isinstance(resolver.resolve("/a.txt\x00"), Missing)
