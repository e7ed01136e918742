"""
Unit tests for MIME type detection.
"""

import pytest

from staticserver.http.mime_types import (
    DEFAULT_MIME_TYPE,
    content_disposition,
    get_content_headers,
    get_extension,
    get_mime_type,
)


class TestGetExtension:

    @pytest.mark.parametrize("filename, extension", [
        ("a.txt", "txt"),
        ("Figure.PNG", "png"),
        ("archive.tar.gz", "gz"),
        ("Makefile", "makefile"),
        (".bashrc", "bashrc"),
    ])
    def test_get_extension(self, filename, extension):
        assert get_extension(filename) == extension


class TestGetMimeType:
    """Tests for the category table."""

    @pytest.mark.parametrize("extension, mime_type", [
        ("png", "image/png"),
        ("jpeg", "image/jpeg"),
        ("svg", "image/svg"),
        ("txt", "text/txt"),
        ("html", "text/html"),
        ("pdf", "application/pdf"),
        ("json", "application/json"),
        ("7z", "application/7z"),
        ("webm", "video/webm"),
    ])
    def test_known_extensions(self, extension, mime_type):
        assert get_mime_type(extension) == mime_type

    def test_text_wins_over_application(self):
        """Test that csv and rtf resolve to text/ because text is listed first."""
        assert get_mime_type("csv") == "text/csv"
        assert get_mime_type("rtf") == "text/rtf"

    def test_unknown_extension(self):
        assert get_mime_type("xyz") is None

    def test_case_insensitive(self):
        assert get_mime_type("PDF") == "application/pdf"


class TestGetContentHeaders:

    def test_known_type(self):
        assert get_content_headers("report.pdf") == {"Content-Type": "application/pdf"}

    def test_unknown_type_is_a_download(self):
        """Test the octet-stream fallback with Content-Disposition."""
        headers = get_content_headers("data.xyz")

        assert list(headers) == ["Content-Type", "Content-Disposition"]
        assert headers["Content-Type"] == DEFAULT_MIME_TYPE
        assert headers["Content-Disposition"] == "attachment; filename=data.xyz"

    def test_name_with_spaces_is_quoted(self):
        headers = get_content_headers("my data.xyz")

        assert headers["Content-Disposition"] == (
            "attachment; filename=\"my data.xyz\"; filename*=UTF-8''my%20data.xyz"
        )


class TestContentDisposition:
    """Tests for names that cannot be sent as a bare token."""

    def test_token_name_is_bare(self):
        assert content_disposition("data.xyz") == "attachment; filename=data.xyz"

    def test_line_breaks_cannot_add_headers(self):
        value = content_disposition("x\r\nSet-Cookie: pwn=1\r\nX.xyz")

        assert "\r" not in value
        assert "\n" not in value
        assert value == (
            'attachment; filename="x__Set-Cookie: pwn=1__X.xyz"; '
            "filename*=UTF-8''x%0D%0ASet-Cookie%3A%20pwn%3D1%0D%0AX.xyz"
        )

    def test_trailing_newline_is_not_a_token(self):
        assert content_disposition("data.xyz\n") == (
            "attachment; filename=\"data.xyz_\"; filename*=UTF-8''data.xyz%0A"
        )

    def test_quotes_and_backslashes_are_replaced(self):
        value = content_disposition('a"b\\c.xyz')
        assert value.startswith('attachment; filename="a_b_c.xyz"; ')

    def test_non_ascii_name(self):
        assert content_disposition("résumé.xyz") == (
            "attachment; filename=\"r_sum_.xyz\"; "
            "filename*=UTF-8''r%C3%A9sum%C3%A9.xyz"
        )

    def test_name_that_is_not_utf8(self):
        value = content_disposition("caf\udce9.xyz")

        assert value.endswith("filename*=UTF-8''caf%E9.xyz")
        value.encode("latin-1")
