"""tests/unit/test_http_parser.py

Unit tests for reqtimeout.http.http11 module.

Test Coverage:
    - Status line and header parsing
    - Header size limit enforcement
    - Malformed response rejection
    - Body framing decision (none, length, chunked, until EOF)
"""

import pytest

from reqtimeout.exceptions import InvalidResponseError, ProtocolError
from reqtimeout.http.headers import Headers
from reqtimeout.http.http11 import BodyFraming, HttpParser, body_framing

# ============================================================================
# FIXTURES
# ============================================================================


@pytest.fixture
def parser() -> HttpParser:
    """Create a default HttpParser instance for testing."""
    return HttpParser()


# ============================================================================
# TEST CLASS: HttpParser.parse_head
# ============================================================================


class TestParseHead:
    """Tests for HttpParser.parse_head() method."""

    def test_init_defaults(self, parser: HttpParser) -> None:
        """Test default limits."""
        assert parser.max_header_size == 8192
        assert parser.max_body_size is None

    def test_parse_simple_head(self, parser: HttpParser) -> None:
        """Test parsing a well-formed response head."""
        head = parser.parse_head(
            b"HTTP/1.1 200 OK\r\nContent-Type: text/plain\r\nContent-Length: 4\r\n\r\n"
        )

        assert head.http_version == "HTTP/1.1"
        assert head.status_code == 200
        assert head.reason == "OK"
        assert head.status_line == "HTTP/1.1 200 OK"
        assert head.headers == [("Content-Type", "text/plain"), ("Content-Length", "4")]

    def test_parse_multiword_reason(self, parser: HttpParser) -> None:
        """Test the reason phrase keeps its spaces."""
        head = parser.parse_head(b"HTTP/1.1 404 Not Found\r\n\r\n")
        assert head.reason == "Not Found"

    def test_parse_missing_reason(self, parser: HttpParser) -> None:
        """Test a status line without reason phrase."""
        head = parser.parse_head(b"HTTP/1.1 204\r\n\r\n")
        assert head.status_code == 204
        assert head.reason == ""

    def test_duplicate_headers_kept_in_order(self, parser: HttpParser) -> None:
        """Test duplicate headers are all kept."""
        head = parser.parse_head(
            b"HTTP/1.1 200 OK\r\nSet-Cookie: a=1\r\nSet-Cookie: b=2\r\n\r\n"
        )
        assert head.headers == [("Set-Cookie", "a=1"), ("Set-Cookie", "b=2")]

    def test_lines_without_colon_skipped(self, parser: HttpParser) -> None:
        """Test malformed header lines are ignored."""
        head = parser.parse_head(b"HTTP/1.1 200 OK\r\ngarbage\r\nX-A: 1\r\n\r\n")
        assert head.headers == [("X-A", "1")]

    def test_headers_too_large(self) -> None:
        """Test header size limit enforcement."""
        parser = HttpParser(max_header_size=32)
        with pytest.raises(ProtocolError, match="exceed maximum size"):
            parser.parse_head(b"HTTP/1.1 200 OK\r\nX-Long: " + b"a" * 64 + b"\r\n\r\n")

    @pytest.mark.parametrize(
        "data",
        [
            b"\r\n\r\n",
            b"garbage\r\n\r\n",
            b"HTTP/1.1\r\n\r\n",
            b"HTTP/1.1 abc OK\r\n\r\n",
        ],
    )
    def test_invalid_status_line(self, parser: HttpParser, data: bytes) -> None:
        """Test malformed status lines are rejected."""
        with pytest.raises(InvalidResponseError):
            parser.parse_head(data)


# ============================================================================
# TEST CLASS: body_framing
# ============================================================================


class TestBodyFraming:
    """Tests for body_framing() function."""

    @pytest.mark.parametrize(
        "method, status",
        [("HEAD", 200), ("GET", 204), ("GET", 304), ("GET", 101)],
    )
    def test_no_body(self, method: str, status: int) -> None:
        """Test responses that never carry a body."""
        headers = Headers({"Content-Length": "10"})
        assert body_framing(method, status, headers) == (BodyFraming.NONE, None)

    def test_chunked_wins_over_length(self) -> None:
        """Test Transfer-Encoding chunked takes precedence."""
        headers = Headers({"Transfer-Encoding": "gzip, chunked", "Content-Length": "3"})
        assert body_framing("GET", 200, headers) == (BodyFraming.CHUNKED, None)

    def test_content_length(self) -> None:
        """Test fixed-length bodies."""
        headers = Headers({"Content-Length": "42"})
        assert body_framing("GET", 200, headers) == (BodyFraming.LENGTH, 42)

    @pytest.mark.parametrize("value", ["abc", "-1"])
    def test_invalid_content_length(self, value: str) -> None:
        """Test invalid Content-Length values are rejected."""
        with pytest.raises(InvalidResponseError):
            body_framing("GET", 200, Headers({"Content-Length": value}))

    def test_until_eof(self) -> None:
        """Test bodies without framing headers run until EOF."""
        assert body_framing("GET", 200, Headers()) == (BodyFraming.EOF, None)
