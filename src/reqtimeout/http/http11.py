"""src/reqtimeout/http/http11.py

HTTP/1.1 response head parser and message framing rules.
"""

import enum
from typing import List, NamedTuple, Optional, Tuple

from reqtimeout.exceptions import InvalidResponseError, ProtocolError
from reqtimeout.http.headers import Headers

__all__ = [
    "HttpParser",
    "ResponseHead",
    "BodyFraming",
    "body_framing",
    "MAX_HEADER_SIZE",
]

MAX_HEADER_SIZE = 8192


class ResponseHead(NamedTuple):
    """Parsed status line and header fields."""

    http_version: str
    status_code: int
    reason: str
    status_line: str
    headers: List[Tuple[str, str]]


class BodyFraming(enum.Enum):
    """How the end of a response body is determined."""

    NONE = "none"
    LENGTH = "length"
    CHUNKED = "chunked"
    EOF = "eof"


class HttpParser:
    """
    HTTP/1.1 response head parser.

    Handles:
    - Status Line parsing.
    - Header parsing keeping duplicates in order.
    - Defensive sizing.
    """

    def __init__(
        self,
        max_header_size: int = MAX_HEADER_SIZE,
        max_body_size: Optional[int] = None,
    ):
        self.max_header_size = max_header_size
        self.max_body_size = max_body_size

    def parse_head(self, data: bytes) -> ResponseHead:
        """
        Parse a raw response head (status line and headers, up to and
        including the blank line).

        Raises:
            ProtocolError: If headers are too large or cannot be decoded.
            InvalidResponseError: If the status line is invalid.
        """
        if len(data) > self.max_header_size:
            raise ProtocolError(
                f"Headers exceed maximum size of {self.max_header_size} bytes"
            )

        try:
            header_text = data.decode("iso-8859-1")
        except UnicodeDecodeError as e:  # pragma: no cover - latin-1 decodes anything
            raise ProtocolError(f"Header decoding failed: {e}") from e

        lines = header_text.rstrip("\r\n").split("\r\n")
        status_line = lines[0]
        if not status_line:
            raise InvalidResponseError("Empty response")

        # HTTP/1.1 200 OK
        parts = status_line.split(" ", 2)
        if len(parts) < 2 or not parts[0].startswith("HTTP/"):
            raise InvalidResponseError(f"Invalid status line: {status_line}")

        try:
            status_code = int(parts[1])
        except ValueError as exc:
            raise InvalidResponseError(f"Invalid status line: {status_line}") from exc

        reason = parts[2] if len(parts) > 2 else ""
        return ResponseHead(
            parts[0], status_code, reason, status_line, self._parse_headers(lines[1:])
        )

    @staticmethod
    def _parse_headers(lines: List[str]) -> List[Tuple[str, str]]:
        """
        Parse header lines into (name, value) pairs.
        Lines without a colon are skipped.
        """
        headers: List[Tuple[str, str]] = []

        for line in lines:
            if not line or ":" not in line:
                continue

            key, value = line.split(":", 1)
            headers.append((key.strip(), value.strip()))

        return headers


def body_framing(
    method: str, status_code: int, headers: Headers
) -> Tuple[BodyFraming, Optional[int]]:
    """
    Decide how the response body is delimited (RFC 7230 section 3.3.3).

    Returns:
        Tuple of (framing, content_length). content_length is only set for
        BodyFraming.LENGTH.
    """
    if method.upper() == "HEAD" or status_code in (204, 304) or 100 <= status_code < 200:
        return BodyFraming.NONE, None

    if headers.has_token("Transfer-Encoding", "chunked"):
        return BodyFraming.CHUNKED, None

    content_length = headers.get("Content-Length")
    if content_length is not None:
        try:
            length = int(content_length)
        except ValueError as exc:
            raise InvalidResponseError(
                f"Invalid Content-Length: {content_length!r}"
            ) from exc
        if length < 0:
            raise InvalidResponseError(f"Invalid Content-Length: {content_length!r}")
        return BodyFraming.LENGTH, length

    return BodyFraming.EOF, None
