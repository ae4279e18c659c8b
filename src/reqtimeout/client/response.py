"""src/reqtimeout/client/response.py

HTTP Response handling module.

This module provides the Response class built from a parsed response head;
the body is filled in by the request once it has been fully received.
"""

import json as std_json
from typing import Any, Dict, Optional, Tuple, cast

from reqtimeout.exceptions import InvalidResponseError, ProtocolError
from reqtimeout.http.headers import Headers
from reqtimeout.http.http11 import BodyFraming, HttpParser, body_framing

__all__ = ["ResponseParseError", "Response"]


class ResponseParseError(InvalidResponseError):
    """Exception raised when HTTP response parsing fails."""


class Response:
    """
    Represents a parsed HTTP response.

    Attributes:
        raw: Raw response head bytes.
        http_version: Protocol version of the status line (e.g. "HTTP/1.1").
        status_line: HTTP status line (e.g., "HTTP/1.1 200 OK").
        status_code: HTTP status code as integer.
        reason: Reason phrase.
        headers: Case-insensitive response headers.
        body: Response body as bytes (complete once the request completed).
        url: URL of the request.
    """

    # pylint: disable=too-many-instance-attributes
    __slots__ = (
        "raw",
        "http_version",
        "status_line",
        "status_code",
        "reason",
        "headers",
        "body",
        "url",
        "_limits",
    )

    def __init__(
        self,
        raw_head: bytes,
        url: Optional[str] = None,
        limits: Optional[Dict[str, int]] = None,
    ) -> None:
        """
        Initialize Response by parsing the raw response head.

        Args:
            raw_head: Status line and headers, including the blank line.
            url: URL of the request.
            limits: Parser limits (max_header_size, max_body_size).
        """
        self.raw = raw_head
        self.url = url
        self.body = b""
        self._limits = limits or {}

        try:
            head = HttpParser(**self._limits).parse_head(raw_head)
        except ProtocolError as e:
            raise ResponseParseError(f"Error parsing response: {e}") from e

        self.http_version = head.http_version
        self.status_code = head.status_code
        self.reason = head.reason
        self.status_line = head.status_line
        self.headers = Headers(head.headers)

    def __repr__(self) -> str:
        return f"<Response [{self.status_code}]>"

    @property
    def status(self) -> int:
        """Alias for status_code for compatibility."""
        return self.status_code

    @property
    def max_body_size(self) -> Optional[int]:
        """Configured body size limit, if any."""
        return self._limits.get("max_body_size")

    def framing(self, method: str) -> Tuple[BodyFraming, Optional[int]]:
        """How the body of this response is delimited for a request method."""
        return body_framing(method, self.status_code, self.headers)

    def keep_alive(self, method: str) -> bool:
        """Whether the connection may serve another request afterwards."""
        if self.headers.has_token("Connection", "close"):
            return False

        if self.http_version == "HTTP/1.0":
            return self.headers.has_token("Connection", "keep-alive")

        framing, _ = self.framing(method)
        return framing is not BodyFraming.EOF

    def text(self, encoding: Optional[str] = None) -> str:
        """Return decoded text."""
        if encoding is None:
            content_type = cast(str, self.headers.get("Content-Type", ""))
            if "charset=" in content_type:
                encoding = content_type.split("charset=")[-1].split(";")[0].strip()
            else:
                encoding = "utf-8"  # default fallback

        return self.body.decode(encoding, errors="replace")

    def json(self) -> Any:
        """
        Returns JSON-decoded body.
        """
        try:
            return std_json.loads(self.text())
        except (std_json.JSONDecodeError, TypeError, ValueError) as exc:
            raise InvalidResponseError("Failed to decode JSON response") from exc
