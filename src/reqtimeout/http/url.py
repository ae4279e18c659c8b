"""src/reqtimeout/http/url.py

URL parser for Reqtimeout.
"""

import urllib.parse

from reqtimeout.exceptions import RequestError

__all__ = ["URL"]

DEFAULT_PORTS = {"http": 80, "https": 443}


class URL:
    """Utility class for URL parsing and information."""

    __slots__ = ("parsed", "scheme", "host", "port", "target")

    def __init__(self, url: str):
        self.parsed = urllib.parse.urlparse(url)
        self.scheme = self.parsed.scheme.lower()
        if self.scheme not in DEFAULT_PORTS:
            raise RequestError(f"Unsupported URL scheme: {self.parsed.scheme!r}")

        if not self.parsed.hostname:
            raise RequestError("Invalid URL: could not determine host")

        self.host: str = self.parsed.hostname
        try:
            self.port: int = self.parsed.port or DEFAULT_PORTS[self.scheme]
        except ValueError as e:
            raise RequestError(f"Invalid URL port: {url}") from e

        self.target = self.parsed.path or "/"
        if self.parsed.query:
            self.target += f"?{self.parsed.query}"

    @property
    def use_ssl(self) -> bool:
        """Whether the scheme requires TLS."""
        return self.scheme == "https"

    @property
    def authority(self) -> str:
        """Host header value; the port is omitted when it is the default."""
        host = f"[{self.host}]" if ":" in self.host else self.host
        if self.port == DEFAULT_PORTS[self.scheme]:
            return host
        return f"{host}:{self.port}"
