"""src/reqtimeout/exceptions.py

Reqtimeout Exceptions hierarchy.
"""

# pylint: disable=redefined-builtin

from typing import Optional


class ReqtimeoutError(Exception):
    """Base exception for all Reqtimeout errors."""


class RequestError(ReqtimeoutError):
    """General exception for Request errors."""


class NetworkError(RequestError):
    """
    Base exception for network-related errors.
    Wraps socket errors and other connection issues.
    """


class TimeoutError(RequestError):
    """
    Base exception for phase timeouts.

    Attributes:
        kind: Stable discriminator of the failed phase (``ETIMEDOUT`` or
            ``ESOCKETTIMEDOUT``).
        phase: Name of the phase whose bound was exceeded.
        host: Target host of the request.
        port: Target port of the request.
    """

    kind: Optional[str] = None
    phase: Optional[str] = None

    def __init__(
        self,
        message: str = "Operation timed out",
        *,
        host: Optional[str] = None,
        port: Optional[int] = None,
    ):
        super().__init__(message)
        self.host = host
        self.port = port

    @property
    def code(self) -> Optional[str]:
        """Alias for kind, errno-style."""
        return self.kind


class ConnectTimeout(TimeoutError):
    """Timeout during connection establishment."""

    kind = "ETIMEDOUT"
    phase = "connect"


class SocketTimeout(TimeoutError):
    """No activity on an established connection within the idle window."""

    kind = "ESOCKETTIMEDOUT"
    phase = "socket"


class RequestAborted(RequestError):
    """The request was aborted before it completed."""


class TlsError(NetworkError):
    """TLS/SSL handshake or verification errors."""


class ProtocolError(RequestError):
    """
    Errors related to HTTP protocol (parsing, violations).
    """


class InvalidResponseError(ProtocolError):
    """Server sent a response that could not be understood."""
