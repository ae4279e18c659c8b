"""src/reqtimeout/timeouts/emitter.py

Timeout failures: the single path that terminates a timed-out request.
"""

import enum
import logging
from typing import Any, NamedTuple, Type

from reqtimeout.exceptions import ConnectTimeout, SocketTimeout, TimeoutError

# pylint: disable=redefined-builtin

__all__ = ["Phase", "ConnectionInfo", "build_error", "fail"]

logger = logging.getLogger(__name__)


class Phase(str, enum.Enum):
    """Timed phases of a request."""

    CONNECT = "connect"
    SOCKET = "socket"


class ConnectionInfo(NamedTuple):
    """Target of the timed-out request."""

    host: str
    port: int


def build_error(phase: Phase, info: ConnectionInfo) -> TimeoutError:
    """Build the phase-specific timeout error."""
    error_class: Type[TimeoutError]
    if phase is Phase.CONNECT:
        error_class = ConnectTimeout
        message = f"Connection timed out on request to {info.host}"
    else:
        error_class = SocketTimeout
        message = f"Socket timed out on request to {info.host}:{info.port}"

    return error_class(message, host=info.host, port=info.port)


def fail(request: Any, phase: Phase, info: ConnectionInfo) -> TimeoutError:
    """
    Fail a request for exceeding a phase's bound.

    Aborts the request, which destroys its connection (or cancels the
    pending connection attempt) and surfaces the error through the
    request's own error channel.

    Returns:
        The error the request fails with.
    """
    error = build_error(phase, info)
    logger.info("%s (%s)", error, error.kind)
    request.abort(error)
    return error
