"""src/reqtimeout/timeouts/__init__.py

Connect and socket phase timeouts for outbound requests.
"""

from .controller import TimeoutController, attach, timeout
from .emitter import ConnectionInfo, Phase, build_error, fail
from .guard import (
    InstrumentationMarker,
    MarkerState,
    SocketInstrumentationGuard,
    default_guard,
)

__all__ = [
    "TimeoutController",
    "attach",
    "timeout",
    "Phase",
    "ConnectionInfo",
    "build_error",
    "fail",
    "InstrumentationMarker",
    "MarkerState",
    "SocketInstrumentationGuard",
    "default_guard",
]
