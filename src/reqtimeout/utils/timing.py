"""src/reqtimeout/utils/timing.py

Timeouts configuration and phase timers.
"""

import asyncio
import enum
import logging
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional, Union

__all__ = ["Timeout", "TimeoutValue", "PhaseTimer", "TimerState"]

logger = logging.getLogger(__name__)


@dataclass
class Timeout:
    """
    Timeout configuration.

    A missing, zero or negative value disables the phase.

    Attributes:
        connect: Maximum time (seconds) from dispatch until the connection
            is established.
        socket: Maximum idle gap (seconds) between two bytes of activity on
            an established connection.
    """

    connect: Optional[float] = None
    socket: Optional[float] = None

    @classmethod
    def from_float(cls, timeout: Optional[float]) -> "Timeout":
        """Create a Timeout instance from a single float (both phases)."""
        if timeout is None:
            return cls()
        return cls(connect=timeout, socket=timeout)

    @classmethod
    def from_value(cls, value: "TimeoutValue") -> "Timeout":
        """
        Normalize any accepted configuration form into a Timeout.

        Accepts None, a number, a mapping with ``connect``/``socket`` keys
        or a Timeout instance.

        Raises:
            TypeError: If the value has an unsupported type.
        """
        if value is None:
            return cls()

        if isinstance(value, Timeout):
            return value

        if isinstance(value, bool):
            raise TypeError("Timeout must be a number, a mapping or a Timeout")

        if isinstance(value, (int, float)):
            return cls.from_float(float(value))

        if isinstance(value, Mapping):
            unknown = set(value) - {"connect", "socket"}
            if unknown:
                raise TypeError(f"Unknown timeout phases: {sorted(unknown)}")
            return cls(connect=value.get("connect"), socket=value.get("socket"))

        raise TypeError(
            f"Timeout must be a number, a mapping or a Timeout, not {type(value).__name__}"
        )

    @property
    def connect_enabled(self) -> bool:
        """Whether the connect phase is enforced."""
        return bool(self.connect) and self.connect > 0  # type: ignore[operator]

    @property
    def socket_enabled(self) -> bool:
        """Whether the socket phase is enforced."""
        return bool(self.socket) and self.socket > 0  # type: ignore[operator]

    @property
    def enabled(self) -> bool:
        """Whether at least one phase is enforced."""
        return self.connect_enabled or self.socket_enabled


TimeoutValue = Union[None, float, int, Mapping[str, Optional[float]], Timeout]


class TimerState(enum.Enum):
    """Lifecycle of a PhaseTimer."""

    IDLE = "idle"
    ARMED = "armed"
    CANCELLED = "cancelled"
    FIRED = "fired"


class PhaseTimer:
    """
    Single-shot countdown owned by one request phase.

    Re-arming cancels the pending callback before scheduling a new one, so
    at most one callback per timer is ever live.
    """

    __slots__ = ("phase", "delay", "state", "_callback", "_loop", "_handle")

    def __init__(
        self,
        phase: str,
        delay: float,
        callback: Callable[[], Any],
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ) -> None:
        self.phase = phase
        self.delay = delay
        self.state = TimerState.IDLE
        self._callback = callback
        self._loop = loop or asyncio.get_running_loop()
        self._handle: Optional[asyncio.TimerHandle] = None

    @property
    def armed(self) -> bool:
        """Whether a callback is pending."""
        return self.state is TimerState.ARMED

    def arm(self) -> "PhaseTimer":
        """(Re)start the countdown with the full delay."""
        if self._handle is not None:
            self._handle.cancel()
        self._handle = self._loop.call_later(self.delay, self._fire)
        self.state = TimerState.ARMED
        return self

    def cancel(self) -> None:
        """Cancel the pending callback, if any."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        if self.state is TimerState.ARMED:
            self.state = TimerState.CANCELLED
            logger.debug("%s timer cancelled", self.phase)

    def _fire(self) -> None:
        self._handle = None
        self.state = TimerState.FIRED
        logger.debug("%s timer fired after %.3fs", self.phase, self.delay)
        self._callback()
