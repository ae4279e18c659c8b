"""src/reqtimeout/timeouts/guard.py

Instrumentation bookkeeping for connections shared by pooled requests.

A keep-alive connection serves several requests one after the other. Each
occupying request installs its own listeners on it; the marker attached to
the connection records which owner currently holds them, so the same owner
never installs them twice and a new owner never competes with a stale one.
"""

import enum
import logging
from dataclasses import dataclass
from typing import Any, Optional, Protocol

__all__ = [
    "InstrumentationOwner",
    "InstrumentationMarker",
    "MarkerState",
    "SocketInstrumentationGuard",
    "default_guard",
]

logger = logging.getLogger(__name__)


class InstrumentationOwner(Protocol):
    """Anything that installs listeners on a connection."""

    def release_connection(self, connection: Any) -> None:
        """Remove every listener installed on connection."""


class MarkerState(enum.Enum):
    """Instrumentation state of a connection."""

    UNINSTRUMENTED = "uninstrumented"
    INSTRUMENTED = "instrumented"


@dataclass(frozen=True)
class InstrumentationMarker:
    """State stored on a connection's ``marker`` attribute."""

    state: MarkerState = MarkerState.UNINSTRUMENTED
    owner: Optional[InstrumentationOwner] = None


UNINSTRUMENTED = InstrumentationMarker()


class SocketInstrumentationGuard:
    """Arbiter of which owner holds the listeners of a connection."""

    @staticmethod
    def marker_of(connection: Any) -> InstrumentationMarker:
        """Current marker of a connection (uninstrumented if unset)."""
        return getattr(connection, "marker", None) or UNINSTRUMENTED

    def should_instrument(self, connection: Any, owner: InstrumentationOwner) -> bool:
        """Whether owner still has to install its listeners on connection."""
        marker = self.marker_of(connection)
        return marker.state is MarkerState.UNINSTRUMENTED or marker.owner is not owner

    def mark_instrumented(self, connection: Any, owner: InstrumentationOwner) -> None:
        """
        Record owner as the holder of connection's listeners.

        A previous owner still marked on the connection is stale (a
        connection serves one request at a time) and is detached first.
        """
        previous = self.marker_of(connection)
        if (
            previous.state is MarkerState.INSTRUMENTED
            and previous.owner is not None
            and previous.owner is not owner
        ):
            logger.debug("Detaching stale instrumentation from %r", connection)
            previous.owner.release_connection(connection)

        connection.marker = InstrumentationMarker(MarkerState.INSTRUMENTED, owner)

    def clear_on_release(
        self, connection: Any, owner: Optional[InstrumentationOwner] = None
    ) -> None:
        """
        Reset the marker of a connection.

        With an owner, only that owner's marker is cleared.
        """
        marker = self.marker_of(connection)
        if marker.state is MarkerState.UNINSTRUMENTED:
            return
        if owner is not None and marker.owner is not owner:
            return
        connection.marker = UNINSTRUMENTED


default_guard = SocketInstrumentationGuard()
