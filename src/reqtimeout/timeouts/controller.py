"""src/reqtimeout/timeouts/controller.py

Connect and socket phase timeouts for a single request.

The controller observes the lifecycle signals of a request and of the
connection assigned to it:

- until the connection is established, the connect timer runs;
- once it is established, the socket timer runs and restarts with its full
  duration on every byte of activity (idle window, not elapsed time);
- any terminal signal of the request, or the release of the connection to
  its pool, tears everything down.

Example::

    req = ClientRequest("GET", "http://example.com/").start()
    timeout(req, {"connect": 2.0, "socket": 10.0})
    response = await req
"""

import logging
from types import TracebackType
from typing import Any, List, Optional, Tuple, Type

from reqtimeout.timeouts.emitter import ConnectionInfo, Phase, fail
from reqtimeout.timeouts.guard import SocketInstrumentationGuard, default_guard
from reqtimeout.utils.events import EventEmitter, Listener
from reqtimeout.utils.timing import PhaseTimer, Timeout, TimeoutValue

__all__ = ["TimeoutController", "attach"]

logger = logging.getLogger(__name__)

Subscription = Tuple[EventEmitter, str, Listener]


class TimeoutController:
    """
    Per-request timeout state machine.

    Attributes:
        request: The observed request handle.
        timeout: Normalized timeout configuration.
        connect_timer: Connect-phase timer, while it exists.
        socket_timer: Socket-phase timer, once the connection is established.
        connection: Connection instrumented by this controller, if any.
        done: Whether the controller was torn down.
    """

    __slots__ = (
        "request",
        "timeout",
        "guard",
        "connect_timer",
        "socket_timer",
        "connection",
        "done",
        "_request_subscriptions",
        "_connection_subscriptions",
    )

    def __init__(
        self,
        request: Any,
        timeout: TimeoutValue,
        guard: Optional[SocketInstrumentationGuard] = None,
    ) -> None:
        self.request = request
        self.timeout = Timeout.from_value(timeout)
        self.guard = guard or default_guard
        self.connect_timer: Optional[PhaseTimer] = None
        self.socket_timer: Optional[PhaseTimer] = None
        self.connection: Any = None
        self.done = False
        self._request_subscriptions: List[Subscription] = []
        self._connection_subscriptions: List[Subscription] = []

    def __enter__(self) -> "TimeoutController":
        self.attach()
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[TracebackType],
    ) -> None:
        self.teardown()

    def attach(self) -> bool:
        """
        Start observing the request.

        Does nothing when no phase is enabled, when the request already
        finished or already has a controller.

        Returns:
            True if the controller was attached.
        """
        request = self.request
        if not self.timeout.enabled or request.finished:
            return False

        if getattr(request, "timeout_controller", None) is not None:
            return False

        request.timeout_controller = self
        try:
            self._subscribe_request("socket", self._on_socket)
            self._subscribe_request("complete", self._on_terminal)
            self._subscribe_request("error", self._on_terminal)
            self._subscribe_request("close", self._on_terminal)

            conn = request.connection
            if conn is None or not conn.established:
                self._arm_connect_timer()

            if conn is not None:
                self._on_socket(conn)

        except BaseException:
            self.teardown()
            raise

        logger.debug("Timeouts %s attached to %r", self.timeout, request)
        return True

    def teardown(self) -> None:
        """Cancel every timer and remove every listener. Idempotent."""
        if self.done:
            return
        self.done = True

        self._cancel_connect_timer()
        if self.socket_timer is not None:
            self.socket_timer.cancel()

        if self.connection is not None:
            self.release_connection(self.connection)

        for emitter, event, listener in self._request_subscriptions:
            emitter.off(event, listener)
        self._request_subscriptions.clear()

    def release_connection(self, connection: Any) -> None:
        """Remove the listeners installed on connection and its marker."""
        for emitter, event, listener in self._connection_subscriptions:
            emitter.off(event, listener)
        self._connection_subscriptions.clear()

        self.guard.clear_on_release(connection, self)
        if connection is self.connection:
            self.connection = None

    def _subscribe_request(self, event: str, listener: Listener) -> None:
        self.request.on(event, listener)
        self._request_subscriptions.append((self.request, event, listener))

    def _subscribe_connection(self, event: str, listener: Listener) -> None:
        self.connection.on(event, listener)
        self._connection_subscriptions.append((self.connection, event, listener))

    def _arm_connect_timer(self) -> None:
        if not self.timeout.connect_enabled:
            return
        self.connect_timer = PhaseTimer(
            Phase.CONNECT.value,
            self.timeout.connect,  # type: ignore[arg-type]
            self._on_connect_timeout,
            loop=self.request.loop,
        ).arm()

    def _cancel_connect_timer(self) -> None:
        if self.connect_timer is not None:
            self.connect_timer.cancel()
            self.connect_timer = None

    def _on_socket(self, connection: Any) -> None:
        """Connection assigned to the request."""
        if self.done or not self.guard.should_instrument(connection, self):
            return

        if self.connection is not None and self.connection is not connection:
            self.release_connection(self.connection)

        self.guard.mark_instrumented(connection, self)
        self.connection = connection
        self._subscribe_connection("release", self._on_release)

        if connection.established:
            self._on_connect()
        else:
            self._subscribe_connection("connect", self._on_connect)

    def _on_connect(self) -> None:
        """Connection established: switch from connect to socket phase."""
        if self.done:
            return

        self._cancel_connect_timer()
        self._unsubscribe_connection("connect")

        if not self.timeout.socket_enabled or self.socket_timer is not None:
            return

        self.socket_timer = PhaseTimer(
            Phase.SOCKET.value,
            self.timeout.socket,  # type: ignore[arg-type]
            self._on_socket_timeout,
            loop=self.request.loop,
        ).arm()
        self._subscribe_connection("activity", self._on_activity)

    def _unsubscribe_connection(self, event: str) -> None:
        remaining = []
        for subscription in self._connection_subscriptions:
            emitter, name, listener = subscription
            if name == event:
                emitter.off(name, listener)
            else:
                remaining.append(subscription)
        self._connection_subscriptions = remaining

    def _on_activity(self, *_: Any) -> None:
        if not self.done and self.socket_timer is not None:
            self.socket_timer.arm()

    def _on_release(self) -> None:
        logger.debug("Connection of %r released", self.request)
        self.teardown()

    def _on_terminal(self, *_: Any) -> None:
        self.teardown()

    def _on_connect_timeout(self) -> None:
        self._expire(Phase.CONNECT)

    def _on_socket_timeout(self) -> None:
        self._expire(Phase.SOCKET)

    def _expire(self, phase: Phase) -> None:
        if self.done or self.request.finished:
            return

        self.teardown()
        fail(self.request, phase, ConnectionInfo(self.request.host, self.request.port))


def attach(request: Any, timeout: TimeoutValue) -> None:
    """
    Attach connect/socket timeouts to a request before it proceeds.

    ``timeout`` is a number of seconds for both phases, a mapping with
    optional ``connect`` and ``socket`` keys, or a Timeout. A missing or
    zero phase is not enforced. Failures surface later through the request's
    error channel, as ConnectTimeout (``ETIMEDOUT``) or SocketTimeout
    (``ESOCKETTIMEDOUT``).
    """
    TimeoutController(request, timeout).attach()


timeout = attach
