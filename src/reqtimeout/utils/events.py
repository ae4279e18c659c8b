"""src/reqtimeout/utils/events.py

Observer registration for request and connection lifecycle signals.
"""

from typing import Any, Callable, Dict, List, Optional

__all__ = ["EventEmitter", "Listener"]

Listener = Callable[..., Any]


class EventEmitter:
    """
    Minimal synchronous signal dispatcher.

    Listeners are called in registration order (FIFO) with the arguments
    passed to :meth:`emit`. Exceptions raised by a listener propagate to the
    emitter.
    """

    __slots__ = ("_listeners",)

    def __init__(self) -> None:
        self._listeners: Dict[str, List[Listener]] = {}

    def on(self, event: str, listener: Listener) -> Listener:
        """
        Register a listener for an event.

        Returns:
            The registered listener, usable with :meth:`off`.
        """
        self._listeners.setdefault(event, []).append(listener)
        return listener

    def once(self, event: str, listener: Listener) -> Listener:
        """
        Register a listener that is removed before its first call.

        Returns:
            The wrapper actually registered, usable with :meth:`off`.
        """

        def _once(*args: Any) -> Any:
            self.off(event, _once)
            return listener(*args)

        return self.on(event, _once)

    def off(self, event: str, listener: Listener) -> None:
        """Remove a listener. Unknown listeners are ignored."""
        listeners = self._listeners.get(event)
        if not listeners:
            return

        try:
            listeners.remove(listener)
        except ValueError:
            return

        if not listeners:
            del self._listeners[event]

    def emit(self, event: str, *args: Any) -> bool:
        """
        Call every listener of an event.

        Returns:
            True if at least one listener was called.
        """
        listeners = self._listeners.get(event)
        if not listeners:
            return False

        # Listeners may unsubscribe while being dispatched
        for listener in list(listeners):
            listener(*args)
        return True

    def listeners(self, event: str) -> List[Listener]:
        """Return a copy of the listeners registered for an event."""
        return list(self._listeners.get(event, []))

    def listener_count(self, event: str) -> int:
        """Return the number of listeners registered for an event."""
        return len(self._listeners.get(event, []))

    def remove_all_listeners(self, event: Optional[str] = None) -> None:
        """Remove every listener of an event, or of all events."""
        if event is None:
            self._listeners.clear()
        else:
            self._listeners.pop(event, None)
