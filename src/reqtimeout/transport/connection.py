"""src/reqtimeout/transport/connection.py

TCP and TLS connection management module.

This module provides an observable asynchronous connection. It carries no
timeout logic of its own: it reports its lifecycle through signals and can
be destroyed from the outside at any point.

Signals:
    connect: the connection is established (TCP and TLS handshake done).
    activity: a segment was received or a slice was written, with
        ``(direction, nbytes)``.
    release: the connection was returned to its pool.
    close: the connection was closed or destroyed, with the error or None.
"""

import asyncio
import contextlib
import enum
import logging
import ssl
from typing import Any, Optional

from reqtimeout.exceptions import NetworkError, ProtocolError, TlsError
from reqtimeout.utils.events import EventEmitter

__all__ = ["AsyncConnection", "ConnectionState"]

logger = logging.getLogger(__name__)

READ_CHUNK_SIZE = 65536
WRITE_CHUNK_SIZE = 65536
LINE_LIMIT = 65536


def create_ssl_context() -> ssl.SSLContext:
    """Creates a default SSL context with TLS 1.2 minimum."""
    context = ssl.create_default_context()
    context.minimum_version = ssl.TLSVersion.TLSv1_2
    return context


class ConnectionState(enum.Enum):
    """Lifecycle of an AsyncConnection."""

    IDLE = "idle"
    CONNECTING = "connecting"
    ESTABLISHED = "established"
    CLOSED = "closed"


class AsyncConnection(EventEmitter):
    """
    Manages asynchronous TCP and TLS connection creation and lifecycle.

    Attributes:
        host: The target hostname or IP address.
        port: The target port number.
        use_ssl: Whether to use TLS encryption.
        state: Current ConnectionState.
        marker: Instrumentation marker owned by the timeout guard.
    """

    __slots__ = (
        "host",
        "port",
        "use_ssl",
        "state",
        "marker",
        "reader",
        "writer",
        "_buffer",
        "_connect_task",
        "_error",
    )

    def __init__(self, host: str, port: int, use_ssl: bool = False) -> None:
        super().__init__()
        self.host = host
        self.port = port
        self.use_ssl = use_ssl
        self.state = ConnectionState.IDLE
        self.marker: Any = None
        self.reader: Optional[asyncio.StreamReader] = None
        self.writer: Optional[asyncio.StreamWriter] = None
        self._buffer = bytearray()
        self._connect_task: Optional["asyncio.Future[Any]"] = None
        self._error: Optional[BaseException] = None

    def __repr__(self) -> str:
        return f"<AsyncConnection {self.host}:{self.port} {self.state.value}>"

    @property
    def connecting(self) -> bool:
        """Whether the connection is not established yet."""
        return self.state in (ConnectionState.IDLE, ConnectionState.CONNECTING)

    @property
    def established(self) -> bool:
        """Whether the connection is established and not closed."""
        return self.state is ConnectionState.ESTABLISHED

    @property
    def destroyed(self) -> bool:
        """Whether the connection was closed or destroyed."""
        return self.state is ConnectionState.CLOSED

    async def open(self) -> None:
        """
        Async open.

        Emits ``connect`` once the connection is established.

        Raises:
            NetworkError: If the connection cannot be established or was
                destroyed while connecting.
            TlsError: If the TLS handshake fails.
        """
        if self.state is not ConnectionState.IDLE:
            raise NetworkError(f"Connection to {self.host}:{self.port} already opened")

        ssl_context = create_ssl_context() if self.use_ssl else None
        self.state = ConnectionState.CONNECTING
        self._connect_task = asyncio.ensure_future(
            asyncio.open_connection(self.host, self.port, ssl=ssl_context)
        )

        try:
            self.reader, self.writer = await self._connect_task

        except asyncio.CancelledError:
            self.state = ConnectionState.CLOSED
            if self._error is not None:
                raise self._error from None
            raise

        except ssl.SSLError as e:
            self.state = ConnectionState.CLOSED
            raise TlsError(f"TLS connection failed: {e}") from e

        except OSError as e:
            self.state = ConnectionState.CLOSED
            raise NetworkError(
                f"Failed to connect to {self.host}:{self.port}: {e}"
            ) from e

        finally:
            self._connect_task = None

        if self.state is not ConnectionState.CONNECTING:
            # Destroyed while the handshake result was being delivered
            self._close_writer()
            raise self._error or NetworkError("Connection destroyed while connecting")

        self.state = ConnectionState.ESTABLISHED
        logger.debug("Connected to %s:%s", self.host, self.port)
        self.emit("connect")

    async def write(self, data: bytes) -> None:
        """
        Write data in bounded slices.

        Each slice is flushed before the next one and reported as activity.
        """
        for start in range(0, len(data), WRITE_CHUNK_SIZE):
            writer = self._require_writer()
            chunk = data[start : start + WRITE_CHUNK_SIZE]
            try:
                writer.write(chunk)
                await writer.drain()
            except OSError as e:
                self._raise_if_destroyed()
                raise NetworkError(f"Network error during write: {e}") from e

            self._touch("write", len(chunk))

    async def read(self, n: int = -1) -> bytes:
        """Read up to n bytes. Returns b"" on EOF."""
        if self._buffer:
            size = len(self._buffer) if n < 0 else min(n, len(self._buffer))
            data = bytes(self._buffer[:size])
            del self._buffer[:size]
            return data

        return await self._receive(n)

    async def readuntil(
        self, separator: bytes = b"\n", limit: int = LINE_LIMIT
    ) -> bytes:
        """
        Read until separator (included).

        Bytes are received segment by segment as they arrive, and every
        segment is reported as activity. Bytes past the separator stay
        buffered for the next read.

        Raises:
            ProtocolError: If more than ``limit`` bytes arrive without the
                separator.
            NetworkError: If the connection ends before the separator.
        """
        buffer = self._buffer
        while True:
            index = buffer.find(separator)
            if index >= 0:
                end = index + len(separator)
                data = bytes(buffer[:end])
                del buffer[:end]
                return data

            if len(buffer) > limit:
                raise ProtocolError(f"Line exceeds maximum size of {limit} bytes")

            chunk = await self._receive(READ_CHUNK_SIZE)
            if not chunk:
                if not buffer:
                    raise NetworkError("Server closed connection without response")
                raise NetworkError("Connection closed prematurely")
            buffer += chunk

    def is_usable(self) -> bool:
        """Check if connection is usable."""
        if not self.established or not self.writer or not self.reader:
            return False

        return not self.writer.is_closing() and not self.reader.at_eof()

    def release(self) -> None:
        """Signal that the connection went back to its pool."""
        logger.debug("Released %r", self)
        self.emit("release")

    def destroy(self, error: Optional[BaseException] = None) -> None:
        """
        Abort the connection immediately.

        Cancels a pending connection attempt or aborts the established
        transport. Pending reads and writes fail with ``error``.
        """
        if self.state is ConnectionState.CLOSED:
            return

        self._error = error
        self.state = ConnectionState.CLOSED

        if self._connect_task is not None and not self._connect_task.done():
            self._connect_task.cancel()

        if self.writer is not None:
            self.writer.transport.abort()

        logger.debug("Destroyed %r: %s", self, error)
        self.emit("close", error)

    async def close(self) -> None:
        """Async close."""
        if self.state is ConnectionState.CLOSED:
            return

        self.state = ConnectionState.CLOSED
        if self._connect_task is not None and not self._connect_task.done():
            self._connect_task.cancel()

        if self.writer:
            self.writer.close()
            with contextlib.suppress(Exception):
                await self.writer.wait_closed()

        self.reader = None
        self.writer = None
        self._buffer.clear()
        self.emit("close", None)

    def _close_writer(self) -> None:
        if self.writer is not None:
            self.writer.transport.abort()

    async def _receive(self, n: int) -> bytes:
        reader = self._require_reader()
        try:
            data = await reader.read(n)
        except OSError as e:
            self._raise_if_destroyed()
            raise NetworkError(f"Network error during read: {e}") from e

        if data:
            self._touch("read", len(data))
        else:
            self._raise_if_destroyed()
        return data

    def _touch(self, direction: str, nbytes: int) -> None:
        self.emit("activity", direction, nbytes)

    def _raise_if_destroyed(self) -> None:
        if self._error is not None:
            raise self._error

    def _require_reader(self) -> asyncio.StreamReader:
        if self.reader is None or not self.established:
            self._raise_if_destroyed()
            raise NetworkError(f"Connection to {self.host}:{self.port} is not open")
        return self.reader

    def _require_writer(self) -> asyncio.StreamWriter:
        if self.writer is None or not self.established:
            self._raise_if_destroyed()
            raise NetworkError(f"Connection to {self.host}:{self.port} is not open")
        return self.writer
