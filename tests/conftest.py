import asyncio
from typing import Any, List, Optional
from unittest import mock

import pytest

from reqtimeout.transport.connection import AsyncConnection, ConnectionState
from reqtimeout.utils.events import EventEmitter


class FakeConnection(EventEmitter):
    """Connection handle driven by hand from the tests."""

    def __init__(self, established: bool = False) -> None:
        super().__init__()
        self.established = established
        self.marker: Any = None
        self.destroyed_with: List[Optional[BaseException]] = []

    def establish(self) -> None:
        self.established = True
        self.emit("connect")

    def activity(self, nbytes: int = 1) -> None:
        self.emit("activity", "read", nbytes)

    def release(self) -> None:
        self.emit("release")

    def destroy(self, error: Optional[BaseException] = None) -> None:
        self.destroyed_with.append(error)


class FakeRequest(EventEmitter):
    """Request handle driven by hand from the tests."""

    def __init__(
        self,
        connection: Optional[FakeConnection] = None,
        host: str = "example.com",
        port: int = 8081,
    ) -> None:
        super().__init__()
        self.loop = asyncio.get_running_loop()
        self.connection = connection
        self.host = host
        self.port = port
        self.finished = False
        self.timeout_controller: Any = None
        self.errors: List[BaseException] = []

    def assign(self, connection: FakeConnection) -> None:
        self.connection = connection
        self.emit("socket", connection)

    def complete(self) -> None:
        self.finished = True
        self.emit("complete", None)
        self.emit("close")

    def abort(self, error: BaseException) -> None:
        if self.finished:
            return
        self.finished = True
        self.errors.append(error)
        if self.connection is not None:
            self.connection.destroy(error)
        self.emit("error", error)
        self.emit("close")


@pytest.fixture
def make_connection():
    """Factory fixture for FakeConnection."""
    return FakeConnection


@pytest.fixture
def make_request():
    """Factory fixture for FakeRequest (needs a running loop)."""
    return FakeRequest


@pytest.fixture
def make_stream_connection():
    """
    Factory fixture for an established AsyncConnection reading from memory.

    The returned connection reads ``data`` then hits EOF; writes go to a
    mock writer. Must be called with a running loop.
    """

    def factory(data: bytes = b"", eof: bool = True) -> AsyncConnection:
        reader = asyncio.StreamReader()
        reader.feed_data(data)
        if eof:
            reader.feed_eof()

        writer = mock.Mock(spec=asyncio.StreamWriter)
        writer.drain = mock.AsyncMock()
        writer.wait_closed = mock.AsyncMock()
        writer.is_closing.return_value = False

        conn = AsyncConnection("example.com", 80)
        conn.reader = reader
        conn.writer = writer
        conn.state = ConnectionState.ESTABLISHED
        return conn

    return factory
