"""tests/unit/test_body.py"""

import pytest

from reqtimeout.exceptions import NetworkError, ProtocolError
from reqtimeout.http.body import (
    iter_body,
    iter_read_chunked,
    iter_read_exact,
    iter_read_until_eof,
    read_exact,
)
from reqtimeout.http.http11 import BodyFraming


async def collect(chunks):
    """Drain an async iterator into a list."""
    return [chunk async for chunk in chunks]


class TestReadExact:
    """Tests for read_exact and iter_read_exact."""

    @pytest.mark.asyncio
    async def test_read_exact(self, make_stream_connection):
        """Test reading an exact number of bytes."""
        conn = make_stream_connection(b"Hello World")
        assert await read_exact(conn, 5) == b"Hello"
        assert await read_exact(conn, 6) == b" World"

    @pytest.mark.asyncio
    async def test_read_exact_zero_bytes(self, make_stream_connection):
        """Test reading zero bytes."""
        conn = make_stream_connection(b"data")
        assert await read_exact(conn, 0) == b""

    @pytest.mark.asyncio
    async def test_iter_read_exact_bounded_chunks(self, make_stream_connection):
        """Test bytes are yielded in chunks no larger than chunk_size."""
        conn = make_stream_connection(b"abcdefgh")
        chunks = await collect(iter_read_exact(conn, 8, chunk_size=3))
        assert chunks == [b"abc", b"def", b"gh"]

    @pytest.mark.asyncio
    async def test_closed_prematurely(self, make_stream_connection):
        """Test EOF before the expected length."""
        conn = make_stream_connection(b"Hel")
        with pytest.raises(NetworkError, match="closed prematurely"):
            await read_exact(conn, 10)


class TestIterReadChunked:
    """Tests for iter_read_chunked function."""

    @pytest.mark.asyncio
    async def test_single_chunk(self, make_stream_connection):
        """Test reading single chunk."""
        conn = make_stream_connection(b"5\r\nHello\r\n0\r\n\r\n")
        assert await collect(iter_read_chunked(conn)) == [b"Hello"]

    @pytest.mark.asyncio
    async def test_multiple_chunks_with_extension(self, make_stream_connection):
        """Test chunk extensions are ignored."""
        conn = make_stream_connection(b"5;ext=1\r\nHello\r\n6\r\n World\r\n0\r\n\r\n")
        assert await collect(iter_read_chunked(conn)) == [b"Hello", b" World"]

    @pytest.mark.asyncio
    async def test_trailers_skipped(self, make_stream_connection):
        """Test trailer fields after the last chunk are consumed."""
        conn = make_stream_connection(b"2\r\nok\r\n0\r\nX-Trailer: 1\r\n\r\nrest")
        assert await collect(iter_read_chunked(conn)) == [b"ok"]
        assert await conn.read(4) == b"rest"

    @pytest.mark.asyncio
    async def test_invalid_chunk_size(self, make_stream_connection):
        """Test non-hex chunk sizes are rejected."""
        conn = make_stream_connection(b"zz\r\nHello\r\n")
        with pytest.raises(ProtocolError, match="Invalid chunk size"):
            await collect(iter_read_chunked(conn))


class TestIterBody:
    """Tests for iter_body function."""

    @pytest.mark.asyncio
    async def test_no_body(self, make_stream_connection):
        """Test NONE framing reads nothing."""
        conn = make_stream_connection(b"leftover")
        assert await collect(iter_body(conn, BodyFraming.NONE)) == []

    @pytest.mark.asyncio
    async def test_length(self, make_stream_connection):
        """Test LENGTH framing stops at Content-Length."""
        conn = make_stream_connection(b"datamore")
        assert await collect(iter_body(conn, BodyFraming.LENGTH, 4)) == [b"data"]

    @pytest.mark.asyncio
    async def test_until_eof(self, make_stream_connection):
        """Test EOF framing reads until the server closes."""
        conn = make_stream_connection(b"all of it")
        assert b"".join(await collect(iter_read_until_eof(conn))) == b"all of it"

    @pytest.mark.asyncio
    async def test_max_body_size(self, make_stream_connection):
        """Test the body size limit."""
        conn = make_stream_connection(b"0123456789")
        with pytest.raises(ProtocolError, match="maximum size"):
            await collect(iter_body(conn, BodyFraming.LENGTH, 10, max_body_size=5))

    @pytest.mark.asyncio
    async def test_reads_count_as_activity(self, make_stream_connection):
        """Test every chunk read is reported as connection activity."""
        conn = make_stream_connection(b"3\r\nabc\r\n0\r\n\r\n")
        activity = []
        conn.on("activity", lambda direction, n: activity.append((direction, n)))

        await collect(iter_body(conn, BodyFraming.CHUNKED))

        assert activity
        assert all(direction == "read" for direction, _ in activity)
        assert sum(n for _, n in activity) == len(b"3\r\nabc\r\n0\r\n\r\n")
