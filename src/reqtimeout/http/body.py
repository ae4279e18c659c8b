"""src/reqtimeout/http/body.py

HTTP body reading (fixed-length, chunked, until EOF) for Reqtimeout.

Bodies are read in bounded chunks so every chunk counts as activity on the
connection.
"""

from typing import TYPE_CHECKING, AsyncIterator, Optional

from reqtimeout.exceptions import NetworkError, ProtocolError
from reqtimeout.http.http11 import BodyFraming

if TYPE_CHECKING:  # pragma: no cover
    from reqtimeout.transport.connection import AsyncConnection

__all__ = [
    "read_exact",
    "iter_read_exact",
    "iter_read_chunked",
    "iter_read_until_eof",
    "iter_body",
]

CHUNK_SIZE = 65536


async def read_exact(conn: "AsyncConnection", n: int) -> bytes:
    """Read exactly n bytes from the connection."""
    data = b""
    async for chunk in iter_read_exact(conn, n):
        data += chunk
    return data


async def iter_read_exact(
    conn: "AsyncConnection", n: int, chunk_size: int = CHUNK_SIZE
) -> AsyncIterator[bytes]:
    """Iterate over exactly n bytes, as they arrive."""
    remaining = n
    while remaining > 0:
        chunk = await conn.read(min(remaining, chunk_size))
        if not chunk:
            raise NetworkError("Connection closed prematurely")
        remaining -= len(chunk)
        yield chunk


async def iter_read_chunked(conn: "AsyncConnection") -> AsyncIterator[bytes]:
    """Iterate over chunked transfer-encoded response."""
    while True:
        line = await conn.readuntil(b"\r\n")

        try:
            size_hex = line.split(b";")[0].strip()
            size = int(size_hex, 16)

        except ValueError as exc:
            raise ProtocolError(f"Invalid chunk size: {line!r}") from exc

        if size == 0:
            # Skip trailers up to the final empty line
            while await conn.readuntil(b"\r\n") != b"\r\n":
                pass
            break

        async for data in iter_read_exact(conn, size):
            yield data

        # Consume chunk trailer CRLF
        await read_exact(conn, 2)


async def iter_read_until_eof(
    conn: "AsyncConnection", chunk_size: int = CHUNK_SIZE
) -> AsyncIterator[bytes]:
    """Iterate until the server closes the connection."""
    while True:
        chunk = await conn.read(chunk_size)
        if not chunk:
            break
        yield chunk


async def iter_body(
    conn: "AsyncConnection",
    framing: BodyFraming,
    content_length: Optional[int] = None,
    max_body_size: Optional[int] = None,
) -> AsyncIterator[bytes]:
    """Iterate over a response body according to its framing."""
    if framing is BodyFraming.NONE:
        return

    if framing is BodyFraming.LENGTH:
        chunks = iter_read_exact(conn, content_length or 0)
    elif framing is BodyFraming.CHUNKED:
        chunks = iter_read_chunked(conn)
    else:
        chunks = iter_read_until_eof(conn)

    received = 0
    async for chunk in chunks:
        received += len(chunk)
        if max_body_size is not None and received > max_body_size:
            raise ProtocolError(f"Body exceeds maximum size of {max_body_size} bytes")
        yield chunk
