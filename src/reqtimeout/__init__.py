"""src/reqtimeout/__init__.py

Reqtimeout - connect and socket phase timeouts for outbound HTTP requests.

Reqtimeout attaches two independent timeouts to an in-flight asyncio HTTP
request without changing how the request is issued:

    - a connect timeout, bounding the time until the connection is
      established (fails with ``ETIMEDOUT``);
    - a socket timeout, bounding the idle gap between two bytes of activity
      on the established connection (fails with ``ESOCKETTIMEDOUT``).

Pooled keep-alive connections are supported: an already connected socket
skips the connect phase and is never instrumented twice.

Example:
    Attach to a single request::

        import asyncio
        import reqtimeout

        async def main():
            req = reqtimeout.ClientRequest("GET", "http://example.com/").start()
            reqtimeout.timeout(req, {"connect": 2.0, "socket": 10.0})
            try:
                response = await req
            except reqtimeout.TimeoutError as exc:
                print(exc.kind, exc)

        asyncio.run(main())

    Session with default timeouts and keep-alive::

        async with reqtimeout.AsyncSession(timeout=5) as session:
            response = await session.get("http://example.com/")
"""

from reqtimeout.client.request import ClientRequest, get, request
from reqtimeout.client.response import Response
from reqtimeout.client.session import AsyncSession
from reqtimeout.exceptions import (
    ConnectTimeout,
    NetworkError,
    ProtocolError,
    RequestAborted,
    RequestError,
    ReqtimeoutError,
    SocketTimeout,
    TimeoutError,
)
from reqtimeout.timeouts.controller import TimeoutController, timeout
from reqtimeout.transport.connection import AsyncConnection
from reqtimeout.transport.connection_pool import AsyncConnectionPool
from reqtimeout.utils.timing import Timeout
from reqtimeout.version import __version__

# pylint: disable=redefined-builtin

__all__ = [
    "timeout",
    "Timeout",
    "TimeoutController",
    "ClientRequest",
    "Response",
    "AsyncSession",
    "AsyncConnection",
    "AsyncConnectionPool",
    "request",
    "get",
    "ReqtimeoutError",
    "RequestError",
    "NetworkError",
    "ProtocolError",
    "RequestAborted",
    "TimeoutError",
    "ConnectTimeout",
    "SocketTimeout",
    "__version__",
]
