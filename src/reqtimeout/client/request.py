"""src/reqtimeout/client/request.py

HTTP request handle.

A ClientRequest runs as an asyncio task and reports its lifecycle through
signals, so timeouts (or anything else) can observe it without changing how
it is issued.

Signals:
    socket(connection): a connection was assigned to the request.
    response(response): the response head was received.
    data(chunk): a response body chunk was received.
    complete(response): the response was fully received.
    error(exc): the request failed; ``exc`` is also raised by ``await``.
    close(): the request reached a terminal state (always last).
"""

# pylint: disable=too-many-instance-attributes

import asyncio
import logging
from typing import TYPE_CHECKING, Any, Dict, Generator, Optional, Union

from reqtimeout.client.response import Response
from reqtimeout.exceptions import NetworkError, RequestAborted
from reqtimeout.http.body import iter_body
from reqtimeout.http.http11 import MAX_HEADER_SIZE
from reqtimeout.http.url import URL
from reqtimeout.timeouts.controller import attach
from reqtimeout.transport.connection import AsyncConnection
from reqtimeout.transport.connection_pool import AsyncConnectionPool
from reqtimeout.utils.events import EventEmitter
from reqtimeout.version import __version__

if TYPE_CHECKING:  # pragma: no cover
    from reqtimeout.timeouts.controller import TimeoutController
    from reqtimeout.utils.timing import TimeoutValue

__all__ = ["ClientRequest", "request", "get"]

logger = logging.getLogger(__name__)

USER_AGENT = f"reqtimeout/{__version__}"


class ClientRequest(EventEmitter):
    """
    HTTP request handle.

    Attributes:
        method: HTTP method.
        url: Request URL.
        host: Target host.
        port: Target port.
        connection: Connection assigned to the request, if any.
        response: Response, once its head was received.
        finished: Whether the request reached a terminal state.
        error: Terminal error, if the request failed.
        timeout_controller: Timeout controller attached to the request.
    """

    __slots__ = (
        "method",
        "url",
        "host",
        "port",
        "use_ssl",
        "headers",
        "body",
        "pool",
        "connection",
        "limits",
        "loop",
        "response",
        "finished",
        "error",
        "timeout_controller",
        "_target",
        "_authority",
        "_owns_connection",
        "_abort_error",
        "_task",
        "_started",
    )

    # pylint: disable=too-many-arguments
    def __init__(
        self,
        method: str,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        body: Optional[Union[str, bytes]] = None,
        *,
        connection: Optional[AsyncConnection] = None,
        pool: Optional[AsyncConnectionPool] = None,
        limits: Optional[Dict[str, int]] = None,
    ) -> None:
        """
        Initialize a request. Must be called with a running event loop.

        Args:
            method: HTTP method (GET, POST, PUT, etc.).
            url: Absolute http(s) URL.
            headers: Request headers.
            body: Request body.
            connection: Caller-supplied connection, opened or not. It is
                used as-is and never closed by the request.
            pool: Keep-alive pool to take the connection from.
            limits: Response parser limits (max_header_size, max_body_size).
        """
        super().__init__()
        parsed = URL(url)
        self.method = method.upper()
        self.url = url
        self.host = parsed.host
        self.port = parsed.port
        self.use_ssl = parsed.use_ssl
        self.headers = dict(headers or {})
        self.body = body
        self.pool = pool
        self.connection = connection
        self.limits = limits
        self.loop = asyncio.get_running_loop()
        self.response: Optional[Response] = None
        self.finished = False
        self.error: Optional[BaseException] = None
        self.timeout_controller: Optional["TimeoutController"] = None
        self._target = parsed.target
        self._authority = parsed.authority
        self._owns_connection = False
        self._abort_error: Optional[BaseException] = None
        self._task: Optional["asyncio.Task[Response]"] = None
        self._started = False

    def __repr__(self) -> str:
        return f"<ClientRequest {self.method} {self.url}>"

    def __await__(self) -> Generator[Any, None, Response]:
        return self.wait().__await__()

    @staticmethod
    def build_request(
        method: str,
        target: str,
        host: str,
        headers: Dict[str, str],
        body: Optional[Union[str, bytes]],
        *,
        keep_alive: bool = False,
    ) -> bytes:
        """
        Builds the raw HTTP request bytes.
        """
        request_line = f"{method} {target} HTTP/1.1\r\n"
        default_headers = {
            "Host": host,
            "Connection": "keep-alive" if keep_alive else "close",
            "User-Agent": USER_AGENT,
        }

        final_headers = {**default_headers, **headers}

        if body:
            if isinstance(body, str):
                body_bytes = body.encode("utf-8")
            else:
                body_bytes = body
            final_headers["Content-Length"] = str(len(body_bytes))
        else:
            body_bytes = b""
            if method in ("POST", "PUT", "PATCH"):
                final_headers.setdefault("Content-Length", "0")

        headers_str = ""
        for k, v in final_headers.items():
            # Validate against HTTP header injection attacks
            if "\r" in k or "\n" in k or "\r" in v or "\n" in v:
                raise ValueError(f"Invalid character in header {k}: {v!r}")
            if "\x00" in k or "\x00" in v:
                raise ValueError(f"Null byte in header {k}: {v!r}")
            headers_str += f"{k}: {v}\r\n"

        return (request_line + headers_str + "\r\n").encode("utf-8") + body_bytes

    def start(self) -> "ClientRequest":
        """Schedule the request on the event loop. Idempotent."""
        if self._task is None and not self.finished:
            self._task = self.loop.create_task(self._run())
            self._task.add_done_callback(self._retrieve_task_exception)
        return self

    async def wait(self) -> Response:
        """
        Start the request if needed and wait for its response.

        Raises:
            ReqtimeoutError: The terminal error of the request.
        """
        self.start()
        if self._task is None:
            # Aborted before it was ever started
            raise self.error or RequestAborted(f"Request to {self.host} aborted")

        try:
            return await self._task
        except asyncio.CancelledError:
            if self._task.cancelled() and self._abort_error is not None:
                raise self._abort_error from None
            raise

    def abort(self, error: Optional[BaseException] = None) -> None:
        """
        Abort the request.

        Destroys the assigned connection (or the pending connection attempt)
        and fails the request with ``error`` (RequestAborted by default).
        Does nothing once the request is finished.
        """
        if self.finished or self._abort_error is not None:
            return

        if error is None:
            error = RequestAborted(f"Request to {self.host} aborted")
        self._abort_error = error
        logger.debug("Aborting %r: %s", self, error)

        if self.connection is not None:
            self.connection.destroy(error)

        if self._task is None or not self._started:
            # The task body will never run: fail right here
            if self._task is not None:
                self._task.cancel()
            self._fail(error)
        elif not self._task.done():
            self._task.cancel()

    async def _run(self) -> Response:
        self._started = True
        error: BaseException
        try:
            response = await self._perform()

        except asyncio.CancelledError:
            if self._abort_error is None:
                self._release_on_failure()
                self._close()
                raise
            error = self._abort_error

        except Exception as exc:  # pylint: disable=broad-exception-caught
            error = self._abort_error or exc

        else:
            self._complete(response)
            await self._release_connection(response)
            return response

        self._release_on_failure()
        self._fail(error)
        raise error

    async def _perform(self) -> Response:
        conn = self.connection
        if conn is None:
            if self.pool is not None:
                conn = await self.pool.get_connection(self.host, self.port, self.use_ssl)
            else:
                conn = AsyncConnection(self.host, self.port, self.use_ssl)
            self._owns_connection = True

        self.connection = conn
        self.emit("socket", conn)

        if conn.connecting:
            await conn.open()
        elif conn.destroyed:
            raise NetworkError(f"Connection to {conn.host}:{conn.port} is closed")

        await conn.write(
            self.build_request(
                self.method,
                self._target,
                self._authority,
                self.headers,
                self.body,
                keep_alive=self.pool is not None,
            )
        )

        max_header_size = (self.limits or {}).get("max_header_size", MAX_HEADER_SIZE)
        head = await conn.readuntil(b"\r\n\r\n", limit=max_header_size)
        response = Response(head, url=self.url, limits=self.limits)
        self.response = response
        self.emit("response", response)

        framing, content_length = response.framing(self.method)
        chunks = []
        async for chunk in iter_body(
            conn, framing, content_length, response.max_body_size
        ):
            chunks.append(chunk)
            self.emit("data", chunk)

        response.body = b"".join(chunks)
        return response

    async def _release_connection(self, response: Response) -> None:
        conn = self.connection
        if conn is None or not self._owns_connection:
            return

        if self.pool is None:
            await conn.close()
        elif response.keep_alive(self.method):
            await self.pool.put_connection(conn)
        else:
            await conn.close()
            self.pool.discard_connection(conn)

    def _release_on_failure(self) -> None:
        conn = self.connection
        if conn is None or not self._owns_connection:
            return

        if self.pool is not None:
            self.pool.discard_connection(conn)
        else:
            conn.destroy(self._abort_error)

    def _complete(self, response: Response) -> None:
        self.finished = True
        logger.debug("%r completed with %r", self, response)
        self.emit("complete", response)
        self._close()

    def _fail(self, error: BaseException) -> None:
        if self.finished:
            return
        self.finished = True
        self.error = error
        logger.debug("%r failed: %s", self, error)
        self.emit("error", error)
        self._close()

    def _close(self) -> None:
        self.finished = True
        self.emit("close")

    @staticmethod
    def _retrieve_task_exception(task: "asyncio.Task[Response]") -> None:
        # Failures are delivered through the "error" signal as well
        if not task.cancelled():
            task.exception()


# pylint: disable=too-many-arguments
def request(
    method: str,
    url: str,
    headers: Optional[Dict[str, str]] = None,
    body: Optional[Union[str, bytes]] = None,
    *,
    timeout: "TimeoutValue" = None,
    connection: Optional[AsyncConnection] = None,
    pool: Optional[AsyncConnectionPool] = None,
    limits: Optional[Dict[str, int]] = None,
) -> ClientRequest:
    """
    Start a request and attach timeouts to it.

    The returned request is awaitable and already scheduled.
    """
    req = ClientRequest(
        method,
        url,
        headers,
        body,
        connection=connection,
        pool=pool,
        limits=limits,
    ).start()
    attach(req, timeout)
    return req


def get(url: str, **kwargs: Any) -> ClientRequest:
    """Start a GET request. See :func:`request`."""
    return request("GET", url, **kwargs)
