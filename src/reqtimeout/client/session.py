"""src/reqtimeout/client/session.py

HTTP Session management module.

This module provides a session with a keep-alive connection pool, persistent
headers and default timeouts attached to every request it issues.
"""

import urllib.parse
from types import TracebackType
from typing import Dict, Optional, Type, Union

from reqtimeout.client.request import ClientRequest
from reqtimeout.timeouts.controller import attach
from reqtimeout.transport.connection_pool import AsyncConnectionPool
from reqtimeout.utils.timing import Timeout, TimeoutValue

__all__ = ["AsyncSession"]

# pylint: disable=too-many-instance-attributes,too-many-arguments

_UNSET = object()


class AsyncSession:
    """
    Asynchronous HTTP session manager.

    Request methods return the started :class:`ClientRequest` without
    awaiting it, so callers can subscribe to its signals first::

        async with AsyncSession(timeout={"connect": 2, "socket": 10}) as session:
            req = session.get("http://example.com/")
            req.on("response", print)
            response = await req

    Attributes:
        headers: Persistent headers for all requests.
        pool: Async connection pool for reuse (None without keep-alive).
        base_url: Base URL prefix for relative URLs.
        timeout: Default timeout attached to every request.
        limits: Default resource limits for requests.
    """

    __slots__ = ("headers", "pool", "limits", "base_url", "timeout")

    def __init__(
        self,
        *,
        base_url: Optional[str] = None,
        timeout: TimeoutValue = None,
        keep_alive: bool = True,
        max_connections: int = 10,
        max_idle_time: float = 30.0,
        limits: Optional[Dict[str, int]] = None,
    ) -> None:
        """
        Initialize a new async HTTP session.

        Args:
            base_url: Base URL prefix for relative URLs.
            timeout: Default connect/socket timeouts (seconds, mapping or
                Timeout) for all requests.
            keep_alive: Whether to pool connections between requests.
            max_connections: Maximum connections per host.
            max_idle_time: Seconds an idle pooled connection is kept.
            limits: Default resource limits (max_header_size, max_body_size).
        """
        self.headers: Dict[str, str] = {}
        self.pool: Optional[AsyncConnectionPool] = (
            AsyncConnectionPool(max_size=max_connections, max_idle_time=max_idle_time)
            if keep_alive
            else None
        )
        self.limits = limits
        self.base_url = base_url
        self.timeout = Timeout.from_value(timeout)

    async def __aenter__(self) -> "AsyncSession":
        return self

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[TracebackType],
    ) -> None:
        await self.close()

    def _resolve_url(self, url: str) -> str:
        """Resolve URL against base_url if relative."""
        if self.base_url and not urllib.parse.urlparse(url).scheme:
            return urllib.parse.urljoin(self.base_url, url)
        return url

    def request(
        self,
        method: str,
        url: str,
        *,
        headers: Optional[Dict[str, str]] = None,
        body: Optional[Union[str, bytes]] = None,
        timeout: Union[TimeoutValue, object] = _UNSET,
        limits: Optional[Dict[str, int]] = None,
    ) -> ClientRequest:
        """
        Start a request with the session's pool, headers and timeouts.

        Args:
            method: HTTP method (GET, POST, PUT, etc.).
            url: Request URL (absolute or relative to base_url).
            headers: Additional headers for this request.
            body: Request body.
            timeout: Timeouts for this request (overrides the session
                default; None disables them).
            limits: Resource limits (overrides session limits).

        Returns:
            The started request; await it for the Response.
        """
        req = ClientRequest(
            method,
            self._resolve_url(url),
            {**self.headers, **(headers or {})},
            body,
            pool=self.pool,
            limits=limits or self.limits,
        ).start()
        attach(req, self.timeout if timeout is _UNSET else timeout)  # type: ignore[arg-type]
        return req

    def get(self, url: str, **kwargs: object) -> ClientRequest:
        """Start a GET request."""
        return self.request("GET", url, **kwargs)  # type: ignore[arg-type]

    def post(self, url: str, **kwargs: object) -> ClientRequest:
        """Start a POST request."""
        return self.request("POST", url, **kwargs)  # type: ignore[arg-type]

    def put(self, url: str, **kwargs: object) -> ClientRequest:
        """Start a PUT request."""
        return self.request("PUT", url, **kwargs)  # type: ignore[arg-type]

    def patch(self, url: str, **kwargs: object) -> ClientRequest:
        """Start a PATCH request."""
        return self.request("PATCH", url, **kwargs)  # type: ignore[arg-type]

    def delete(self, url: str, **kwargs: object) -> ClientRequest:
        """Start a DELETE request."""
        return self.request("DELETE", url, **kwargs)  # type: ignore[arg-type]

    def head(self, url: str, **kwargs: object) -> ClientRequest:
        """Start a HEAD request."""
        return self.request("HEAD", url, **kwargs)  # type: ignore[arg-type]

    def options(self, url: str, **kwargs: object) -> ClientRequest:
        """Start an OPTIONS request."""
        return self.request("OPTIONS", url, **kwargs)  # type: ignore[arg-type]

    async def close(self) -> None:
        """
        Close all idle connections in the connection pool.

        Should be called when done with the session to free resources.
        """
        if self.pool is not None:
            await self.pool.close_all()
