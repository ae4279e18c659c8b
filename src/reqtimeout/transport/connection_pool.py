"""src/reqtimeout/transport/connection_pool.py

Connection pooling module.

This module provides keep-alive pooling for efficient reuse of TCP/TLS
connections across multiple HTTP requests. Connections handed out for a new
host are returned unopened: the request opens them, so its ``socket`` signal
precedes the connection's ``connect`` signal.
"""

import asyncio
import logging
import time
from typing import Dict, List, Tuple

from reqtimeout.transport.connection import AsyncConnection

__all__ = ["AsyncConnectionPool"]

logger = logging.getLogger(__name__)

PoolKey = Tuple[str, int, bool]


class AsyncConnectionPool:
    """
    Pool of reusable asynchronous connections.

    Every connection handed out holds one slot of its host's semaphore
    until it is given back with :meth:`put_connection` or
    :meth:`discard_connection`.
    """

    __slots__ = ("_pool", "_semaphores", "max_size", "max_idle_time")

    def __init__(self, max_size: int = 10, max_idle_time: float = 30.0):
        """
        Initialize connection pool.

        Args:
            max_size: Maximum number of connections per host.
            max_idle_time: Max time (seconds) a connection can be idle.
        """
        # Key -> List of (connection, timestamp) tuples (LIFO stack for reuse)
        self._pool: Dict[PoolKey, List[Tuple[AsyncConnection, float]]] = {}
        self._semaphores: Dict[PoolKey, asyncio.Semaphore] = {}
        self.max_size = max_size
        self.max_idle_time = max_idle_time

    async def get_connection(
        self, host: str, port: int, use_ssl: bool
    ) -> AsyncConnection:
        """
        Returns an idle established connection, or a new unopened one.
        Waits while max_size connections to the host are in use.
        """
        key = (host, port, use_ssl)

        if key not in self._semaphores:
            self._semaphores[key] = asyncio.Semaphore(self.max_size)

        await self._semaphores[key].acquire()

        try:
            # Cleanup expired connections first
            await self._cleanup_expired(key)

            connections = self._pool.get(key)
            while connections:
                conn, last_used = connections.pop()

                # Check if connection is still fresh and usable
                if time.time() - last_used < self.max_idle_time and conn.is_usable():
                    logger.debug("Reusing %r", conn)
                    return conn

                # Close expired or dead connection
                await conn.close()

            return AsyncConnection(host, port, use_ssl)

        except BaseException:
            self._semaphores[key].release()
            raise

    async def put_connection(self, conn: AsyncConnection) -> None:
        """
        Returns a connection to the pool for reuse with timestamp.

        Emits ``release`` on the connection before it becomes idle.
        """
        key = (conn.host, conn.port, conn.use_ssl)

        if not conn.is_usable():
            await conn.close()
            self._release_slot(key)
            return

        conn.release()

        connections = self._pool.setdefault(key, [])
        if len(connections) >= self.max_size:
            oldest_conn, _ = connections.pop(0)
            await oldest_conn.close()

        # Store connection with current timestamp
        connections.append((conn, time.time()))
        self._release_slot(key)

    def discard_connection(self, conn: AsyncConnection) -> None:
        """Destroy a connection and release its slot."""
        conn.destroy()
        self._release_slot((conn.host, conn.port, conn.use_ssl))

    async def _cleanup_expired(self, key: PoolKey) -> None:
        """
        Remove expired connections from the pool for a specific key.
        """
        if key not in self._pool:
            return

        connections = self._pool[key]
        current_time = time.time()

        # Filter out expired connections
        valid_connections: List[Tuple[AsyncConnection, float]] = []
        for conn, last_used in connections:
            if current_time - last_used < self.max_idle_time and conn.is_usable():
                valid_connections.append((conn, last_used))
            else:
                await conn.close()

        self._pool[key] = valid_connections

    def _release_slot(self, key: PoolKey) -> None:
        if key in self._semaphores:
            self._semaphores[key].release()

    def idle_count(self, host: str, port: int, use_ssl: bool = False) -> int:
        """Number of idle connections pooled for a host."""
        return len(self._pool.get((host, port, use_ssl), []))

    async def close_all(self) -> None:
        """
        Closes all idle connections in the pool.
        """
        for connections in self._pool.values():
            for conn, _ in connections:
                await conn.close()
        self._pool.clear()
