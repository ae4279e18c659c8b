"""src/reqtimeout/transport/__init__.py

Transport layer module for Reqtimeout.

This module provides observable asynchronous TCP/TLS connections and the
keep-alive connection pool.
"""

from .connection import AsyncConnection, ConnectionState
from .connection_pool import AsyncConnectionPool

__all__ = ["AsyncConnection", "AsyncConnectionPool", "ConnectionState"]
