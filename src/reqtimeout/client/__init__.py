"""src/reqtimeout/client/__init__.py"""

from .request import ClientRequest, get, request
from .response import Response, ResponseParseError
from .session import AsyncSession

__all__ = [
    "ClientRequest",
    "AsyncSession",
    "Response",
    "ResponseParseError",
    "request",
    "get",
]
