"""src/reqtimeout/http/headers.py

Case-insensitive HTTP header management for Reqtimeout.
"""

from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple, Union, cast

HeaderInput = Union[Mapping[str, Union[str, List[str]]], Iterable[Tuple[str, str]]]


class Headers(Mapping[str, str]):
    """
    Case-insensitive dictionary for HTTP headers with support for multiple values.

    Duplicate headers are joined by commas on access (except Set-Cookie,
    whose values are only reachable through get_all()).
    """

    __slots__ = ("_headers",)

    def __init__(self, headers: Optional[HeaderInput] = None):
        self._headers: Dict[str, List[str]] = {}
        if not headers:
            return

        items: Iterable[Tuple[str, Any]]
        if isinstance(headers, Mapping):
            items = headers.items()
        else:
            items = headers

        for k, v in items:
            if isinstance(v, list):
                for item in v:
                    self.add(k, item)
            else:
                self.add(k, v)

    def __getitem__(self, key: str) -> str:
        """Get header value (comma-joined if multiple, except Set-Cookie)."""
        value = self.get(key)
        if value is None:
            raise KeyError(key)
        return cast(str, value)

    def __iter__(self) -> Iterator[str]:
        return iter(self._headers)

    def __len__(self) -> int:
        return len(self._headers)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key.lower() in self._headers

    def __repr__(self) -> str:
        return f"Headers({self._headers!r})"

    def add(self, key: str, value: str) -> None:
        """Append a value, keeping any previous ones."""
        self._headers.setdefault(key.lower(), []).append(value)

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get header value.

        Returns:
            Comma-joined string for multiple values (except Set-Cookie
            which returns first), or default if not found.
        """
        values = self._headers.get(key.lower())
        if not values:
            return default

        if key.lower() == "set-cookie":
            return values[0]

        return ", ".join(values)

    def get_all(self, key: str) -> List[str]:
        """Get all values of a header, empty list if not found."""
        return list(self._headers.get(key.lower(), []))

    def has_token(self, key: str, token: str) -> bool:
        """Whether a comma-separated header contains token (case-insensitive)."""
        token = token.lower()
        for value in self._headers.get(key.lower(), []):
            if token in (part.strip().lower() for part in value.split(",")):
                return True
        return False
