"""Immutable query string parameters.

``params[key]`` returns the *last* value given for a key, matching the
route strategy's ``extract_query``; ``get_list`` returns every value.
"""

from collections.abc import Iterator, Mapping
from urllib.parse import parse_qsl


def parse_query(query_string: str) -> list[tuple[str, str]]:
    """Split a query string into decoded ``(key, value)`` pairs, in order."""
    return parse_qsl(query_string, keep_blank_values=True)


class QueryParams(Mapping[str, str]):
    """Immutable query string parameters."""

    __slots__ = ("_data", "_raw")

    def __init__(self, query_string: bytes | str = b"") -> None:
        raw = query_string.decode("latin-1") if isinstance(query_string, bytes) else query_string
        data: dict[str, list[str]] = {}
        for key, value in parse_query(raw):
            data.setdefault(key, []).append(value)
        self._raw = raw
        self._data = data

    def __getitem__(self, key: str) -> str:
        return self._data[key][-1]

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        items = ", ".join(f"{k!r}: {self[k]!r}" for k in self)
        return f"QueryParams({{{items}}})"

    def get_list(self, key: str) -> list[str]:
        """Return all values for *key*, in order."""
        return list(self._data.get(key, ()))

    @property
    def raw(self) -> str:
        """The undecoded query string."""
        return self._raw
