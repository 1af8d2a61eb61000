"""Route pattern matching.

Patterns are slash-separated. A segment starting with ``:`` is a parameter
and matches any single path segment::

    "/users/:id"         matches "/users/42"       -> {"id": "42"}
    "/files/:name?"      matches "/files/a.txt"    -> {"name": "a.txt"}

Empty segments are ignored on both sides, so ``/users/`` and ``/users``
are the same path. Matching is segment-count exact: a trailing ``?`` is
removed from the parameter name but the segment is still required.
"""

from typing import Protocol

from aerossr.http.query import parse_query


class RouteStrategy(Protocol):
    """How the router compares request paths with route patterns."""

    def matches(self, path: str, pattern: str) -> bool: ...

    def extract_params(self, path: str, pattern: str) -> dict[str, str]: ...

    def extract_query(self, url: str) -> dict[str, str]: ...


def _segments(path: str) -> list[str]:
    return [part for part in path.split("/") if part]


class DefaultRouteStrategy:
    """Segment-by-segment matching with ``:name`` parameters."""

    __slots__ = ()

    def matches(self, path: str, pattern: str) -> bool:
        path_parts = _segments(path)
        pattern_parts = _segments(pattern)
        if len(path_parts) != len(pattern_parts):
            return False
        return all(
            want.startswith(":") or want == got
            for want, got in zip(pattern_parts, path_parts, strict=True)
        )

    def extract_params(self, path: str, pattern: str) -> dict[str, str]:
        """Map parameter names to path segments.

        Call after ``matches``; parameters without a segment are left out.
        """
        path_parts = _segments(path)
        params: dict[str, str] = {}
        for index, part in enumerate(_segments(pattern)):
            if part.startswith(":") and index < len(path_parts):
                params[part[1:].removesuffix("?")] = path_parts[index]
        return params

    def extract_query(self, url: str) -> dict[str, str]:
        """Decode the query string of *url*. The last value for a key wins."""
        _, sep, query = url.partition("?")
        if not sep:
            return {}
        query = query.split("#", 1)[0]
        return dict(parse_query(query))
