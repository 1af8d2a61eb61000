"""Route, RouteMatch, RouteContext and route metadata dataclasses."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field, replace
from typing import Any

from aerossr.http.request import Request

# A route handler receives the context and returns a response value
# (str, dict, bytes, Response, ...), sync or async.
type RouteHandler = Callable[[RouteContext], Any]

# The rest of a route's middleware chain, ending in the handler
type RouteNext = Callable[[RouteContext], Awaitable[Any]]

# Route-level middleware: ``async def mw(ctx, next) -> value``
type RouteMiddleware = Callable[[RouteContext, RouteNext], Any]


@dataclass(frozen=True, slots=True)
class ParameterMetadata:
    """Documentation for one route parameter."""

    type: str = "string"
    required: bool = True
    description: str = ""


@dataclass(frozen=True, slots=True)
class ResponseMetadata:
    """Documentation for one possible response."""

    status: int
    description: str = ""
    content_type: str | None = None


@dataclass(frozen=True, slots=True)
class RouteMetadata:
    """Descriptive data attached to a route. Not used for matching."""

    description: str = ""
    tags: tuple[str, ...] = ()
    parameters: Mapping[str, ParameterMetadata] = field(default_factory=dict)
    responses: Mapping[int, ResponseMetadata] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class Route:
    """A frozen route definition. Build one with ``RouteBuilder``."""

    pattern: str
    method: str
    handler: RouteHandler
    middleware: tuple[RouteMiddleware, ...] = ()
    metadata: RouteMetadata | None = None

    def with_prefix(self, prefix: str) -> Route:
        """Return a copy mounted under *prefix*."""
        if not prefix.strip("/"):
            return self
        pattern = f"{prefix.rstrip('/')}/{self.pattern.lstrip('/')}"
        return replace(self, pattern=pattern.rstrip("/") or "/")


@dataclass(frozen=True, slots=True)
class RouteMatch:
    """Result of a successful route match."""

    route: Route
    params: dict[str, str]


@dataclass(frozen=True, slots=True)
class RouteContext:
    """What a route handler sees.

    ``state`` is a per-request scratch dict that route middleware can use
    to pass values to the handler.
    """

    request: Request
    params: dict[str, str]
    query: dict[str, str]
    state: dict[str, Any] = field(default_factory=dict)
