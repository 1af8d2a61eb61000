"""Fluent route construction."""

from __future__ import annotations

from aerossr.errors import MissingHandlerError
from aerossr.routing.route import Route, RouteHandler, RouteMetadata, RouteMiddleware


class RouteBuilder:
    """Collects a handler, middleware and metadata, then builds a ``Route``.

    Usage::

        route = (
            RouteBuilder("/users/:id", "GET")
            .use(require_auth)
            .handler(show_user)
            .metadata(RouteMetadata(description="Show one user"))
            .build()
        )
    """

    __slots__ = ("_handler", "_metadata", "_middleware", "method", "pattern")

    def __init__(self, pattern: str, method: str = "GET") -> None:
        self.pattern = pattern
        self.method = method.upper()
        self._handler: RouteHandler | None = None
        self._middleware: list[RouteMiddleware] = []
        self._metadata: RouteMetadata | None = None

    def handler(self, fn: RouteHandler) -> RouteBuilder:
        self._handler = fn
        return self

    def use(self, *middleware: RouteMiddleware) -> RouteBuilder:
        """Append route middleware. Runs in the order given, before the handler."""
        self._middleware.extend(middleware)
        return self

    def metadata(self, meta: RouteMetadata) -> RouteBuilder:
        self._metadata = meta
        return self

    def build(self) -> Route:
        """Return the route. Raises ``MissingHandlerError`` without a handler."""
        if self._handler is None:
            raise MissingHandlerError(self.method, self.pattern)
        return Route(
            pattern=self.pattern,
            method=self.method,
            handler=self._handler,
            middleware=tuple(self._middleware),
            metadata=self._metadata,
        )
