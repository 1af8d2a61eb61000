"""Ordered router with pluggable matching and route observers.

Routes are tried in insertion order; the first route whose method equals
the request method and whose pattern matches the path wins. Matching
itself is delegated to a ``RouteStrategy``.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from functools import partial
from typing import Any, Protocol

from aerossr._internal.invoke import invoke
from aerossr.errors import MethodNotAllowed, NotFound
from aerossr.http.request import Request
from aerossr.http.response import Response
from aerossr.routing.builder import RouteBuilder
from aerossr.routing.route import Route, RouteContext, RouteMatch
from aerossr.routing.strategy import DefaultRouteStrategy, RouteStrategy
from aerossr.server.negotiation import to_response

logger = logging.getLogger("aerossr.router")


class RouteObserver(Protocol):
    """Receives route lifecycle notifications. Durations are in seconds."""

    def on_route_matched(self, route: Route) -> None: ...

    def on_route_executed(self, route: Route, duration: float) -> None: ...

    def on_route_error(self, route: Route, error: Exception) -> None: ...


class Router:
    """Ordered route table.

    Usage::

        router = Router()
        router.add(router.get("/users/:id").handler(show_user))
        router.group("/api", lambda api: api.add(api.post("/items").handler(create)))

        match = router.match("/users/42", "GET")
        match.params  # {"id": "42"}
    """

    __slots__ = ("_observers", "_routes", "strategy")

    def __init__(self, strategy: RouteStrategy | None = None) -> None:
        self.strategy: RouteStrategy = strategy or DefaultRouteStrategy()
        self._routes: list[Route] = []
        self._observers: list[RouteObserver] = []

    @property
    def routes(self) -> tuple[Route, ...]:
        """Registered routes, in insertion order."""
        return tuple(self._routes)

    # -- Observers --

    def add_observer(self, observer: RouteObserver) -> None:
        self._observers.append(observer)

    def remove_observer(self, observer: RouteObserver) -> None:
        if observer in self._observers:
            self._observers.remove(observer)

    # -- Registration --

    def route(self, pattern: str, method: str = "GET") -> RouteBuilder:
        """Start building a route. Pass the result (or its ``build()``) to ``add``."""
        return RouteBuilder(pattern, method)

    def get(self, pattern: str) -> RouteBuilder:
        return self.route(pattern, "GET")

    def post(self, pattern: str) -> RouteBuilder:
        return self.route(pattern, "POST")

    def put(self, pattern: str) -> RouteBuilder:
        return self.route(pattern, "PUT")

    def delete(self, pattern: str) -> RouteBuilder:
        return self.route(pattern, "DELETE")

    def patch(self, pattern: str) -> RouteBuilder:
        return self.route(pattern, "PATCH")

    def add(self, route: Route | RouteBuilder) -> Route:
        """Append a route (building it first if given a builder)."""
        if isinstance(route, RouteBuilder):
            route = route.build()
        self._routes.append(route)
        return route

    def group(self, prefix: str, callback: Callable[[Router], Any]) -> None:
        """Register the routes *callback* adds to a sub-router, under *prefix*."""
        sub = Router(self.strategy)
        callback(sub)
        for route in sub.routes:
            self.add(route.with_prefix(prefix))

    # -- Matching --

    def match(self, path: str, method: str) -> RouteMatch | None:
        """Return the first route matching *method* and *path*, or None."""
        path = path.split("?", 1)[0]
        method = method.upper()
        for route in self._routes:
            if route.method == method and self.strategy.matches(path, route.pattern):
                params = self.strategy.extract_params(path, route.pattern)
                return RouteMatch(route=route, params=params)
        return None

    def allowed_methods(self, path: str) -> frozenset[str]:
        """Methods of every route whose pattern matches *path*."""
        path = path.split("?", 1)[0]
        return frozenset(
            route.method for route in self._routes if self.strategy.matches(path, route.pattern)
        )

    # -- Dispatch --

    async def handle(self, request: Request) -> Response:
        """Run the matching route's middleware and handler.

        ``HEAD`` falls back to the ``GET`` route for the same path.
        Raises ``NotFound`` when no pattern matches and
        ``MethodNotAllowed`` when one does but not for this method.
        """
        match = self.match(request.path, request.method)
        if match is None and request.method == "HEAD":
            match = self.match(request.path, "GET")
        if match is None:
            allowed = self.allowed_methods(request.path)
            if allowed:
                raise MethodNotAllowed(allowed)
            raise NotFound(f"No route matches {request.method} {request.path!r}")

        route = match.route
        self._notify("on_route_matched", route)
        context = RouteContext(
            request=request,
            params=match.params,
            query=self.strategy.extract_query(request.url),
        )

        started = time.perf_counter()
        try:
            result = await self._call(route, 0, context)
        except Exception as exc:
            self._notify("on_route_error", route, exc)
            raise
        self._notify("on_route_executed", route, time.perf_counter() - started)
        return to_response(result)

    async def _call(self, route: Route, index: int, context: RouteContext) -> Any:
        if index < len(route.middleware):
            next_ = partial(self._call, route, index + 1)
            return await invoke(route.middleware[index], context, next_)
        return await invoke(route.handler, context)

    def _notify(self, event: str, route: Route, *args: Any) -> None:
        for observer in tuple(self._observers):
            try:
                getattr(observer, event)(route, *args)
            except Exception:
                logger.exception("Route observer %r failed in %s", observer, event)
