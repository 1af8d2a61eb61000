"""Tests for RouteBuilder and Router: matching, groups, observers, dispatch."""

import pytest

from aerossr.errors import MethodNotAllowed, MissingHandlerError, NotFound
from aerossr.http.query import QueryParams
from aerossr.http.request import Request
from aerossr.http.response import Response
from aerossr.routing import Route, RouteBuilder, RouteContext, RouteMetadata, Router


def _request(method: str, path: str, query: str = "") -> Request:
    return Request(method=method, path=path, query=QueryParams(query))


def _ok(ctx: RouteContext) -> str:
    return "ok"


class RecordingObserver:
    def __init__(self) -> None:
        self.events: list[tuple[str, str]] = []

    def on_route_matched(self, route: Route) -> None:
        self.events.append(("matched", route.pattern))

    def on_route_executed(self, route: Route, duration: float) -> None:
        assert duration >= 0
        self.events.append(("executed", route.pattern))

    def on_route_error(self, route: Route, error: Exception) -> None:
        self.events.append(("error", str(error)))


class TestRouteBuilder:
    def test_build(self) -> None:
        meta = RouteMetadata(description="Show a user", tags=("users",))
        route = RouteBuilder("/users/:id", "get").handler(_ok).metadata(meta).build()
        assert route.pattern == "/users/:id"
        assert route.method == "GET"
        assert route.handler is _ok
        assert route.metadata is meta

    def test_use_keeps_order(self) -> None:
        async def first(ctx, next):
            return await next(ctx)

        async def second(ctx, next):
            return await next(ctx)

        route = RouteBuilder("/").use(first).use(second).handler(_ok).build()
        assert route.middleware == (first, second)

    def test_build_without_handler_raises(self) -> None:
        with pytest.raises(MissingHandlerError, match="no handler"):
            RouteBuilder("/users", "POST").build()


class TestMatch:
    def test_matches_pattern_and_method(self) -> None:
        router = Router()
        router.add(router.get("/users/:id").handler(_ok))
        match = router.match("/users/42", "GET")
        assert match is not None
        assert match.params == {"id": "42"}

    def test_method_must_match(self) -> None:
        router = Router()
        router.add(router.get("/users/:id").handler(_ok))
        assert router.match("/users/42", "POST") is None

    def test_first_registered_wins(self) -> None:
        router = Router()
        first = router.add(router.get("/users/me").handler(_ok))
        router.add(router.get("/users/:id").handler(_ok))
        match = router.match("/users/me", "GET")
        assert match is not None
        assert match.route is first

    def test_query_string_is_ignored(self) -> None:
        router = Router()
        router.add(router.get("/search").handler(_ok))
        assert router.match("/search?q=x", "GET") is not None

    def test_no_match(self) -> None:
        assert Router().match("/nothing", "GET") is None

    def test_allowed_methods(self) -> None:
        router = Router()
        router.add(router.get("/items").handler(_ok))
        router.add(router.post("/items").handler(_ok))
        assert router.allowed_methods("/items") == frozenset({"GET", "POST"})

    def test_add_accepts_built_route(self) -> None:
        router = Router()
        route = router.delete("/items/:id").handler(_ok).build()
        assert router.add(route) is route
        assert router.routes == (route,)


class TestGroup:
    def test_prefixes_routes(self) -> None:
        router = Router()

        def api(sub: Router) -> None:
            sub.add(sub.get("/users").handler(_ok))
            sub.add(sub.put("/users/:id").handler(_ok))

        router.group("/api", api)
        assert [(r.method, r.pattern) for r in router.routes] == [
            ("GET", "/api/users"),
            ("PUT", "/api/users/:id"),
        ]
        match = router.match("/api/users/5", "PUT")
        assert match is not None
        assert match.params == {"id": "5"}

    def test_nested_groups(self) -> None:
        router = Router()
        router.group(
            "/api",
            lambda api: api.group("/v1", lambda v1: v1.add(v1.get("/ping").handler(_ok))),
        )
        assert router.routes[0].pattern == "/api/v1/ping"


class TestHandle:
    async def test_handler_receives_context(self) -> None:
        router = Router()
        seen: list[RouteContext] = []

        def show(ctx: RouteContext) -> dict:
            seen.append(ctx)
            return {"id": ctx.params["id"], "page": ctx.query.get("page")}

        router.add(router.get("/users/:id").handler(show))
        response = await router.handle(_request("GET", "/users/42", "page=3&page=4"))
        assert response.status == 200
        assert response.content_type.startswith("application/json")
        assert response.text == '{"id": "42", "page": "4"}'
        assert seen[0].request.path == "/users/42"

    async def test_async_handler(self) -> None:
        router = Router()

        async def hello(ctx: RouteContext) -> str:
            return "<p>hi</p>"

        router.add(router.get("/").handler(hello))
        response = await router.handle(_request("GET", "/"))
        assert response.text == "<p>hi</p>"

    async def test_route_middleware_runs_in_order(self) -> None:
        router = Router()
        calls: list[str] = []

        async def outer(ctx: RouteContext, next) -> object:
            calls.append("outer")
            ctx.state["user"] = "ada"
            return await next(ctx)

        def inner(ctx: RouteContext, next) -> object:
            calls.append("inner")
            return next(ctx)

        def handler(ctx: RouteContext) -> str:
            calls.append("handler")
            return ctx.state["user"]

        router.add(router.get("/me").use(outer, inner).handler(handler))
        response = await router.handle(_request("GET", "/me"))
        assert response.text == "ada"
        assert calls == ["outer", "inner", "handler"]

    async def test_middleware_can_short_circuit(self) -> None:
        router = Router()

        def deny(ctx: RouteContext, next) -> Response:
            return Response("denied", status=403)

        router.add(router.get("/admin").use(deny).handler(_ok))
        response = await router.handle(_request("GET", "/admin"))
        assert response.status == 403

    async def test_not_found(self) -> None:
        with pytest.raises(NotFound):
            await Router().handle(_request("GET", "/missing"))

    async def test_method_not_allowed(self) -> None:
        router = Router()
        router.add(router.get("/items").handler(_ok))
        with pytest.raises(MethodNotAllowed) as info:
            await router.handle(_request("POST", "/items"))
        assert info.value.status == 405
        assert ("Allow", "GET") in info.value.headers

    async def test_head_falls_back_to_get(self) -> None:
        router = Router()
        router.add(router.get("/page").handler(_ok))
        response = await router.handle(_request("HEAD", "/page"))
        assert response.status == 200


class TestObservers:
    async def test_success_events(self) -> None:
        router = Router()
        observer = RecordingObserver()
        router.add_observer(observer)
        router.add(router.get("/users/:id").handler(_ok))
        await router.handle(_request("GET", "/users/1"))
        assert observer.events == [("matched", "/users/:id"), ("executed", "/users/:id")]

    async def test_error_event_and_reraise(self) -> None:
        router = Router()
        observer = RecordingObserver()
        router.add_observer(observer)

        def boom(ctx: RouteContext) -> str:
            raise RuntimeError("boom")

        router.add(router.get("/boom").handler(boom))
        with pytest.raises(RuntimeError):
            await router.handle(_request("GET", "/boom"))
        assert observer.events == [("matched", "/boom"), ("error", "boom")]

    async def test_removed_observer_is_silent(self) -> None:
        router = Router()
        observer = RecordingObserver()
        router.add_observer(observer)
        router.remove_observer(observer)
        router.add(router.get("/").handler(_ok))
        await router.handle(_request("GET", "/"))
        assert observer.events == []

    async def test_failing_observer_does_not_break_dispatch(self) -> None:
        router = Router()

        class Broken(RecordingObserver):
            def on_route_matched(self, route: Route) -> None:
                raise ValueError("observer bug")

        router.add_observer(Broken())
        router.add(router.get("/").handler(_ok))
        response = await router.handle(_request("GET", "/"))
        assert response.text == "ok"
