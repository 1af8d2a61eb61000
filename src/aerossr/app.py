"""AeroSSR application class.

Mutable during setup (routes, middleware, error handlers, hooks).
Frozen at runtime when app.run() or __call__() is first invoked.
"""

import inspect
import logging
import threading
from collections.abc import Callable, Sequence
from typing import Any

from aerossr._internal.asgi import Receive, Scope, Send
from aerossr.bundling.cache import BundleCache
from aerossr.bundling.filesystem import FileSystem
from aerossr.bundling.generator import BundleGenerator, bootstrap_script
from aerossr.bundling.options import BundleResult
from aerossr.config import AppConfig
from aerossr.middleware.access_log import AccessLogMiddleware
from aerossr.middleware.cors import CORSConfig, CORSMiddleware
from aerossr.middleware.protocol import Middleware
from aerossr.middleware.registry import MiddlewareRegistry, default_registry
from aerossr.middleware.security_headers import SecurityHeadersMiddleware
from aerossr.middleware.static import StaticFiles
from aerossr.routing.builder import RouteBuilder
from aerossr.routing.route import Route, RouteHandler
from aerossr.routing.router import RouteObserver, Router
from aerossr.server.dist import DistributionHandler
from aerossr.server.errors import ErrorHandlers
from aerossr.server.handler import handle_request
from aerossr.server.pages import DefaultPage

logger = logging.getLogger("aerossr.server")


class App:
    """The aerossr application.

    Owns one bundle generator, one bundle cache and the distribution
    handler that serves them; nothing is process-global::

        app = App(AppConfig(project_path="./site"))

        @app.route("/api/users/:id")
        async def show_user(ctx):
            return {"id": ctx.params["id"]}

        app.run()

    Thread safety:
        The setup phase is single-threaded (decorators at import time).
        The freeze transition uses a Lock + double-check so exactly one
        thread builds the middleware pipeline, even when several workers
        call ``__call__()`` concurrently on the first request.
    """

    __slots__ = (
        "_error_handlers",
        "_freeze_lock",
        "_frozen",
        "_middleware",
        "_middleware_list",
        "_registry",
        "_router",
        "_shutdown_hooks",
        "_startup_hooks",
        "bundle_cache",
        "config",
        "dist",
        "generator",
    )

    def __init__(
        self,
        config: AppConfig | None = None,
        *,
        registry: MiddlewareRegistry | None = None,
        fs: FileSystem | None = None,
    ) -> None:
        self.config: AppConfig = config or AppConfig()
        self._registry = registry or default_registry()
        self._router = Router()
        self._middleware_list: list[Middleware] = []
        self._error_handlers: ErrorHandlers = {}
        self._startup_hooks: list[Callable[..., Any]] = []
        self._shutdown_hooks: list[Callable[..., Any]] = []
        self._frozen = False
        self._freeze_lock = threading.Lock()
        self._middleware: tuple[Callable[..., Any], ...] = ()

        self.generator = BundleGenerator(self.config.root, self.config.bundle, fs=fs)
        self.bundle_cache: BundleCache[BundleResult] = BundleCache(
            self.config.bundle_cache_size,
            self.config.bundle_cache_ttl,
        )
        self.dist = DistributionHandler(
            self.generator,
            self.bundle_cache,
            dist_path=self.config.dist_path,
            compression=self.config.compression,
            cache_max_age=self.config.cache_max_age,
            build_timeout=self.config.build_timeout,
        )

    # -- Route registration --

    @property
    def router(self) -> Router:
        return self._router

    def route(
        self,
        pattern: str,
        *,
        methods: Sequence[str] = ("GET",),
        middleware: Sequence[Callable[..., Any]] = (),
    ) -> Callable[[RouteHandler], RouteHandler]:
        """Register a route handler via decorator.

        Args:
            pattern: URL pattern. Use ``:name`` segments for parameters.
            methods: HTTP methods. Defaults to ``("GET",)``.
            middleware: Route-level middleware, ``async def mw(ctx, next)``.

        The handler receives a ``RouteContext`` and may return a Response,
        a string, bytes, a dict or list (JSON), or None.
        """

        def decorator(func: RouteHandler) -> RouteHandler:
            self._check_not_frozen()
            for method in methods:
                self._router.add(Route(pattern, method.upper(), func, tuple(middleware)))
            return func

        return decorator

    def add_route(self, route: Route | RouteBuilder) -> Route:
        """Add a route built with ``app.router.get(...)`` and friends."""
        self._check_not_frozen()
        return self._router.add(route)

    def group(self, prefix: str, callback: Callable[[Router], Any]) -> None:
        self._check_not_frozen()
        self._router.group(prefix, callback)

    def add_observer(self, observer: RouteObserver) -> None:
        self._router.add_observer(observer)

    # -- Error handlers --

    def error(
        self,
        code_or_exception: int | type[Exception],
    ) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
        """Register an error handler via decorator."""

        def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
            self._check_not_frozen()
            self._error_handlers[code_or_exception] = func
            return func

        return decorator

    # -- Middleware --

    def add_middleware(self, middleware: Middleware) -> None:
        """Add a middleware to the pipeline."""
        self._check_not_frozen()
        self._middleware_list.append(middleware)

    def use(self, name: str, **options: Any) -> Middleware:
        """Add a middleware by its registered name.

        Usage::

            app.use("rate_limit", limit=50, window_seconds=60)
        """
        middleware = self._registry.create(name, **options)
        self.add_middleware(middleware)
        return middleware

    # -- Bundles --

    def clear_cache(self) -> None:
        """Drop every cached bundle; the next request rebuilds."""
        self.bundle_cache.clear()
        logger.info("Bundle cache cleared")

    def bootstrap_script(self, entry_point: str) -> str:
        """Client snippet that loads the bundle for *entry_point*."""
        return bootstrap_script(entry_point, self.config.dist_path)

    # -- Lifecycle hooks --

    def on_startup(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register an async or sync startup hook via decorator.

        Hooks run in registration order during ASGI lifespan startup.
        """
        self._check_not_frozen()
        self._startup_hooks.append(func)
        return func

    def on_shutdown(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register an async or sync shutdown hook via decorator."""
        self._check_not_frozen()
        self._shutdown_hooks.append(func)
        return func

    # -- Server --

    def run(self, host: str | None = None, port: int | None = None) -> None:
        """Configure logging, freeze the app and serve it with pounce."""
        from aerossr.server.logs import configure_logging
        from aerossr.server.serve import run_server

        configure_logging(self.config)
        self._ensure_frozen()

        _host = host or self.config.host
        _port = port or self.config.port
        logger.info("Serving %s on http://%s:%d", self.config.root, _host, _port)
        run_server(
            self,
            _host,
            _port,
            workers=self.config.workers,
            reload=self.config.debug,
            log_format=self.config.log_format,
            log_level=self.config.log_level,
        )

    # -- ASGI interface --

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI 3.0 entry point."""
        if scope["type"] == "lifespan":
            await self._handle_lifespan(receive, send)
            return

        self._ensure_frozen()
        await handle_request(
            scope,
            receive,
            send,
            router=self._router,
            middleware=self._middleware,
            error_handlers=self._error_handlers,
            debug=self.config.debug,
        )

    async def _handle_lifespan(self, receive: Receive, send: Send) -> None:
        self._ensure_frozen()

        while True:
            message = await receive()
            msg_type = message["type"]

            if msg_type == "lifespan.startup":
                try:
                    await self._run_hooks(self._startup_hooks)
                except Exception as exc:
                    logger.exception("Startup hook failed")
                    await send({"type": "lifespan.startup.failed", "message": str(exc)})
                    return
                await send({"type": "lifespan.startup.complete"})

            elif msg_type == "lifespan.shutdown":
                await self._run_hooks(self._shutdown_hooks)
                self.bundle_cache.clear()
                await send({"type": "lifespan.shutdown.complete"})
                return

    @staticmethod
    async def _run_hooks(hooks: list[Callable[..., Any]]) -> None:
        for hook in hooks:
            result = hook()
            if inspect.isawaitable(result):
                await result

    # -- Internal --

    def _ensure_frozen(self) -> None:
        if self._frozen:
            return
        with self._freeze_lock:
            if self._frozen:
                return
            self._freeze()

    def _freeze(self) -> None:
        """Build the middleware pipeline, outermost first.

        MUST only be called while holding _freeze_lock.
        """
        config = self.config
        pipeline: list[Callable[..., Any]] = []
        if config.access_log:
            pipeline.append(AccessLogMiddleware())
        if config.security_headers:
            pipeline.append(SecurityHeadersMiddleware())
        if config.cors_origins:
            pipeline.append(CORSMiddleware(CORSConfig(allow_origins=config.cors_origins)))
        pipeline.extend(self._middleware_list)
        pipeline.append(self.dist)
        if config.static_enabled:
            pipeline.append(
                StaticFiles(
                    config.public_root,
                    config.static_prefix,
                    index=config.static_index,
                    dot_files=config.dot_files,
                    max_age=config.static_max_age,
                    etag=config.static_etag,
                    compression=config.compression,
                )
            )
        if config.default_page:
            pipeline.append(DefaultPage(config.public_root / "index.html", config.meta))
        self._middleware = tuple(pipeline)
        self._frozen = True

    def _check_not_frozen(self) -> None:
        if self._frozen:
            msg = (
                "Cannot modify the app after it has started serving requests. "
                "Register routes, middleware, and error handlers before calling app.run()."
            )
            raise RuntimeError(msg)
