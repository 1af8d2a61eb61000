"""Middleware by name.

Maps names to factories so configuration can ask for ``"cors"`` or
``"rate_limit"`` without importing classes. The built-ins are registered
in ``default_registry()``; applications may register their own.
"""

from collections.abc import Callable
from typing import Any

from aerossr.errors import ConfigurationError
from aerossr.middleware.access_log import AccessLogMiddleware
from aerossr.middleware.cors import CORSConfig, CORSMiddleware
from aerossr.middleware.protocol import Middleware
from aerossr.middleware.rate_limit import RateLimitConfig, RateLimitMiddleware
from aerossr.middleware.security_headers import SecurityHeadersConfig, SecurityHeadersMiddleware
from aerossr.middleware.static import StaticFiles

type MiddlewareFactory = Callable[..., Middleware]


class MiddlewareRegistry:
    """Name -> factory table.

    Usage::

        registry = default_registry()
        registry.register("timing", lambda: timing_middleware)
        mw = registry.create("cors", allow_origins=("https://example.com",))
    """

    __slots__ = ("_factories",)

    def __init__(self) -> None:
        self._factories: dict[str, MiddlewareFactory] = {}

    def register(self, name: str, factory: MiddlewareFactory, *, replace: bool = False) -> None:
        if name in self._factories and not replace:
            msg = f"Middleware {name!r} is already registered"
            raise ConfigurationError(msg)
        self._factories[name] = factory

    def create(self, name: str, **options: Any) -> Middleware:
        """Build the middleware registered as *name* with *options*."""
        factory = self._factories.get(name)
        if factory is None:
            known = ", ".join(sorted(self._factories)) or "none"
            msg = f"Unknown middleware {name!r} (registered: {known})"
            raise ConfigurationError(msg)
        try:
            return factory(**options)
        except TypeError as exc:
            msg = f"Invalid options for middleware {name!r}: {exc}"
            raise ConfigurationError(msg) from exc

    def names(self) -> tuple[str, ...]:
        return tuple(self._factories)

    def __contains__(self, name: object) -> bool:
        return name in self._factories


def _cors(**options: Any) -> Middleware:
    return CORSMiddleware(CORSConfig(**options))


def _security_headers(**options: Any) -> Middleware:
    return SecurityHeadersMiddleware(SecurityHeadersConfig(**options))


def _rate_limit(*, clock: Callable[[], float] | None = None, **options: Any) -> Middleware:
    config = RateLimitConfig(**options)
    if clock is None:
        return RateLimitMiddleware(config)
    return RateLimitMiddleware(config, clock=clock)


def default_registry() -> MiddlewareRegistry:
    """A registry holding the built-in middleware."""
    registry = MiddlewareRegistry()
    registry.register("access_log", AccessLogMiddleware)
    registry.register("cors", _cors)
    registry.register("rate_limit", _rate_limit)
    registry.register("security_headers", _security_headers)
    registry.register("static", StaticFiles)
    return registry
