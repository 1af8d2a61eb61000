"""Fixed-window, per-client rate limiting.

Each client (by ``X-Forwarded-For`` first hop when configured, else the
socket address) may make ``limit`` requests per ``window_seconds``.
The window starts at the client's first request and resets once it has
fully elapsed. Over-limit requests get ``429`` with ``Retry-After``.
"""

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

from aerossr.http.request import Request
from aerossr.middleware.protocol import AnyResponse, Next
from aerossr.server.errors import error_response


@dataclass(frozen=True, slots=True)
class RateLimitConfig:
    """Configuration for the rate limiter."""

    limit: int = 100
    window_seconds: float = 60.0
    paths: tuple[str, ...] = ()  # Prefixes to limit; empty = every path
    key_header: str | None = None  # e.g. "x-forwarded-for" behind a proxy


class RateLimitMiddleware:
    """In-memory fixed-window limiter.

    Usage::

        app.add_middleware(RateLimitMiddleware(RateLimitConfig(limit=10, window_seconds=1)))
    """

    __slots__ = ("_clock", "_config", "_lock", "_windows")

    def __init__(
        self,
        config: RateLimitConfig | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._config = config or RateLimitConfig()
        self._clock = clock
        self._lock = threading.Lock()
        # client -> (count, window_start)
        self._windows: dict[str, tuple[int, float]] = {}

    def _limited(self, path: str) -> bool:
        prefixes = self._config.paths
        if not prefixes:
            return True
        return any(path == p or path.startswith(f"{p.rstrip('/')}/") for p in prefixes)

    def _client_key(self, request: Request) -> str:
        header = self._config.key_header
        if header:
            forwarded = (request.headers.get(header) or "").split(",")[0].strip()
            if forwarded:
                return forwarded
        return request.client_ip

    def hit(self, key: str) -> tuple[bool, int, float]:
        """Count a request for *key*.

        Returns ``(allowed, remaining, retry_after_seconds)``.
        """
        cfg = self._config
        now = self._clock()
        with self._lock:
            count, start = self._windows.get(key, (0, now))
            if now - start >= cfg.window_seconds:
                count, start = 0, now
            count += 1
            self._windows[key] = (count, start)
            # Forget windows that have fully expired
            if len(self._windows) > 10_000:
                self._windows = {
                    k: v for k, v in self._windows.items() if now - v[1] < cfg.window_seconds
                }
        retry_after = max(0.0, start + cfg.window_seconds - now)
        return count <= cfg.limit, max(0, cfg.limit - count), retry_after

    async def __call__(self, request: Request, next: Next) -> AnyResponse:
        if not self._limited(request.path):
            return await next(request)

        allowed, remaining, retry_after = self.hit(self._client_key(request))
        if not allowed:
            return (
                error_response(429, "Too many requests")
                .with_header("Retry-After", str(max(1, round(retry_after))))
                .with_header("X-RateLimit-Limit", str(self._config.limit))
                .with_header("X-RateLimit-Remaining", "0")
            )
        response = await next(request)
        return response.with_header("X-RateLimit-Limit", str(self._config.limit)).with_header(
            "X-RateLimit-Remaining", str(remaining)
        )
