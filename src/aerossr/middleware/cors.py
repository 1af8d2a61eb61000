"""CORS middleware: origin allow-list and preflight handling."""

from dataclasses import dataclass

from aerossr.http.request import Request
from aerossr.http.response import Response
from aerossr.middleware.protocol import AnyResponse, Next


@dataclass(frozen=True, slots=True)
class CORSConfig:
    """CORS configuration. Nothing is allowed by default.

    Usage::

        CORSConfig(allow_origins=("https://example.com",), allow_headers=("Content-Type",))
    """

    allow_origins: tuple[str, ...] = ()
    allow_methods: tuple[str, ...] = ("GET", "HEAD", "OPTIONS")
    allow_headers: tuple[str, ...] = ()
    expose_headers: tuple[str, ...] = ("ETag",)
    allow_credentials: bool = False
    max_age: int = 600

    def allows(self, origin: str) -> bool:
        return "*" in self.allow_origins or origin in self.allow_origins


class CORSMiddleware:
    """Answers preflight requests and decorates cross-origin responses.

    Requests without an ``Origin`` header, or from an origin not in the
    allow-list, pass through untouched (the browser then blocks them).
    A wildcard origin is echoed back as ``*`` unless credentials are
    allowed, in which case the concrete origin is sent with ``Vary: Origin``.
    """

    __slots__ = ("config",)

    def __init__(self, config: CORSConfig | None = None) -> None:
        self.config = config or CORSConfig()

    async def __call__(self, request: Request, next: Next) -> AnyResponse:
        origin = request.headers.get("origin")
        if origin is None or not self.config.allows(origin):
            return await next(request)

        requested = request.headers.get("access-control-request-method")
        if request.method == "OPTIONS" and requested:
            return self._preflight(origin)

        response = await next(request)
        return self._decorate(response, origin)

    def _decorate(self, response: Response, origin: str) -> Response:
        cfg = self.config
        if "*" in cfg.allow_origins and not cfg.allow_credentials:
            response = response.with_header("Access-Control-Allow-Origin", "*")
        else:
            response = response.with_header("Access-Control-Allow-Origin", origin)
            response = response.with_header("Vary", "Origin")
        if cfg.allow_credentials:
            response = response.with_header("Access-Control-Allow-Credentials", "true")
        if cfg.expose_headers:
            response = response.with_header(
                "Access-Control-Expose-Headers", ", ".join(cfg.expose_headers)
            )
        return response

    def _preflight(self, origin: str) -> Response:
        cfg = self.config
        response = Response(body="", status=204, content_type=None)
        response = self._decorate(response, origin).with_header(
            "Access-Control-Allow-Methods", ", ".join(cfg.allow_methods)
        )
        if cfg.allow_headers:
            response = response.with_header(
                "Access-Control-Allow-Headers", ", ".join(cfg.allow_headers)
            )
        return response.with_header("Access-Control-Max-Age", str(cfg.max_age))
