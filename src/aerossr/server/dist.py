"""Bundle distribution endpoint.

Serves ``GET /dist?entryPoint=src/main.js``: builds (or reuses) the bundle
for the entry point, answers conditional requests with ``304``, and
compresses the body when the client accepts it.

Failures never leak details to the client. Malformed requests get a
``400`` page, everything else a generic ``500`` page; the real error is
logged to ``aerossr.dist``.
"""

import logging
import re
import time
import zlib
from functools import partial

from aerossr.bundling.cache import BundleCache
from aerossr.bundling.generator import BundleGenerator
from aerossr.bundling.options import BundleOptions, BundleResult, cache_key
from aerossr.errors import BadRequestError, HTTPError, MethodNotAllowed
from aerossr.http.request import Request
from aerossr.http.response import Response
from aerossr.middleware.protocol import AnyResponse, Next
from aerossr.server.compression import compress_async, negotiate_encoding
from aerossr.server.errors import error_response
from aerossr.server.etag import etag_matches

logger = logging.getLogger("aerossr.dist")

ENTRY_POINT_PARAM = "entryPoint"
JS_CONTENT_TYPE = "application/javascript"

_ALLOWED_METHODS = frozenset({"GET", "HEAD"})
_DRIVE = re.compile(r"^[A-Za-z]:")


def validate_entry_point(raw: str | None) -> str:
    """Return *raw* if it is a usable project-relative entry point.

    Raises ``BadRequestError`` when it is missing, blank, absolute,
    contains ``..`` segments, or contains a NUL byte.
    """
    if raw is None or not raw.strip():
        raise BadRequestError(f"Missing {ENTRY_POINT_PARAM} query parameter")
    value = raw.strip()
    if "\x00" in value:
        raise BadRequestError(f"Invalid {ENTRY_POINT_PARAM}")
    if value.startswith(("/", "\\")) or _DRIVE.match(value):
        raise BadRequestError(f"{ENTRY_POINT_PARAM} must be a relative path")
    if ".." in re.split(r"[\\/]", value):
        raise BadRequestError(f"{ENTRY_POINT_PARAM} must not leave the project root")
    return value


class DistributionHandler:
    """Serves bundles from a generator through a cache.

    Use as middleware (requests to other paths fall through)::

        handler = DistributionHandler(generator, cache, dist_path="/dist")
        app.add_middleware(handler)

    or call ``handle(request)`` directly.
    """

    __slots__ = (
        "build_timeout",
        "cache",
        "cache_max_age",
        "cache_ttl",
        "compression",
        "dist_path",
        "generator",
        "options",
    )

    def __init__(
        self,
        generator: BundleGenerator,
        cache: BundleCache[BundleResult],
        *,
        options: BundleOptions | None = None,
        dist_path: str = "/dist",
        compression: bool = True,
        cache_max_age: int = 3600,
        cache_ttl: float | None = None,
        build_timeout: float | None = None,
    ) -> None:
        self.generator = generator
        self.cache = cache
        self.options = options or generator.options
        self.dist_path = dist_path.rstrip("/") or "/"
        self.compression = compression
        self.cache_max_age = cache_max_age
        self.cache_ttl = cache_ttl
        self.build_timeout = build_timeout

    async def __call__(self, request: Request, next: Next) -> AnyResponse:
        path = request.path.rstrip("/") or "/"
        if path != self.dist_path:
            return await next(request)
        return await self.handle(request)

    async def handle(self, request: Request) -> Response:
        """Serve one bundle request. Never raises for request or build errors."""
        started = time.perf_counter()
        entry_point = request.query.get(ENTRY_POINT_PARAM)
        try:
            response = await self._serve(request)
        except HTTPError as exc:
            logger.info("Rejected bundle request %s: %s", request.url, exc.detail)
            response = error_response(exc.status, exc.detail)
            for name, value in exc.headers:
                response = response.with_header(name, value)
        except Exception:
            logger.exception("Bundle request failed for entry point %r", entry_point)
            response = error_response(500, "Internal Server Error")

        duration_ms = (time.perf_counter() - started) * 1000
        logger.info(
            "%s %s -> %d (%d bytes, %.1fms)",
            request.method,
            request.url,
            response.status,
            len(response.body_bytes),
            duration_ms,
            extra={
                "entry_point": entry_point,
                "status": response.status,
                "encoding": response.header("Content-Encoding"),
                "duration_ms": round(duration_ms, 3),
            },
        )
        return response

    async def _serve(self, request: Request) -> Response:
        if request.method not in _ALLOWED_METHODS:
            raise MethodNotAllowed(_ALLOWED_METHODS)
        entry_point = validate_entry_point(request.query.get(ENTRY_POINT_PARAM))

        key = cache_key(entry_point, self.options)
        result = await self.cache.get_or_build(
            key,
            partial(self.generator.generate, entry_point, self.options),
            ttl=self.cache_ttl,
            timeout=self.build_timeout,
        )

        cache_control = f"max-age={self.cache_max_age}"
        if etag_matches(request.headers.get("if-none-match"), result.hash):
            return (
                Response(body=b"", status=304, content_type=None)
                .with_header("ETag", result.etag)
                .with_header("Cache-Control", cache_control)
            )

        body = result.code.encode("utf-8")
        response = (
            Response(body=body, content_type=JS_CONTENT_TYPE)
            .with_header("ETag", result.etag)
            .with_header("Cache-Control", cache_control)
        )
        if not self.compression:
            return response

        response = response.with_header("Vary", "Accept-Encoding")
        encoding = negotiate_encoding(request.headers.get("accept-encoding"))
        if encoding is None:
            return response
        try:
            compressed = await compress_async(body, encoding)
        except (zlib.error, OSError, ValueError):
            logger.warning("%s compression failed; sending identity", encoding, exc_info=True)
            return response
        return response.with_body(compressed).with_header("Content-Encoding", encoding)
