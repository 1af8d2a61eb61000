"""Static file serving middleware.

Serves files from a directory for matching URL prefixes, with index file
resolution, a dot-file policy, conditional requests (``ETag`` and
``If-Modified-Since``) and optional compression of text types.

Falls through to the next handler for non-matching or missing paths.
"""

import mimetypes
from datetime import UTC, datetime
from email.utils import formatdate, parsedate_to_datetime
from pathlib import Path
from urllib.parse import unquote

import anyio

from aerossr.bundling.options import fingerprint
from aerossr.http.request import Request
from aerossr.http.response import Response
from aerossr.middleware.protocol import AnyResponse, Next
from aerossr.server.compression import compress_async, is_compressible, negotiate_encoding
from aerossr.server.errors import error_response
from aerossr.server.etag import etag_matches, format_etag

_DOT_FILE_POLICIES = ("ignore", "allow", "deny")


class StaticFiles:
    """Middleware that serves static files from a directory.

    Security: the URL is decoded, resolved (following symlinks) and must
    stay inside the directory; anything else is ``403``.

    Dot files (any path segment starting with ``.``) follow *dot_files*:
    ``"ignore"`` falls through as if missing, ``"deny"`` answers ``403``,
    ``"allow"`` serves them.

    Usage::

        app.add_middleware(StaticFiles("./public", prefix="/"))
        app.add_middleware(StaticFiles("./assets", prefix="/assets", max_age=600))
    """

    __slots__ = (
        "_compression",
        "_directory",
        "_dot_files",
        "_etag",
        "_index",
        "_max_age",
        "_min_compress_size",
        "_prefix",
    )

    def __init__(
        self,
        directory: str | Path,
        prefix: str = "/",
        *,
        index: tuple[str, ...] = ("index.html",),
        dot_files: str = "ignore",
        max_age: int = 86400,
        etag: bool = True,
        compression: bool = True,
        min_compress_size: int = 1024,
    ) -> None:
        if dot_files not in _DOT_FILE_POLICIES:
            msg = f"dot_files must be one of {_DOT_FILE_POLICIES}, got {dot_files!r}"
            raise ValueError(msg)
        self._directory = Path(directory).resolve()
        self._index = index
        self._dot_files = dot_files
        self._max_age = max_age
        self._etag = etag
        self._compression = compression
        self._min_compress_size = min_compress_size

        # "/assets/" -> "/assets"; "/" -> ""
        stripped = "/" + prefix.strip("/")
        self._prefix = stripped if stripped != "/" else ""

    async def __call__(self, request: Request, next: Next) -> AnyResponse:
        """Serve a static file or fall through."""
        if request.method not in ("GET", "HEAD"):
            return await next(request)

        path = request.path
        if self._prefix:
            if not path.startswith(self._prefix + "/") and path != self._prefix:
                return await next(request)
            relative = path[len(self._prefix) :]
        else:
            relative = path
        relative = unquote(relative).lstrip("/")

        if "\x00" in relative:
            return error_response(403, "Forbidden")
        if any(part.startswith(".") and part not in (".", "..") for part in relative.split("/")):
            if self._dot_files == "deny":
                return error_response(403, "Forbidden")
            if self._dot_files == "ignore":
                return await next(request)

        file_path = (self._directory / relative).resolve() if relative else self._directory
        if not file_path.is_relative_to(self._directory):
            return error_response(403, "Forbidden")

        target = anyio.Path(file_path)
        if await target.is_dir():
            for name in self._index:
                candidate = target / name
                if await candidate.is_file():
                    return await self._serve(request, Path(candidate))
            return await next(request)

        if not await target.is_file():
            return await next(request)
        return await self._serve(request, file_path)

    async def _serve(self, request: Request, file_path: Path) -> Response:
        stat = await anyio.Path(file_path).stat()
        content_type, _ = mimetypes.guess_type(file_path.name)
        content_type = content_type or "application/octet-stream"
        last_modified = formatdate(stat.st_mtime, usegmt=True)
        etag = format_etag(fingerprint(f"{stat.st_mtime_ns}-{stat.st_size}"), weak=True)

        headers = {
            "Cache-Control": f"public, max-age={self._max_age}",
            "Last-Modified": last_modified,
        }
        if self._etag:
            headers["ETag"] = etag

        if self._not_modified(request, etag, stat.st_mtime):
            return Response(body=b"", status=304, content_type=None).with_headers(headers)

        body = await anyio.Path(file_path).read_bytes()
        response = Response(body=body, content_type=content_type).with_headers(headers)

        if self._compression and is_compressible(content_type):
            response = response.with_header("Vary", "Accept-Encoding")
            encoding = negotiate_encoding(request.headers.get("accept-encoding"))
            if encoding and len(body) >= self._min_compress_size:
                compressed = await compress_async(body, encoding)
                if len(compressed) < len(body):
                    response = response.with_body(compressed).with_header(
                        "Content-Encoding", encoding
                    )
        return response

    def _not_modified(self, request: Request, etag: str, mtime: float) -> bool:
        if_none_match = request.headers.get("if-none-match")
        if if_none_match is not None:
            # If-None-Match takes precedence over If-Modified-Since
            return self._etag and etag_matches(if_none_match, etag)
        since = request.headers.get("if-modified-since")
        if not since:
            return False
        try:
            client_time = parsedate_to_datetime(since)
        except (TypeError, ValueError):
            return False
        if client_time.tzinfo is None:
            client_time = client_time.replace(tzinfo=UTC)
        return client_time >= datetime.fromtimestamp(int(mtime), tz=UTC)
