"""aerossr exception hierarchy.

Shared across the router, the bundler, the distribution handler and the
ASGI pipeline so every module raises and catches the same types.
"""

from dataclasses import dataclass
from pathlib import Path


class AeroSSRError(Exception):
    """Base for all aerossr-specific errors."""


class ConfigurationError(AeroSSRError):
    """Raised when app configuration is invalid.

    Typically raised by ``AppConfig`` validation or while the app freezes.
    """


@dataclass(frozen=True, slots=True)
class HTTPError(AeroSSRError):
    """An error that maps directly to an HTTP status code.

    Raised by the router, middleware, or handlers. The ASGI handler
    catches these and renders the matching error page.
    """

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class BadRequestError(HTTPError):
    """400: the request is malformed (e.g. missing bundle entry point)."""

    def __init__(self, detail: str = "Bad Request") -> None:
        super().__init__(status=400, detail=detail)


class NotFound(HTTPError):  # noqa: N818
    """404: no route matched the request path."""

    def __init__(self, detail: str = "Not Found") -> None:
        super().__init__(status=404, detail=detail)


class MethodNotAllowed(HTTPError):  # noqa: N818
    """405: a route exists for the path but not for this HTTP method.

    Includes an ``Allow`` header listing the valid methods.
    """

    def __init__(self, allowed: frozenset[str], detail: str = "") -> None:
        allow_value = ", ".join(sorted(allowed))
        default_detail = f"Method not allowed. Allowed methods: {allow_value}"
        super().__init__(
            status=405,
            detail=detail or default_detail,
            headers=(("Allow", allow_value),),
        )


class MissingHandlerError(AeroSSRError):
    """Raised when ``RouteBuilder.build()`` is called before ``.handler()``."""

    def __init__(self, method: str, pattern: str) -> None:
        self.method = method
        self.pattern = pattern
        super().__init__(f"Route {method} {pattern!r} has no handler")


# ---------------------------------------------------------------------------
# Bundling
# ---------------------------------------------------------------------------


class BundleError(AeroSSRError):
    """Base for errors raised while resolving or assembling a bundle.

    Messages may contain filesystem paths. They are meant for logs only;
    the distribution handler never copies them into a response body.
    """


class ResolutionError(BundleError):
    """A module specifier could not be resolved to a file under the root."""

    def __init__(self, specifier: str, importer: Path | None = None, reason: str = "") -> None:
        self.specifier = specifier
        self.importer = importer
        where = f" (imported from {importer})" if importer is not None else ""
        why = f": {reason}" if reason else ""
        super().__init__(f"Cannot resolve {specifier!r}{where}{why}")


class DepthExceededError(BundleError):
    """The import chain is deeper than ``BundleOptions.max_depth``."""

    def __init__(self, path: Path, depth: int, max_depth: int) -> None:
        self.path = path
        self.depth = depth
        self.max_depth = max_depth
        super().__init__(
            f"Import chain reached depth {depth} at {path} (max_depth={max_depth})"
        )


class ReadError(BundleError):
    """An entry point or module file could not be read."""

    def __init__(self, path: Path | str, reason: str = "") -> None:
        self.path = path
        why = f": {reason}" if reason else ""
        super().__init__(f"Cannot read {path}{why}")


class BuildTimeoutError(BundleError, TimeoutError):
    """A bundle build did not finish within the caller's timeout."""

    def __init__(self, key: str, timeout: float) -> None:
        self.key = key
        self.timeout = timeout
        super().__init__(f"Bundle build for {key[:12]} timed out after {timeout:g}s")
