"""Error handling pipeline for requests.

Maps HTTPError exceptions and unexpected failures to HTML error pages,
using registered error handlers when the app has any.
"""

import inspect
import logging
from collections.abc import Callable
from typing import Any

from aerossr.errors import HTTPError
from aerossr.http.request import Request
from aerossr.http.response import Response
from aerossr.server.negotiation import to_response
from aerossr.templating.html import render_error_page

logger = logging.getLogger("aerossr.server")

type ErrorHandlers = dict[int | type[Exception], Callable[..., Any]]


def error_response(status: int, message: str = "") -> Response:
    """An HTML error page that no cache may store."""
    return Response(body=render_error_page(status, message), status=status).with_header(
        "Cache-Control", "no-store"
    )


async def call_error_handler(
    handler: Callable[..., Any],
    request: Request,
    exc: Exception,
) -> Response:
    """Invoke a user-registered error handler with introspected arguments.

    Error handlers may accept zero, one (request), or two (request, exc)
    args, and may be sync or async.
    """
    params = list(inspect.signature(handler).parameters.values())

    if len(params) >= 2:
        result = handler(request, exc)
    elif len(params) == 1:
        result = handler(request)
    else:
        result = handler()

    if inspect.isawaitable(result):
        result = await result
    return to_response(result)


async def handle_http_error(
    exc: HTTPError,
    request: Request,
    error_handlers: ErrorHandlers,
    debug: bool,
) -> Response:
    """Map an HTTPError to a Response using registered error handlers."""
    logger.debug("%d %s %s: %s", exc.status, request.method, request.path, exc.detail)

    # Exact exception type first, then status code
    handler = error_handlers.get(type(exc)) or error_handlers.get(exc.status)
    if handler is not None:
        response = await call_error_handler(handler, request, exc)
        # Keep the exception's status unless the handler chose its own
        if response.status == 200:
            response = response.with_status(exc.status)
        return response

    detail = exc.detail
    if debug and detail:
        detail = f"{exc.status}: {detail}"
    response = error_response(exc.status, detail)
    for name, value in exc.headers:
        response = response.with_header(name, value)
    return response


async def handle_internal_error(
    exc: Exception,
    request: Request,
    error_handlers: ErrorHandlers,
    debug: bool,
) -> Response:
    """Handle unexpected exceptions as 500 errors."""
    logger.exception("500 %s %s", request.method, request.path)

    handler = error_handlers.get(500) or error_handlers.get(type(exc))
    if handler is not None:
        return await call_error_handler(handler, request, exc)

    message = "Internal Server Error"
    if debug:
        message = f"{type(exc).__name__}: {exc}"
    return error_response(500, message)
