"""ASGI handler: translates ASGI scope/messages to aerossr types.

The only component that touches raw ASGI directly. Converts scope dicts
to typed Request objects, dispatches through middleware and routing,
and sends the Response back through ASGI send().
"""

from collections.abc import Callable
from typing import Any

from aerossr._internal.asgi import Receive, Scope, Send
from aerossr.errors import HTTPError
from aerossr.http.request import Request
from aerossr.middleware.protocol import AnyResponse, Next
from aerossr.routing.router import Router
from aerossr.server.errors import ErrorHandlers, handle_http_error, handle_internal_error
from aerossr.server.sender import send_response


def build_pipeline(
    dispatch: Next,
    middleware: tuple[Callable[..., Any], ...],
) -> Next:
    """Wrap *dispatch* in *middleware*, first entry outermost."""
    handler = dispatch
    for mw in reversed(middleware):
        outer = handler

        async def make_next(req: Request, _mw: Any = mw, _next: Next = outer) -> AnyResponse:
            return await _mw(req, _next)

        handler = make_next
    return handler


async def handle_request(
    scope: Scope,
    receive: Receive,
    send: Send,
    *,
    router: Router,
    middleware: tuple[Callable[..., Any], ...],
    error_handlers: ErrorHandlers,
    debug: bool,
) -> None:
    """Process a single HTTP request through the full pipeline."""
    if scope["type"] != "http":
        return

    request = Request.from_asgi(scope, receive)

    try:
        handler = build_pipeline(router.handle, middleware)
        response = await handler(request)
    except HTTPError as exc:
        response = await handle_http_error(exc, request, error_handlers, debug)
    except Exception as exc:
        response = await handle_internal_error(exc, request, error_handlers, debug)

    await send_response(response, send, head=request.method == "HEAD")
