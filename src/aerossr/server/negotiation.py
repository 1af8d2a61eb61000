"""Content negotiation: maps handler return values to Response objects.

isinstance-based dispatch, no magic, fully predictable.
"""

import json
from typing import Any

from aerossr.http.response import Redirect, Response


def to_response(value: Any) -> Response:
    """Convert a route handler's return value to a Response.

    Dispatch order:

    1. ``Response``          -> pass through
    2. ``Redirect``          -> status with Location header
    3. ``None``              -> 204, no body
    4. ``str``               -> 200, text/html
    5. ``bytes``             -> 200, application/octet-stream
    6. ``dict`` / ``list``   -> 200, application/json
    7. ``(value, int)``      -> convert value, override status
    8. ``(value, int, dict)`` -> convert value, override status + headers
    """
    match value:
        case Response():
            return value
        case Redirect():
            return (
                Response(body="")
                .with_status(value.status)
                .with_header("Location", value.url)
                .with_headers(dict(value.headers))
            )
        case None:
            return Response(body="", status=204, content_type=None)
        case str():
            return Response(body=value)
        case bytes():
            return Response(body=value, content_type="application/octet-stream")
        case dict() | list():
            return Response(
                body=json.dumps(value, default=str),
                content_type="application/json; charset=utf-8",
            )
        case (inner, int() as status):
            return to_response(inner).with_status(status)
        case (inner, int() as status, dict() as headers):
            return to_response(inner).with_status(status).with_headers(headers)
        case _:
            msg = (
                f"Cannot convert {type(value).__name__} to a response. "
                f"Return str, bytes, dict, list, None, Response, or Redirect."
            )
            raise TypeError(msg)
