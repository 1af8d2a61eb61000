"""Access logging: one summary line per request on ``aerossr.access``."""

import logging
import time

from aerossr.errors import HTTPError
from aerossr.http.request import Request
from aerossr.middleware.protocol import AnyResponse, Next


class AccessLogMiddleware:
    """Log method, URL, status, duration and user agent for each request.

    The fields are also attached to the record (``extra``), so the JSON
    formatter emits them as separate keys. Requests that raise are logged
    with the status the error pipeline will produce, then re-raised.
    """

    __slots__ = ("logger",)

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self.logger = logger or logging.getLogger("aerossr.access")

    async def __call__(self, request: Request, next: Next) -> AnyResponse:
        started = time.perf_counter()
        try:
            response = await next(request)
        except HTTPError as exc:
            self._log(request, exc.status, started)
            raise
        except Exception:
            self._log(request, 500, started)
            raise
        self._log(request, response.status, started)
        return response

    def _log(self, request: Request, status: int, started: float) -> None:
        duration_ms = (time.perf_counter() - started) * 1000
        self.logger.info(
            '%s "%s %s" %d %.1fms "%s"',
            request.client_ip,
            request.method,
            request.url,
            status,
            duration_ms,
            request.user_agent or "-",
            extra={
                "client": request.client_ip,
                "method": request.method,
                "url": request.url,
                "status": status,
                "duration_ms": round(duration_ms, 3),
                "user_agent": request.user_agent,
            },
        )
