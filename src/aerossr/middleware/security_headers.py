"""Security headers middleware.

Adds MIME-sniffing, framing, transport and content-security headers to
every response. Headers a handler already set are left alone.
"""

from dataclasses import dataclass

from aerossr.http.request import Request
from aerossr.middleware.protocol import AnyResponse, Next


@dataclass(frozen=True, slots=True)
class SecurityHeadersConfig:
    """Configuration for security headers.

    Values are applied as-is. ``None`` disables a header.
    """

    x_content_type_options: str | None = "nosniff"
    x_frame_options: str | None = "DENY"
    strict_transport_security: str | None = "max-age=31536000; includeSubDomains"
    content_security_policy: str | None = "default-src 'self'"
    referrer_policy: str | None = "strict-origin-when-cross-origin"

    def headers(self) -> tuple[tuple[str, str], ...]:
        pairs = (
            ("X-Content-Type-Options", self.x_content_type_options),
            ("X-Frame-Options", self.x_frame_options),
            ("Strict-Transport-Security", self.strict_transport_security),
            ("Content-Security-Policy", self.content_security_policy),
            ("Referrer-Policy", self.referrer_policy),
        )
        return tuple((name, value) for name, value in pairs if value)


class SecurityHeadersMiddleware:
    """Add security headers to responses.

    Usage::

        app.add_middleware(SecurityHeadersMiddleware())

        app.add_middleware(SecurityHeadersMiddleware(SecurityHeadersConfig(
            x_frame_options="SAMEORIGIN",
            strict_transport_security=None,
        )))
    """

    __slots__ = ("_headers", "config")

    def __init__(self, config: SecurityHeadersConfig | None = None) -> None:
        self.config = config or SecurityHeadersConfig()
        self._headers = self.config.headers()

    async def __call__(self, request: Request, next: Next) -> AnyResponse:
        response = await next(request)
        for name, value in self._headers:
            if response.header(name) is None:
                response = response.with_header(name, value)
        return response
