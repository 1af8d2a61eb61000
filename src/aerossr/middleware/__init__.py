"""Middleware: Protocol-based, no inheritance required.

A middleware is any callable matching:
    async def mw(request: Request, next: Next) -> Response

Built-in middleware:
    AccessLogMiddleware -- One log line per request
    CORSMiddleware -- Cross-Origin Resource Sharing
    RateLimitMiddleware -- Fixed-window per-client limits (429)
    SecurityHeadersMiddleware -- nosniff, frame options, HSTS, CSP, referrer policy
    StaticFiles -- Serve static files from a directory
"""

from aerossr.middleware.access_log import AccessLogMiddleware
from aerossr.middleware.cors import CORSConfig, CORSMiddleware
from aerossr.middleware.protocol import AnyResponse, Middleware, Next
from aerossr.middleware.rate_limit import RateLimitConfig, RateLimitMiddleware
from aerossr.middleware.registry import MiddlewareRegistry, default_registry
from aerossr.middleware.security_headers import (
    SecurityHeadersConfig,
    SecurityHeadersMiddleware,
)
from aerossr.middleware.static import StaticFiles

__all__ = [
    "AccessLogMiddleware",
    "AnyResponse",
    "CORSConfig",
    "CORSMiddleware",
    "Middleware",
    "MiddlewareRegistry",
    "Next",
    "RateLimitConfig",
    "RateLimitMiddleware",
    "SecurityHeadersConfig",
    "SecurityHeadersMiddleware",
    "StaticFiles",
    "default_registry",
]
