"""Serving an App with pounce.

Pounce's ``run()`` takes an import string, but we hold a live ``App``
object, so ``pounce.Server`` is used directly with the ASGI callable.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from aerossr.app import App


def run_server(
    app: App,
    host: str,
    port: int,
    *,
    workers: int = 0,
    reload: bool = False,
    log_format: str = "text",
    log_level: str = "info",
) -> None:
    """Start a pounce server for *app* and block until it stops.

    Debug apps run a single worker with reload enabled; otherwise
    *workers* is passed through (0 lets pounce pick from the CPU count).
    """
    try:
        from pounce.config import ServerConfig
        from pounce.server import Server
    except ImportError as exc:
        msg = "Serving requires pounce: pip install 'aerossr[server]'"
        raise RuntimeError(msg) from exc

    config = ServerConfig(
        host=host,
        port=port,
        workers=1 if reload else workers,
        reload=reload,
        log_format=log_format,
        log_level=log_level,
    )
    Server(config, app).run()
