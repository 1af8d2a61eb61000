"""Fallback page for unmatched GET requests.

An application shell usually routes in the browser, so a GET that nothing
else answered gets ``public/index.html`` with the configured meta tags
injected into its head.
"""

import logging
from pathlib import Path

import anyio

from aerossr.config import MetaTags
from aerossr.errors import NotFound
from aerossr.http.request import Request
from aerossr.http.response import Response
from aerossr.middleware.protocol import AnyResponse, Next
from aerossr.templating.html import inject_meta_tags

logger = logging.getLogger("aerossr.server")


class DefaultPage:
    """Answers ``NotFound`` for GET/HEAD with the project's index page.

    Placed innermost in the app pipeline, just around the router. Other
    methods, and projects without an index page, keep the 404.
    """

    __slots__ = ("meta", "page")

    def __init__(self, page: str | Path, meta: MetaTags | None = None) -> None:
        self.page = Path(page)
        self.meta = meta or MetaTags()

    async def __call__(self, request: Request, next: Next) -> AnyResponse:
        try:
            return await next(request)
        except NotFound:
            if request.method not in ("GET", "HEAD"):
                raise
            html = await self._load()
            if html is None:
                raise
        return (
            Response(body=inject_meta_tags(html, self.meta))
            .with_header("Cache-Control", "no-cache")
        )

    async def _load(self) -> str | None:
        page = anyio.Path(self.page)
        if not await page.is_file():
            return None
        try:
            return await page.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError):
            logger.warning("Could not read default page %s", self.page, exc_info=True)
            return None
