"""HTML produced by the framework itself: error pages and head meta tags.

Both are rendered by kida with autoescaping on, so messages and meta
values can never inject markup.
"""

import re
from functools import cache
from http import HTTPStatus
from typing import Any

from kida import Environment

from aerossr.config import MetaTags

_ERROR_PAGE = """\
<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>{{ status }} {{ reason }}</title>
  <style>
    body { font-family: system-ui, sans-serif; margin: 0; padding: 3rem 1.5rem; color: #1f2933; }
    main { max-width: 40rem; margin: 0 auto; }
    h1 { font-size: 1.5rem; margin: 0 0 0.75rem; }
    p { margin: 0; color: #52606d; }
  </style>
</head>
<body>
  <main>
    <h1>{{ status }} {{ reason }}</h1>
    {% if message %}<p>{{ message }}</p>{% end %}
  </main>
</body>
</html>
"""

_META_TAGS = """\
<meta charset="{{ charset }}">
<meta name="viewport" content="{{ viewport }}">
{% if description %}<meta name="description" content="{{ description }}">
{% end %}<title>{{ title }}</title>
"""

_HEAD_CLOSE = re.compile(r"</head\s*>", re.IGNORECASE)


@cache
def _environment() -> Environment:
    return Environment(autoescape=True)


@cache
def _template(source: str) -> Any:
    return _environment().from_string(source)


def render_error_page(status: int, message: str = "") -> str:
    """Render a complete HTML error page.

    *message* is shown as-is (escaped). Callers decide what is safe to
    show; the distribution handler only ever passes generic text.
    """
    try:
        reason = HTTPStatus(status).phrase
    except ValueError:
        reason = "Error"
    return _template(_ERROR_PAGE).render({"status": status, "reason": reason, "message": message})


def render_meta_tags(meta: MetaTags) -> str:
    """Render the charset, viewport, description and title tags."""
    return _template(_META_TAGS).render(
        {
            "charset": meta.charset,
            "viewport": meta.viewport,
            "description": meta.description,
            "title": meta.title,
        }
    )


def inject_meta_tags(html: str, meta: MetaTags) -> str:
    """Insert *meta* tags just before ``</head>``.

    Documents without a ``</head>`` are returned unchanged.
    """
    match = _HEAD_CLOSE.search(html)
    if match is None:
        return html
    return f"{html[: match.start()]}{render_meta_tags(meta)}{html[match.start() :]}"
