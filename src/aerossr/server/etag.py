"""Entity tags: formatting and ``If-None-Match`` comparison.

Comparison is weak (RFC 9110 section 8.8.3.2): ``W/"x"`` and ``"x"`` match,
which is what conditional GET requires.
"""


def format_etag(value: str, *, weak: bool = False) -> str:
    """Quote *value* as an entity tag, optionally weak."""
    tag = f'"{value}"'
    return f"W/{tag}" if weak else tag


def normalize_etag(tag: str) -> str:
    """Strip the weak prefix and quotes: ``W/"abc"`` -> ``abc``."""
    tag = tag.strip()
    if tag[:2] in ("W/", "w/"):
        tag = tag[2:]
    if len(tag) >= 2 and tag[0] == '"' and tag[-1] == '"':
        tag = tag[1:-1]
    return tag


def etag_matches(if_none_match: str | None, value: str) -> bool:
    """True if an ``If-None-Match`` header matches the entity *value*.

    Accepts ``*``, comma-separated lists, weak tags and bare (unquoted)
    values. *value* may itself be quoted or weak.
    """
    if not if_none_match:
        return False
    wanted = normalize_etag(value)
    for candidate in if_none_match.split(","):
        candidate = candidate.strip()
        if candidate == "*" or (candidate and normalize_etag(candidate) == wanted):
            return True
    return False
