"""Content-Encoding negotiation and body compression.

Only ``gzip`` and ``deflate`` are produced. Negotiation honours q-values
from ``Accept-Encoding``; among equally preferred codings the server's
order (gzip first) decides. Compression runs in a worker thread so large
bundles never block the event loop.
"""

import gzip
import zlib
from functools import partial

import anyio

SUPPORTED_ENCODINGS: tuple[str, ...] = ("gzip", "deflate")

# Text-based types worth compressing; images, video and archives are not.
COMPRESSIBLE_TYPES = frozenset(
    {
        "text/html",
        "text/css",
        "text/plain",
        "text/xml",
        "text/javascript",
        "application/javascript",
        "application/json",
        "application/xml",
        "application/xhtml+xml",
        "application/manifest+json",
        "image/svg+xml",
    }
)


def parse_accept_encoding(header: str) -> dict[str, float]:
    """Map each listed coding to its q-value (default 1.0).

    Malformed q-values count as 0, i.e. "not acceptable".
    """
    prefs: dict[str, float] = {}
    for item in header.split(","):
        coding, _, params = item.partition(";")
        coding = coding.strip().lower()
        if not coding:
            continue
        q = 1.0
        for param in params.split(";"):
            name, _, value = param.partition("=")
            if name.strip().lower() == "q":
                try:
                    q = float(value.strip())
                except ValueError:
                    q = 0.0
        prefs[coding] = max(0.0, min(q, 1.0))
    return prefs


def negotiate_encoding(
    header: str | None,
    supported: tuple[str, ...] = SUPPORTED_ENCODINGS,
) -> str | None:
    """Pick the content coding to use for a response, or None for identity.

    Usage::

        negotiate_encoding("gzip, deflate")           # "gzip"
        negotiate_encoding("gzip;q=0.2, deflate")     # "deflate"
        negotiate_encoding("br")                      # None
    """
    if not header:
        return None
    prefs = parse_accept_encoding(header)
    wildcard = prefs.get("*", 0.0)
    best, best_q = None, 0.0
    for coding in supported:
        q = prefs.get(coding, wildcard)
        if q > best_q:
            best, best_q = coding, q
    return best


def is_compressible(content_type: str | None) -> bool:
    if not content_type:
        return False
    return content_type.split(";", 1)[0].strip().lower() in COMPRESSIBLE_TYPES


def compress(body: bytes, encoding: str, level: int = 6) -> bytes:
    """Compress *body* with *encoding* (``gzip`` or ``deflate``).

    gzip output uses a zero timestamp, so equal input gives equal bytes.
    """
    if encoding == "gzip":
        return gzip.compress(body, compresslevel=level, mtime=0)
    if encoding == "deflate":
        return zlib.compress(body, level)
    msg = f"Unsupported content coding: {encoding!r}"
    raise ValueError(msg)


async def compress_async(body: bytes, encoding: str, level: int = 6) -> bytes:
    """``compress`` in a worker thread."""
    return await anyio.to_thread.run_sync(partial(compress, body, encoding, level))
