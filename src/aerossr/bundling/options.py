"""Bundle options, bundle results, and the digests that key them.

Both value types are frozen: an options value is part of the cache key, and a
result is shared by reference between every request that awaited the same
build.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import asdict, dataclass, replace
from typing import Any, Literal

from aerossr.errors import ConfigurationError

type Target = Literal["server", "browser", "universal"]

_TARGETS = ("server", "browser", "universal")


@dataclass(frozen=True, slots=True)
class BundleOptions:
    """How a bundle is assembled.

    Usage::

        options = BundleOptions(minify=False, hydration=True)
        options = options.merged(target="browser")
    """

    minify: bool = True
    source_map: bool = False
    comments: bool = True
    target: Target = "universal"
    hydration: bool = False
    extensions: tuple[str, ...] = (".js", ".ts", ".jsx", ".tsx", ".json")
    max_depth: int = 100
    ignore_patterns: tuple[str, ...] = ("node_modules",)
    root_id: str = "app"

    def __post_init__(self) -> None:
        if self.target not in _TARGETS:
            msg = f"target must be one of {_TARGETS}, got {self.target!r}"
            raise ConfigurationError(msg)
        if self.max_depth < 1:
            msg = f"max_depth must be at least 1, got {self.max_depth}"
            raise ConfigurationError(msg)
        bad = [ext for ext in self.extensions if not ext.startswith(".")]
        if bad:
            msg = f"extensions must start with '.', got {bad!r}"
            raise ConfigurationError(msg)

    @property
    def hydrates(self) -> bool:
        """True when a hydration bootstrap is appended to the bundle."""
        return self.hydration and self.target in ("browser", "universal")

    def merged(self, **overrides: Any) -> BundleOptions:
        """Return a copy with *overrides* applied."""
        if not overrides:
            return self
        return replace(self, **overrides)

    def to_json(self) -> str:
        """Stable serialization used in cache keys."""
        return json.dumps(asdict(self), sort_keys=True, separators=(",", ":"))


@dataclass(frozen=True, slots=True)
class BundleResult:
    """A finished bundle. Immutable once produced."""

    code: str
    hash: str
    dependencies: tuple[str, ...] = ()
    map: str | None = None
    hydration_code: str | None = None

    @property
    def etag(self) -> str:
        """Strong ETag header value for this bundle."""
        return f'"{self.hash}"'


def fingerprint(text: str) -> str:
    """Short deterministic digest of *text* (32 hex characters)."""
    return hashlib.blake2b(text.encode("utf-8"), digest_size=16).hexdigest()


def cache_key(entry_point: str, options: BundleOptions) -> str:
    """Cache key for a bundle: digest of the entry point and its options."""
    return fingerprint(f"{entry_point}\x00{options.to_json()}")
