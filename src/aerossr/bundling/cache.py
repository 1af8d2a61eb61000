"""In-memory bundle cache with expiry, bounded size and a stampede guard.

Entries live in an insertion-ordered dict. When a new key would exceed
``max_entries`` the oldest-inserted entry is evicted (insertion order, not
LRU: reading an entry does not refresh it). Expiry is lazy: an expired entry
is dropped the next time it is looked up, or by ``prune()``.

All mutations happen between awaits on one event loop, so no lock is needed.
``get_or_build`` is the one async operation: concurrent callers for the same
key share a single in-flight build and all observe its result or its error.
"""

import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

import anyio

from aerossr.errors import BuildTimeoutError, BundleError

logger = logging.getLogger("aerossr.cache")

_MISSING: Any = object()


@dataclass(frozen=True, slots=True)
class CacheStats:
    """Point-in-time counters for a cache."""

    size: int
    hits: int
    misses: int
    evictions: int
    expirations: int
    in_flight: int


@dataclass(slots=True)
class _Entry:
    value: Any
    expires_at: float | None
    inserted_at: float


@dataclass(slots=True)
class _Flight:
    """A build in progress. ``done`` is set once the build settles."""

    done: anyio.Event
    result: Any = None
    error: BaseException | None = None


class BundleCache[V]:
    """Keyed store for finished bundles.

    Usage::

        cache = BundleCache[BundleResult](max_entries=100, default_ttl=600)
        result = await cache.get_or_build(key, lambda: generator.generate(entry))

    *clock* returns seconds on a monotonic scale; tests pass a fake one.
    """

    __slots__ = (
        "_clock",
        "_entries",
        "_evictions",
        "_expirations",
        "_flights",
        "_hits",
        "_misses",
        "default_ttl",
        "max_entries",
    )

    def __init__(
        self,
        max_entries: int | None = None,
        default_ttl: float | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_entries is not None and max_entries < 1:
            msg = "max_entries must be at least 1 (or None for unbounded)"
            raise ValueError(msg)
        self.max_entries = max_entries
        self.default_ttl = default_ttl
        self._clock = clock
        self._entries: dict[str, _Entry] = {}
        self._flights: dict[str, _Flight] = {}
        self._hits = 0
        self._misses = 0
        self._evictions = 0
        self._expirations = 0

    # -- Synchronous operations --

    def get(self, key: str) -> V | None:
        """Return the live value for *key*, or None."""
        value = self._lookup(key)
        return None if value is _MISSING else value

    def has(self, key: str) -> bool:
        """True if *key* holds a live value. Does not touch hit counters."""
        try:
            entry = self._entries.get(key)
            if entry is None:
                return False
            if self._expired(entry, self._clock()):
                self._expire(key)
                return False
            return True
        except Exception:
            logger.exception("Cache lookup failed for %s; treating as a miss", key)
            return False

    __contains__ = has

    def set(self, key: str, value: V, ttl: float | None = None) -> None:
        """Store *value* under *key*.

        *ttl* (seconds) overrides ``default_ttl``. Re-setting an existing
        key replaces its entry and makes it the newest.
        """
        ttl = self.default_ttl if ttl is None else ttl
        now = self._clock()
        if key in self._entries:
            del self._entries[key]
        elif self.max_entries is not None and len(self._entries) >= self.max_entries:
            oldest = next(iter(self._entries))
            del self._entries[oldest]
            self._evictions += 1
            logger.debug("Evicted bundle %s (cache full at %d)", oldest, self.max_entries)
        expires_at = None if ttl is None else now + ttl
        self._entries[key] = _Entry(value=value, expires_at=expires_at, inserted_at=now)

    def delete(self, key: str) -> bool:
        """Drop *key* and forget any build in flight for it.

        A build already running is not cancelled: its waiters still get the
        result, but the result is not stored.
        """
        flight = self._flights.pop(key, None)
        entry = self._entries.pop(key, None)
        return entry is not None or flight is not None

    def clear(self) -> None:
        """Drop every entry and forget every build in flight."""
        self._entries.clear()
        self._flights.clear()

    def prune(self) -> int:
        """Drop expired entries now. Returns how many were dropped."""
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if self._expired(entry, now)]
        for key in expired:
            self._expire(key)
        return len(expired)

    def keys(self) -> tuple[str, ...]:
        """Live keys, oldest first."""
        now = self._clock()
        return tuple(key for key, entry in self._entries.items() if not self._expired(entry, now))

    def in_flight(self, key: str) -> bool:
        return key in self._flights

    def stats(self) -> CacheStats:
        return CacheStats(
            size=len(self._entries),
            hits=self._hits,
            misses=self._misses,
            evictions=self._evictions,
            expirations=self._expirations,
            in_flight=len(self._flights),
        )

    def __len__(self) -> int:
        """Stored entries, including expired ones not yet dropped."""
        return len(self._entries)

    # -- Stampede guard --

    async def get_or_build(
        self,
        key: str,
        builder: Callable[[], Awaitable[V]],
        *,
        ttl: float | None = None,
        timeout: float | None = None,
    ) -> V:
        """Return the cached value for *key*, building it at most once.

        The first caller on a miss runs *builder*; callers arriving while it
        runs wait for the same outcome. The build is shielded from the
        cancellation of any single caller. With *timeout*, a build (or a
        wait) that takes longer raises ``BuildTimeoutError`` and the next
        caller starts over.
        """
        value = self._lookup(key)
        if value is not _MISSING:
            return value

        flight = self._flights.get(key)
        if flight is not None:
            return await self._wait(key, flight, timeout)

        flight = _Flight(done=anyio.Event())
        self._flights[key] = flight
        settled = False
        try:
            with anyio.CancelScope(shield=True):
                with anyio.move_on_after(timeout) as deadline:
                    flight.result = await builder()
                    settled = True
            if deadline.cancelled_caught:
                raise BuildTimeoutError(key, timeout or 0.0)
        except Exception as exc:
            flight.error = exc
            logger.debug("Build for %s failed: %s", key, exc)
            raise
        finally:
            if self._flights.get(key) is flight:
                del self._flights[key]
                if settled:
                    self._store(key, flight.result, ttl)
            if not settled and flight.error is None:
                flight.error = BundleError(f"Build for {key[:12]} was interrupted")
            flight.done.set()
        return flight.result

    async def _wait(self, key: str, flight: _Flight, timeout: float | None) -> V:
        with anyio.move_on_after(timeout) as deadline:
            await flight.done.wait()
        if deadline.cancelled_caught:
            raise BuildTimeoutError(key, timeout or 0.0)
        if flight.error is not None:
            raise flight.error
        return flight.result

    # -- Helpers --

    def _lookup(self, key: str) -> Any:
        try:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return _MISSING
            if self._expired(entry, self._clock()):
                self._expire(key)
                self._misses += 1
                return _MISSING
        except Exception:
            logger.exception("Cache lookup failed for %s; treating as a miss", key)
            return _MISSING
        self._hits += 1
        return entry.value

    def _store(self, key: str, value: Any, ttl: float | None) -> None:
        try:
            self.set(key, value, ttl)
        except Exception:
            logger.exception("Could not store bundle %s; it will be rebuilt", key)

    def _expire(self, key: str) -> None:
        if self._entries.pop(key, None) is not None:
            self._expirations += 1

    @staticmethod
    def _expired(entry: _Entry, now: float) -> bool:
        return entry.expires_at is not None and now >= entry.expires_at
