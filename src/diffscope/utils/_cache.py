"""Time-boxed result cache with an injectable clock."""

import time
from collections.abc import Callable
from dataclasses import dataclass

type Clock = Callable[[], float]
"""Returns the current time in seconds. Only differences are meaningful."""


@dataclass(frozen=True, slots=True)
class CacheEntry[T]:
    """A cached detection result.

    Attributes:
        result: The cached value.
        timestamp: Clock reading when the entry was written.
        ttl: Lifetime in seconds.
        key: The normalized key the entry is stored under.
    """

    result: T
    timestamp: float
    ttl: float
    key: str

    def is_expired(self, now: float) -> bool:
        """Return True once ``ttl`` seconds have elapsed since ``timestamp``."""
        return now - self.timestamp >= self.ttl


class TtlCache[T]:
    """Mapping of keys to results that expire after a fixed lifetime.

    Expired entries are never returned. Reads drop the entry they find
    expired; writes sweep every expired entry.

    Example:
        >>> cache: TtlCache[int] = TtlCache(5.0)
        >>> _ = cache.set("/w/a", 2)
        >>> cache.get("/w/a")
        2
    """

    __slots__ = ("_clock", "_entries", "_ttl")

    def __init__(self, ttl: float, *, clock: Clock = time.monotonic) -> None:
        """Initialize an empty cache.

        Args:
            ttl: Entry lifetime in seconds.
            clock: Time source, injectable for tests.
        """
        self._ttl: float = ttl
        self._clock: Clock = clock
        self._entries: dict[str, CacheEntry[T]] = {}

    @property
    def ttl(self) -> float:
        """Entry lifetime in seconds."""
        return self._ttl

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.entry(key) is not None

    def entry(self, key: str) -> CacheEntry[T] | None:
        """Return the live entry for ``key``, dropping it if expired."""
        found = self._entries.get(key)
        if found is None:
            return None
        if found.is_expired(self._clock()):
            del self._entries[key]
            return None
        return found

    def get(self, key: str) -> T | None:
        """Return the live result for ``key``, or None."""
        found = self.entry(key)
        return found.result if found is not None else None

    def set(self, key: str, result: T) -> CacheEntry[T]:
        """Store ``result`` under ``key`` and sweep expired entries.

        Returns:
            The entry that was written.
        """
        written = CacheEntry(result=result, timestamp=self._clock(), ttl=self._ttl, key=key)
        self._entries[key] = written
        _ = self.sweep()
        return written

    def sweep(self) -> int:
        """Remove expired entries.

        Returns:
            The number of entries removed.
        """
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def invalidate(self, key: str) -> bool:
        """Drop the entry for ``key``.

        Returns:
            True if an entry was removed.
        """
        return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        """Drop every entry."""
        self._entries.clear()
