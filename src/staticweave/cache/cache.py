"""Generic time-expiring key-value cache.

A ``Cache`` is a plain mapping composed with an ``ExpirationPolicy``. All
entries of one cache share the same TTL. Expired entries are never
returned: reads treat them as absent and evict them lazily.

Writers serialize on a lock. ``get`` and ``contains`` do not take the lock
for live entries: entries are immutable, so a reader racing a writer sees
either the old or the new entry, never a torn one. The worst outcome of a
race is a spurious miss.
"""

import threading
import time
from collections.abc import Callable, Hashable, Iterable
from dataclasses import dataclass
from datetime import timedelta
from typing import Generic, TypeVar

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")

DEFAULT_TTL_SECONDS = 60.0

# Entries stored before a write sweeps out expired ones
PURGE_MIN_ENTRIES = 64

Clock = Callable[[], float]


def to_seconds(ttl: float | timedelta) -> float:
    """Normalize a TTL given as seconds or timedelta.

    Raises:
        ValueError: If the TTL is negative
    """
    seconds = ttl.total_seconds() if isinstance(ttl, timedelta) else float(ttl)
    if seconds < 0:
        raise ValueError(f"TTL must not be negative, got {seconds}")
    return seconds


@dataclass(frozen=True)
class CacheEntry(Generic[V]):
    """A cached value and the clock reading at insertion."""

    value: V
    inserted_at: float


@dataclass(frozen=True)
class ExpirationPolicy:
    """Fixed time-to-live expiration."""

    ttl: float

    def is_expired(self, entry: CacheEntry, now: float) -> bool:
        """An entry is valid while ``now - inserted_at < ttl``."""
        return now - entry.inserted_at >= self.ttl

    def remaining(self, entry: CacheEntry, now: float) -> float:
        """Seconds left before the entry expires (0 when expired)."""
        return max(0.0, self.ttl - (now - entry.inserted_at))


class Cache(Generic[K, V]):
    """Thread-safe cache whose entries expire after a fixed TTL."""

    def __init__(
        self,
        ttl: float | timedelta = DEFAULT_TTL_SECONDS,
        capacity: int | None = None,
        clock: Clock = time.monotonic,
    ) -> None:
        """Initialize an empty cache.

        Args:
            ttl: Time-to-live for every entry, in seconds or as a timedelta
            capacity: Optional maximum number of entries
            clock: Monotonic time source in seconds (injectable for tests)
        """
        if capacity is not None and capacity < 0:
            raise ValueError(f"Capacity must not be negative, got {capacity}")
        self._policy = ExpirationPolicy(to_seconds(ttl))
        self._capacity = capacity
        self._clock = clock
        self._entries: dict[K, CacheEntry[V]] = {}
        self._lock = threading.Lock()
        self._purge_at = PURGE_MIN_ENTRIES

    @classmethod
    def default(cls) -> "Cache[K, V]":
        """Empty cache with the default TTL."""
        return cls()

    @classmethod
    def from_items(
        cls,
        items: Iterable[tuple[K, V]],
        ttl: float | timedelta = DEFAULT_TTL_SECONDS,
        clock: Clock = time.monotonic,
    ) -> "Cache[K, V]":
        """Build a cache pre-populated with ``items``."""
        cache: Cache[K, V] = cls(ttl=ttl, clock=clock)
        for key, value in items:
            cache.set(key, value)
        return cache

    @property
    def ttl(self) -> float:
        return self._policy.ttl

    @property
    def capacity(self) -> int | None:
        return self._capacity

    @property
    def stored(self) -> int:
        """Number of stored entries, including expired ones not yet evicted."""
        return len(self._entries)

    def get(self, key: K) -> V | None:
        """Return the live value for ``key``, or None if absent or expired."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._policy.is_expired(entry, self._clock()):
            self._evict_if_same(key, entry)
            return None
        return entry.value

    def set(self, key: K, value: V) -> V | None:
        """Insert or overwrite ``key``, stamping the current time.

        Returns:
            The previous live value, if any
        """
        if self._capacity == 0:
            return None

        with self._lock:
            now = self._clock()
            previous = self._entries.get(key)
            if key not in self._entries:
                self._make_room(now)
            self._entries[key] = CacheEntry(value=value, inserted_at=now)
            if len(self._entries) >= self._purge_at:
                self._purge_expired(now)
                self._purge_at = max(PURGE_MIN_ENTRIES, 2 * len(self._entries))

        if previous is None or self._policy.is_expired(previous, now):
            return None
        return previous.value

    def invalidate(self, key: K) -> bool:
        """Remove ``key``. Returns True if a live entry was removed."""
        with self._lock:
            entry = self._entries.pop(key, None)
        return entry is not None and not self._policy.is_expired(entry, self._clock())

    def clear(self) -> None:
        """Remove every entry."""
        with self._lock:
            self._entries.clear()
            self._purge_at = PURGE_MIN_ENTRIES

    def contains(self, key: K) -> bool:
        """True if ``key`` has a live entry."""
        entry = self._entries.get(key)
        return entry is not None and not self._policy.is_expired(entry, self._clock())

    def ttl_remaining(self, key: K) -> float | None:
        """Seconds until ``key`` expires, or None if absent or expired."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        now = self._clock()
        if self._policy.is_expired(entry, now):
            return None
        return self._policy.remaining(entry, now)

    def refresh(self, key: K) -> bool:
        """Re-stamp a live entry so its TTL starts over.

        Expired entries are not revived.

        Returns:
            True if the entry was refreshed
        """
        with self._lock:
            now = self._clock()
            entry = self._entries.get(key)
            if entry is None or self._policy.is_expired(entry, now):
                return False
            self._entries[key] = CacheEntry(value=entry.value, inserted_at=now)
            return True

    def remove_expired(self) -> int:
        """Evict every expired entry. Returns the number evicted."""
        with self._lock:
            return self._purge_expired(self._clock())

    def set_capacity(self, capacity: int | None) -> None:
        """Change the capacity, evicting oldest entries if now over it."""
        if capacity is not None and capacity < 0:
            raise ValueError(f"Capacity must not be negative, got {capacity}")
        with self._lock:
            self._capacity = capacity
            if capacity is None:
                return
            now = self._clock()
            self._purge_expired(now)
            while len(self._entries) > capacity:
                self._evict_oldest()

    def items(self) -> list[tuple[K, V]]:
        """Snapshot of live ``(key, value)`` pairs."""
        with self._lock:
            now = self._clock()
            return [
                (key, entry.value)
                for key, entry in self._entries.items()
                if not self._policy.is_expired(entry, now)
            ]

    def __len__(self) -> int:
        return len(self.items())

    def __contains__(self, key: object) -> bool:
        try:
            return self.contains(key)  # type: ignore[arg-type]
        except TypeError:
            # Unhashable keys are never cached
            return False

    def __repr__(self) -> str:
        return f"Cache(ttl={self.ttl}, capacity={self._capacity}, entries={len(self._entries)})"

    # Internal helpers; callers hold self._lock unless noted.

    def _evict_if_same(self, key: K, entry: CacheEntry[V]) -> None:
        """Drop ``key`` only if it still maps to ``entry`` (takes the lock)."""
        with self._lock:
            if self._entries.get(key) is entry:
                del self._entries[key]

    def _make_room(self, now: float) -> None:
        if self._capacity is None or len(self._entries) < self._capacity:
            return
        self._purge_expired(now)
        while self._entries and len(self._entries) >= self._capacity:
            self._evict_oldest()

    def _purge_expired(self, now: float) -> int:
        expired = [k for k, e in self._entries.items() if self._policy.is_expired(e, now)]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def _evict_oldest(self) -> None:
        oldest = min(self._entries, key=lambda k: self._entries[k].inserted_at)
        del self._entries[oldest]
