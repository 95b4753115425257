"""In-memory time-boxed cache for analysis results.

Entries expire after a TTL (default or per entry). When the cache grows past
``max_entries`` it first drops expired entries, then the oldest entries
until the size is back at ``low_water``.

Instances are owned by the caller; there is no module-level cache.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable

logger = logging.getLogger(__name__)


@dataclass
class _Entry:
    value: Any
    stored_at: float
    ttl: float

    def expired(self, now: float) -> bool:
        return now - self.stored_at > self.ttl


class MemoryCache:
    """Thread-safe TTL cache with a capacity bound."""

    def __init__(
        self,
        default_ttl: float = 15.0,
        max_entries: int = 500,
        low_water: int = 400,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_entries <= 0:
            raise ValueError(f"max_entries must be positive, got {max_entries}")
        if not 0 <= low_water < max_entries:
            raise ValueError(
                f"low_water must be in [0, {max_entries}), got {low_water}"
            )
        self.default_ttl = default_ttl
        self.max_entries = max_entries
        self.low_water = low_water
        self._clock = clock
        self._entries: dict[str, _Entry] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Any | None:
        """Return the cached value, or None if missing or expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if entry.expired(self._clock()):
                del self._entries[key]
                return None
            return entry.value

    def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        """Store a value, evicting first if the cache is full."""
        with self._lock:
            if key not in self._entries and len(self._entries) >= self.max_entries:
                self._evict()
            self._entries[key] = _Entry(
                value=value,
                stored_at=self._clock(),
                ttl=self.default_ttl if ttl is None else ttl,
            )

    def get_or_compute(self, key: str, compute: Callable[[], Any], ttl: float | None = None) -> Any:
        """Return the cached value or compute, store, and return it.

        ``compute`` runs outside the lock; concurrent misses may compute twice.
        """
        value = self.get(key)
        if value is not None:
            return value
        value = compute()
        self.set(key, value, ttl)
        return value

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None

    def _evict(self) -> None:
        """Drop expired entries, then oldest-first down to low_water. Lock held."""
        now = self._clock()
        expired = [k for k, e in self._entries.items() if e.expired(now)]
        for key in expired:
            del self._entries[key]

        overflow = 0
        if len(self._entries) >= self.max_entries:
            overflow = len(self._entries) - self.low_water
            oldest = sorted(self._entries, key=lambda k: self._entries[k].stored_at)
            for key in oldest[:overflow]:
                del self._entries[key]

        logger.info(
            "Cache eviction: %d expired, %d oldest removed, %d remaining",
            len(expired),
            overflow,
            len(self._entries),
        )
