"""In-memory response cache to avoid redundant API calls."""

from __future__ import annotations

import time
from collections.abc import Callable, Hashable
from dataclasses import dataclass
from typing import Any

from rpgtranslator.models import ContentClass

DEFAULT_TTL = 5 * 60.0  # seconds
DEFAULT_MAX_SIZE = 1000


@dataclass(frozen=True)
class CacheKey:
    """Composite key for a single-text translation.

    Context and content class are part of the key so two requests that only
    differ by context never share a cached response.
    """

    source_language: str
    target_language: str
    text: str
    context: str | None = None
    content_class: ContentClass | None = None


@dataclass
class CacheEntry:
    value: Any
    timestamp: float


class TTLCache:
    """Bounded map with time-boxed entries.

    An entry is logically gone once it is older than ``ttl`` and is
    physically removed the next time it is touched. When full, inserting a
    new key evicts the entry with the oldest timestamp (insertion/refresh
    time, not last read).
    """

    def __init__(
        self,
        ttl: float = DEFAULT_TTL,
        max_size: int = DEFAULT_MAX_SIZE,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl <= 0:
            raise ValueError("ttl must be positive")
        if max_size <= 0:
            raise ValueError("max_size must be positive")
        self.ttl = ttl
        self.max_size = max_size
        self._clock = clock
        self._entries: dict[Hashable, CacheEntry] = {}

    def _expired(self, entry: CacheEntry, now: float) -> bool:
        return now - entry.timestamp > self.ttl

    def get(self, key: Hashable) -> Any | None:
        """Return the cached value, or None if absent or expired."""
        _check_key(key)
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._expired(entry, self._clock()):
            del self._entries[key]
            return None
        return entry.value

    def set(self, key: Hashable, value: Any) -> None:
        _check_key(key)
        if value is None:
            raise ValueError("Cache value cannot be None")

        if key not in self._entries and len(self._entries) >= self.max_size:
            oldest = min(self._entries, key=lambda k: self._entries[k].timestamp)
            del self._entries[oldest]

        self._entries[key] = CacheEntry(value=value, timestamp=self._clock())

    def has(self, key: Hashable) -> bool:
        return self.get(key) is not None

    def delete(self, key: Hashable) -> None:
        _check_key(key)
        self._entries.pop(key, None)

    def clear(self) -> int:
        """Drop every entry. Returns number of entries deleted."""
        count = len(self._entries)
        self._entries.clear()
        return count

    def keys(self) -> list[Hashable]:
        return list(self._entries)

    def entries(self) -> list[tuple[Hashable, Any]]:
        """Live (non-expired) entries."""
        now = self._clock()
        return [(k, e.value) for k, e in self._entries.items() if not self._expired(e, now)]

    def remaining_ttl(self, key: Hashable) -> float | None:
        _check_key(key)
        entry = self._entries.get(key)
        if entry is None:
            return None
        remaining = self.ttl - (self._clock() - entry.timestamp)
        return remaining if remaining > 0 else None

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: Hashable) -> bool:
        return self.has(key)


def _check_key(key: Hashable) -> None:
    if key is None or key == "":
        raise ValueError("Cache key cannot be empty")
