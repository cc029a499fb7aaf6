"""In-memory store that never touches durable storage.

Used when caching is disabled (development builds) and in tests that only
exercise keying and accounting.
"""

from collections.abc import Iterator
import threading

from obfucache.core.caching.models import CacheEntry


class NullCacheStore:
    """Keeps entries for the lifetime of the process; load/save are no-ops."""

    def __init__(self) -> None:
        self._chunks: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    async def load(self) -> None:
        """No-op (async)."""

    def get(self, key: str) -> CacheEntry | None:
        with self._lock:
            return self._chunks.get(key)

    def put(self, key: str, entry: CacheEntry) -> None:
        with self._lock:
            self._chunks[key] = entry

    async def save(self) -> bool:
        """Discard (async)."""
        return True

    async def clear(self) -> None:
        with self._lock:
            self._chunks.clear()

    def keys(self) -> Iterator[str]:
        with self._lock:
            return iter(list(self._chunks))

    def entries(self) -> list[tuple[str, CacheEntry]]:
        with self._lock:
            return list(self._chunks.items())

    def __len__(self) -> int:
        with self._lock:
            return len(self._chunks)
