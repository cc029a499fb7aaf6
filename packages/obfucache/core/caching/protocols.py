"""Protocol for cache store backends."""

from collections.abc import Iterator
from typing import Protocol

from .models import CacheEntry


class CacheStore(Protocol):
    """
    Durable mapping from chunk key to cache entry.

    All implementations must support:
    - Miss-on-error loading (missing or corrupt state -> empty store)
    - Atomic persistence (a crash mid-save never corrupts the previous state)
    - Concurrent ``put`` for distinct keys; last write wins for the same key
    - No implicit eviction (entries only disappear through ``clear``)

    ``load``/``save``/``clear`` touch durable storage and are async;
    ``get``/``put`` work on the in-memory map only.
    """

    async def load(self) -> None:
        """Replace in-memory state with the persisted state (never raises)."""
        ...

    def get(self, key: str) -> CacheEntry | None:
        """Return the entry for ``key``, or None."""
        ...

    def put(self, key: str, entry: CacheEntry) -> None:
        """Insert or overwrite the entry for ``key``."""
        ...

    async def save(self) -> bool:
        """
        Persist the full store.

        Returns:
            True if written, False if the write failed (failure is logged)
        """
        ...

    async def clear(self) -> None:
        """Drop all entries, in memory and on durable storage."""
        ...

    def keys(self) -> Iterator[str]:
        """Iterate over stored keys."""
        ...

    def entries(self) -> list[tuple[str, CacheEntry]]:
        """Snapshot of (key, entry) pairs."""
        ...

    def __len__(self) -> int: ...
