"""Hit/miss accounting for one build."""

from __future__ import annotations

import threading

from obfucache.core.caching.models import CacheStats


def hit_rate(cached: int, obfuscated: int) -> int:
    """
    Percentage of chunks served from the cache, rounded half-up.

    Returns 0 when nothing was processed.

    Example:
        >>> hit_rate(1, 1)
        50
        >>> hit_rate(1, 7)
        13
    """
    total = cached + obfuscated
    if total <= 0:
        return 0
    # Integer half-up rounding; round() would round 12.5 to 12
    return (200 * cached + total) // (2 * total)


class StatsCollector:
    """Thread-safe ``cached`` / ``obfuscated`` counters."""

    def __init__(self) -> None:
        self._cached = 0
        self._obfuscated = 0
        self._lock = threading.Lock()

    def record_hit(self) -> None:
        with self._lock:
            self._cached += 1

    def record_obfuscated(self) -> None:
        with self._lock:
            self._obfuscated += 1

    def report(self) -> CacheStats:
        with self._lock:
            cached, obfuscated = self._cached, self._obfuscated
        return CacheStats(
            cached=cached,
            obfuscated=obfuscated,
            total=cached + obfuscated,
            hit_rate=hit_rate(cached, obfuscated),
        )
