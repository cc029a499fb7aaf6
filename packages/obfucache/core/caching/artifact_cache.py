"""Artifact cache facade: one explicit handle per build.

Ties together the build's SourceHasher, a CacheStore and the StatsCollector.
The handle is opened at build start (store loaded), used by the per-module and
per-chunk hooks, and closed at build end (store saved). Nothing is module-level
state, so concurrent build processes each own their handle.

Example:
    >>> store = JsonFileCacheStore(RealFileSystem(), absolute_path(".vite-cache"))
    >>> async with ArtifactCache(store) as cache:
    ...     cache.track("src/main.ts", source)
    ...     entry = cache.lookup(chunk)
    ...     if entry is None:
    ...         cache.record(chunk, transform(code))
"""

from __future__ import annotations

from datetime import UTC, datetime
import logging
from types import TracebackType

from obfucache.core.caching.hashing import SourceHasher
from obfucache.core.caching.keys import ChunkKeyDeriver
from obfucache.core.caching.models import CacheEntry, CacheStats, ChunkDescriptor
from obfucache.core.caching.policy import ModuleInclusionPolicy
from obfucache.core.caching.protocols import CacheStore
from obfucache.core.caching.stats import StatsCollector

logger = logging.getLogger(__name__)


class ArtifactCache:
    """
    Lookup, insertion and hit/miss accounting for transformed chunks.

    ``lookup``/``record``/``finalize_output_name`` only mutate the store's
    in-memory map; durable storage is touched by ``open`` and ``close``.
    """

    def __init__(
        self,
        store: CacheStore,
        policy: ModuleInclusionPolicy | None = None,
    ) -> None:
        self.store = store
        self.hasher = SourceHasher(policy)
        self.keys = ChunkKeyDeriver(self.hasher)
        self.stats = StatsCollector()
        self._opened = False

    async def open(self) -> None:
        """Load the store. Safe to call more than once."""
        if self._opened:
            return
        await self.store.load()
        self._opened = True
        logger.debug(f"Artifact cache opened with {len(self.store)} entries")

    async def close(self) -> CacheStats:
        """Persist the store and drop this build's fingerprints."""
        report = self.stats.report()
        await self.store.save()
        self.hasher.clear()
        self._opened = False
        return report

    async def __aenter__(self) -> ArtifactCache:
        await self.open()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    @property
    def is_open(self) -> bool:
        return self._opened

    def track(self, module_id: str, content: str | bytes) -> None:
        self.hasher.track(module_id, content)

    def key_for(self, chunk: ChunkDescriptor) -> str:
        return self.keys.derive(chunk)

    def peek(self, chunk: ChunkDescriptor) -> CacheEntry | None:
        """Look up without counting a hit."""
        return self.store.get(self.key_for(chunk))

    def lookup(self, chunk: ChunkDescriptor) -> CacheEntry | None:
        """Return the cached entry for ``chunk``, counting a hit if found."""
        entry = self.peek(chunk)
        if entry is not None:
            self.stats.record_hit()
        return entry

    def record(self, chunk: ChunkDescriptor, transformed_output: str) -> CacheEntry:
        """Store a freshly transformed chunk; its output hash is learned later."""
        key = self.key_for(chunk)
        entry = CacheEntry(
            module_hashes=self.hasher.snapshot(chunk.module_ids),
            obfuscated_code=transformed_output,
            output_hash=None,
            file_name=chunk.file_name,
            chunk_name=chunk.name,
            timestamp=datetime.now(UTC),
        )
        self.store.put(key, entry)
        self.stats.record_obfuscated()
        logger.debug(f"Recorded {chunk.display_name} under {key[:12]}")
        return entry

    def finalize_output_name(self, chunk: ChunkDescriptor, resolved_output_hash: str) -> bool:
        """
        Set the entry's canonical output hash and filename from this build.

        Returns:
            True if an entry existed and was updated
        """
        entry = self.peek(chunk)
        if entry is None:
            return False
        entry.output_hash = resolved_output_hash
        entry.file_name = chunk.file_name
        return True

    def is_module_unchanged(self, module_id: str) -> bool:
        """
        True if the module's current fingerprint matches the one recorded in
        the first stored entry that mentions it.
        """
        current = self.hasher.get(module_id)
        if current is None:
            return False

        for _, entry in self.store.entries():
            recorded = entry.module_hashes.get(module_id)
            if recorded is not None:
                return recorded == current
        return False

    def report(self) -> CacheStats:
        return self.stats.report()
