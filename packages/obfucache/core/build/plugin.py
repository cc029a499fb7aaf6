"""Bundler hooks for cached obfuscation.

The bundler drives one build through these hooks, in order:

1. ``build_start``      - open the artifact cache (load the store)
2. ``transform_module`` - once per module: fingerprint its source
3. ``render_chunk``     - once per chunk: reuse cached output or transform it
4. ``generate_bundle``  - once: restore stable filenames over the full output
5. ``close_bundle``     - once: report statistics and save the store

Hooks 2 and 3 may be called from worker threads; every module must be
fingerprinted before the first chunk is rendered. Outside production mode all
hooks are no-ops.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any
import uuid

from obfucache.core.caching import (
    ArtifactCache,
    CacheStats,
    CacheStore,
    ChunkDescriptor,
    EmittedFile,
    JsonFileCacheStore,
    NullCacheStore,
    ReconcileResult,
    RenameReconciler,
)
from obfucache.core.config.models import ObfucacheConfig
from obfucache.core.io import FileSystem, RealFileSystem, absolute_path
from obfucache.core.utils.logging import get_logger

Transform = Callable[[str, dict[str, Any]], str]
"""(source_code, options) -> transformed code; raises on failure; must be deterministic."""

_BANNER_WIDTH = 53


def json_store(
    config: ObfucacheConfig,
    fs: FileSystem | None = None,
    project_root: str | Path = ".",
) -> JsonFileCacheStore:
    """The JSON document store at the configured location, whether or not caching is enabled."""
    fs = fs or RealFileSystem()
    root = absolute_path(Path(project_root) / config.cache.directory)
    return JsonFileCacheStore(fs, root, config.cache.file_name)


def build_store(
    config: ObfucacheConfig,
    fs: FileSystem | None = None,
    project_root: str | Path = ".",
) -> CacheStore:
    """Create the configured store: the JSON document, or in-memory if caching is off."""
    if not config.cache.enabled:
        return NullCacheStore()
    return json_store(config, fs, project_root)


class CachedTransformPlugin:
    """
    Runs an expensive deterministic transform over chunks, reusing cached
    output for chunks whose modules are unchanged.

    Example:
        >>> plugin = CachedTransformPlugin(obfuscate, ObfucacheConfig())
        >>> plugin.build_start()
        >>> for module_id, source in modules:
        ...     plugin.transform_module(module_id, source)
        >>> code = plugin.render_chunk(chunk_code, chunk) or chunk_code
        >>> bundle = plugin.generate_bundle(bundle)
        >>> stats = plugin.close_bundle()
    """

    name = "cached-obfuscation"

    def __init__(
        self,
        transform: Transform,
        config: ObfucacheConfig | None = None,
        store: CacheStore | None = None,
        fs: FileSystem | None = None,
        project_root: str | Path = ".",
    ) -> None:
        self.transform = transform
        self.config = config or ObfucacheConfig()
        self.options = dict(self.config.transform_options)
        self.build_id = uuid.uuid4().hex[:8]
        self.logger = get_logger(__name__, build_id=self.build_id)
        self.last_reconcile: ReconcileResult | None = None

        self.cache: ArtifactCache | None = None
        self.reconciler: RenameReconciler | None = None
        if self.config.is_production:
            store = store or build_store(self.config, fs, project_root)
            self.cache = ArtifactCache(store, self.config.modules.build_policy())
            self.reconciler = RenameReconciler(self.cache, self.config.naming.hash_pattern)

    @property
    def active(self) -> bool:
        return self.cache is not None

    def _require_open(self) -> ArtifactCache:
        if self.cache is None or not self.cache.is_open:
            raise RuntimeError("build_start() must run before chunks are rendered")
        return self.cache

    def build_start(self) -> None:
        if self.cache is None:
            return
        asyncio.run(self.cache.open())
        self.logger.info("Cached obfuscation plugin initialized")

    def transform_module(self, module_id: str, content: str) -> None:
        """Fingerprint a module's source; never alters it."""
        if self.cache is None:
            return
        self.cache.track(module_id, content)

    def render_chunk(self, code: str, chunk: ChunkDescriptor) -> str | None:
        """
        Return the transformed code for a chunk.

        Returns:
            Cached or freshly transformed code, or None to keep ``code`` as is
            (inactive plugin, non-matching extension, or transform failure)
        """
        if self.cache is None:
            return None
        if not chunk.file_name.endswith(self.config.naming.chunk_extension):
            return None

        cache = self._require_open()
        entry = cache.lookup(chunk)
        if entry is not None:
            self.logger.info(
                f"Reusing cached obfuscated: {chunk.display_name} (hash: {entry.output_hash})"
            )
            return entry.obfuscated_code

        self.logger.info(f"Obfuscating: {chunk.display_name}")
        try:
            transformed = self.transform(code, self.options)
        except Exception as e:
            # Chunk ships untransformed and uncached; other chunks are unaffected
            self.logger.error(f"Obfuscation failed for {chunk.display_name}: {e}")
            return None

        cache.record(chunk, transformed)
        return transformed

    def render_chunks(
        self,
        chunks: Iterable[tuple[str, ChunkDescriptor]],
        max_workers: int | None = None,
    ) -> list[str | None]:
        """Render independent chunks concurrently; results keep input order."""
        items = list(chunks)
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            return list(pool.map(lambda item: self.render_chunk(*item), items))

    def generate_bundle(self, bundle: dict[str, EmittedFile]) -> dict[str, EmittedFile]:
        """Restore stable filenames over the complete output map."""
        if self.reconciler is None:
            return bundle
        self._require_open()

        result = self.reconciler.reconcile(bundle)
        self.last_reconcile = result
        if result.seeded:
            self.logger.debug(f"Seeded output hashes for {len(result.seeded)} new chunks")
        return result.files

    def close_bundle(self) -> CacheStats | None:
        """Log statistics and persist the cache."""
        if self.cache is None:
            return None

        stats = self.cache.report()
        self.log_stats(stats)
        asyncio.run(self.cache.close())
        return stats

    def log_stats(self, stats: CacheStats) -> None:
        self.logger.info("=" * _BANNER_WIDTH)
        self.logger.info("Obfuscation Cache Statistics")
        self.logger.info(f"   Cached & reused:  {stats.cached} chunks")
        self.logger.info(f"   Newly obfuscated: {stats.obfuscated} chunks")
        self.logger.info(f"   Total chunks:     {stats.total}")
        self.logger.info(f"   Cache hit rate:   {stats.hit_rate}%")
        if stats.verdict:
            self.logger.info(f"   {stats.verdict}")
        self.logger.info("=" * _BANNER_WIDTH)

