"""Content-addressed cache for transformed (obfuscated) build chunks.

Key features:
- SHA256 fingerprints per module, gated by an injectable inclusion policy
- Chunk keys from sorted member ids + fingerprints (order independent)
- One JSON document per cache, loaded once and saved atomically once
- Stable output filenames: cached chunks get their recorded hash back
- Hit/miss accounting per build

Example:
    >>> from obfucache.core.caching import ArtifactCache, JsonFileCacheStore
    >>> from obfucache.core.io import RealFileSystem, absolute_path
    >>>
    >>> store = JsonFileCacheStore(RealFileSystem(), absolute_path(".vite-cache"))
    >>> async with ArtifactCache(store) as cache:
    ...     cache.track("/app/src/main.ts", source)
    ...     if cache.lookup(chunk) is None:
    ...         cache.record(chunk, obfuscate(code))
"""

from obfucache.core.caching.artifact_cache import ArtifactCache
from obfucache.core.caching.backends.fs import JsonFileCacheStore
from obfucache.core.caching.backends.null import NullCacheStore
from obfucache.core.caching.hashing import SourceHasher
from obfucache.core.caching.keys import ChunkKeyDeriver, compose_key, derive_key, hash_content
from obfucache.core.caching.models import (
    CacheDocument,
    CacheEntry,
    CacheStats,
    ChunkDescriptor,
    EmittedFile,
    ModuleFingerprint,
)
from obfucache.core.caching.policy import (
    ModuleInclusionPolicy,
    ThirdPartyPatternPolicy,
    TrackEverythingPolicy,
)
from obfucache.core.caching.protocols import CacheStore
from obfucache.core.caching.reconciler import (
    ReconcileResult,
    RenameConflictError,
    RenamePlan,
    RenameReconciler,
)
from obfucache.core.caching.stats import StatsCollector, hit_rate

__all__ = [
    # Core
    "ArtifactCache",
    "CacheStore",
    "SourceHasher",
    "ChunkKeyDeriver",
    "RenameReconciler",
    "StatsCollector",
    # Models
    "CacheDocument",
    "CacheEntry",
    "CacheStats",
    "ChunkDescriptor",
    "EmittedFile",
    "ModuleFingerprint",
    "ReconcileResult",
    "RenamePlan",
    "RenameConflictError",
    # Policies
    "ModuleInclusionPolicy",
    "ThirdPartyPatternPolicy",
    "TrackEverythingPolicy",
    # Backends
    "JsonFileCacheStore",
    "NullCacheStore",
    # Utils
    "compose_key",
    "derive_key",
    "hash_content",
    "hit_rate",
]
