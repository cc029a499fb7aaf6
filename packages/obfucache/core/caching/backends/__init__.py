"""Cache store backends."""

from obfucache.core.caching.backends.fs import JsonFileCacheStore
from obfucache.core.caching.backends.null import NullCacheStore

__all__ = ["JsonFileCacheStore", "NullCacheStore"]
