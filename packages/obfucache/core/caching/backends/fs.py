"""Filesystem-backed cache store: one JSON document for the whole cache.

The document is read once when a build opens the cache and written once when
it closes, through the filesystem layer's atomic write (temp file + replace).
"""

from collections.abc import Iterator
import logging
import threading

from pydantic import ValidationError

from obfucache.core.caching.models import CacheDocument, CacheEntry
from obfucache.core.io import AbsolutePath, FileSystem

logger = logging.getLogger(__name__)

DEFAULT_CACHE_FILE = "obfuscation-cache.json"


class JsonFileCacheStore:
    """
    Cache store persisted as ``<root>/<file_name>``.

    Entries are never evicted implicitly: an edited module leaves the entry
    under its old key in place until ``clear`` is called.
    """

    def __init__(
        self,
        fs: FileSystem,
        root: AbsolutePath,
        file_name: str = DEFAULT_CACHE_FILE,
    ) -> None:
        """
        Initialize the store (no I/O until ``load``).

        Args:
            fs: Async filesystem implementation
            root: Absolute path of the cache directory
            file_name: Name of the cache document inside ``root``
        """
        self.fs = fs
        self.root = root
        self.path = fs.join(root, file_name)
        self._chunks: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    async def load(self) -> None:
        """
        Load the persisted document, replacing in-memory state.

        A missing file is a first build. Unreadable, malformed, or schema-invalid
        content is logged as a warning and also treated as a first build.
        """
        chunks: dict[str, CacheEntry] = {}
        try:
            if await self.fs.exists(self.path):
                raw = await self.fs.read_text(self.path)
                chunks = CacheDocument.model_validate_json(raw).chunks
                logger.info(f"Loaded obfuscation cache: {len(chunks)} chunks from {self.path}")
            else:
                logger.info(f"No obfuscation cache at {self.path}, starting empty")
        except (OSError, UnicodeDecodeError, ValidationError, ValueError) as e:
            logger.warning(f"Failed to load obfuscation cache, treating as first build: {e}")
            chunks = {}

        with self._lock:
            self._chunks = chunks

    def get(self, key: str) -> CacheEntry | None:
        with self._lock:
            return self._chunks.get(key)

    def put(self, key: str, entry: CacheEntry) -> None:
        with self._lock:
            self._chunks[key] = entry

    def document(self) -> CacheDocument:
        """Snapshot of the current in-memory state as a persistable document."""
        with self._lock:
            return CacheDocument(chunks=dict(self._chunks))

    async def save(self) -> bool:
        """
        Atomically write the full document.

        Returns:
            True on success; False if serialization or the write failed
            (logged as an error, the current build's output is unaffected)
        """
        document = self.document()
        try:
            await self.fs.mkdirs(self.root, exist_ok=True)
            result = await self.fs.write_text(self.path, document.to_json())
        except (OSError, ValueError) as e:
            # ValueError covers unencodable code (e.g. lone surrogates)
            logger.error(f"Failed to save obfuscation cache to {self.path}: {e}")
            return False

        logger.info(
            f"Saved obfuscation cache: {len(document.chunks)} chunks ({result.size_kb} KB)"
        )
        return True

    async def clear(self) -> None:
        """Drop all entries and delete the cache document if present."""
        with self._lock:
            self._chunks = {}

        if await self.fs.exists(self.path):
            await self.fs.remove(self.path)
            logger.info(f"Cleared obfuscation cache at {self.path}")

    def keys(self) -> Iterator[str]:
        with self._lock:
            return iter(list(self._chunks))

    def entries(self) -> list[tuple[str, CacheEntry]]:
        with self._lock:
            return list(self._chunks.items())

    def __len__(self) -> int:
        with self._lock:
            return len(self._chunks)

    def __repr__(self) -> str:
        return f"JsonFileCacheStore(path={str(self.path)!r}, chunks={len(self)})"

