"""Content digests and chunk key derivation."""

from __future__ import annotations

from collections.abc import Iterable
import hashlib
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from obfucache.core.caching.hashing import SourceHasher
    from obfucache.core.caching.models import ChunkDescriptor

UNKNOWN_FINGERPRINT = "unknown"
PAIR_SEPARATOR = "|"


def hash_content(content: str | bytes) -> str:
    """
    SHA256 hex digest of ``content``.

    Text is encoded as UTF-8 (surrogates passed through), so any string hashes
    deterministically.
    """
    if isinstance(content, str):
        content = content.encode("utf-8", errors="surrogatepass")
    return hashlib.sha256(content).hexdigest()


def compose_key(module_ids: Iterable[str], fingerprints: dict[str, str]) -> str:
    """
    Build a chunk key from member ids and their fingerprints.

    Ids are sorted first so the key doesn't depend on the order the bundler
    lists them in. A member without a fingerprint contributes the
    ``unknown`` sentinel rather than being dropped, so chunks that differ
    only in which members are untracked get different keys.

    Example:
        >>> compose_key(["b.ts", "a.ts"], {"a.ts": "11", "b.ts": "22"}) == compose_key(
        ...     ["a.ts", "b.ts"], {"a.ts": "11", "b.ts": "22"}
        ... )
        True
    """
    pairs = (
        f"{module_id}:{fingerprints.get(module_id, UNKNOWN_FINGERPRINT)}"
        for module_id in sorted(module_ids)
    )
    return hash_content(PAIR_SEPARATOR.join(pairs))


def derive_key(chunk: ChunkDescriptor, hasher: SourceHasher) -> str:
    """Derive the cache key of ``chunk`` from the build's current fingerprints."""
    return compose_key(chunk.module_ids, hasher.snapshot(chunk.module_ids))


class ChunkKeyDeriver:
    """Key derivation bound to one build's SourceHasher."""

    def __init__(self, hasher: SourceHasher) -> None:
        self.hasher = hasher

    def derive(self, chunk: ChunkDescriptor) -> str:
        return derive_key(chunk, self.hasher)
