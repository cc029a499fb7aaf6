"""Per-build source fingerprints."""

from __future__ import annotations

from collections.abc import Iterable
import logging
import threading

from obfucache.core.caching.keys import hash_content
from obfucache.core.caching.models import ModuleFingerprint
from obfucache.core.caching.policy import ModuleInclusionPolicy, ThirdPartyPatternPolicy

logger = logging.getLogger(__name__)


class SourceHasher:
    """
    Content fingerprints for the modules of the current build.

    Lives for one build only. ``track`` may be called from several worker
    threads; each call writes its own key under a lock.
    """

    def __init__(self, policy: ModuleInclusionPolicy | None = None) -> None:
        self.policy: ModuleInclusionPolicy = policy or ThirdPartyPatternPolicy()
        self._hashes: dict[str, str] = {}
        self._lock = threading.Lock()

    def track(self, module_id: str, content: str | bytes) -> None:
        """Fingerprint ``content`` under ``module_id`` if the policy admits it."""
        if not self.policy.should_track(module_id):
            return

        digest = hash_content(content)
        with self._lock:
            self._hashes[module_id] = digest

    def get(self, module_id: str) -> str | None:
        with self._lock:
            return self._hashes.get(module_id)

    def fingerprint(self, module_id: str) -> ModuleFingerprint | None:
        digest = self.get(module_id)
        if digest is None:
            return None
        return ModuleFingerprint(module_id=module_id, content_hash=digest)

    def snapshot(self, module_ids: Iterable[str]) -> dict[str, str]:
        """Fingerprints of the given ids that are tracked (untracked ids are omitted)."""
        with self._lock:
            return {mid: self._hashes[mid] for mid in module_ids if mid in self._hashes}

    def clear(self) -> None:
        with self._lock:
            count = len(self._hashes)
            self._hashes.clear()
        logger.debug(f"Discarded {count} module fingerprints")

    def __contains__(self, module_id: object) -> bool:
        with self._lock:
            return module_id in self._hashes

    def __len__(self) -> int:
        with self._lock:
            return len(self._hashes)
