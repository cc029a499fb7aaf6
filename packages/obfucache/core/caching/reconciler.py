"""Stable output filenames for cached chunks.

Bundlers assign a fresh content hash to every emitted chunk filename, and the
hash of a transformed chunk can change even when the cached code is reused.
After all chunks are rendered, the reconciler walks the complete output map
once:

- a chunk whose cache entry already has an output hash is renamed back to
  that hash if the bundler picked a different one;
- a chunk whose entry has no output hash yet seeds it from this build's name.

Renames are planned first and checked as a whole. Any rename that would land
on a name another file keeps or another rename targets is dropped, and the
files involved keep their provisional names.
"""

from __future__ import annotations

from collections import Counter, defaultdict
import logging
import re

from pydantic import BaseModel, Field

from obfucache.core.caching.artifact_cache import ArtifactCache
from obfucache.core.caching.models import EmittedFile

logger = logging.getLogger(__name__)

# Hash segment of "[name].[hash].js" or "[hash].js"
DEFAULT_HASH_PATTERN = r"(?:^|[/.])(?P<hash>[A-Za-z0-9_-]+)\.js$"


class RenamePlan(BaseModel):
    """One planned rename of an emitted chunk."""

    old_name: str
    new_name: str
    key: str = Field(description="Chunk key whose entry supplied the stable hash")


class ReconcileResult(BaseModel):
    """Outcome of reconciling one build's output map."""

    files: dict[str, EmittedFile] = Field(default_factory=dict)
    renamed: list[RenamePlan] = Field(default_factory=list)
    conflicts: list[RenamePlan] = Field(default_factory=list)
    seeded: list[str] = Field(default_factory=list, description="Filenames that seeded a hash")


class RenameConflictError(Exception):
    """Planned renames that would make two output files share one name."""

    def __init__(self, plans: list[RenamePlan]) -> None:
        self.plans = plans
        targets = sorted({p.new_name for p in plans})
        super().__init__(
            f"Refusing {len(plans)} rename(s) colliding on: {', '.join(targets)}"
        )


class RenameReconciler:
    """Restores previously recorded output hashes into emitted filenames."""

    def __init__(self, cache: ArtifactCache, hash_pattern: str = DEFAULT_HASH_PATTERN) -> None:
        self.cache = cache
        self.hash_pattern = re.compile(hash_pattern)
        if "hash" not in self.hash_pattern.groupindex:
            raise ValueError("hash_pattern must define a named group 'hash'")

    def extract_hash(self, file_name: str) -> str | None:
        match = self.hash_pattern.search(file_name)
        return match.group("hash") if match else None

    def with_hash(self, file_name: str, output_hash: str) -> str:
        """Replace only the hash segment of ``file_name``."""
        match = self.hash_pattern.search(file_name)
        if match is None:
            return file_name
        start, end = match.span("hash")
        return file_name[:start] + output_hash + file_name[end:]

    def plan(self, emitted: dict[str, EmittedFile]) -> tuple[list[RenamePlan], list[str]]:
        """
        Plan renames and seed hashes for new entries.

        Returns:
            (planned renames, filenames whose hash seeded a new entry)
        """
        plans: list[RenamePlan] = []
        seeded: list[str] = []

        for file_name in sorted(emitted):
            output = emitted[file_name]
            if output.kind != "chunk":
                continue

            chunk = output.descriptor().model_copy(update={"file_name": file_name})
            current_hash = self.extract_hash(file_name)
            entry = self.cache.peek(chunk)

            if entry is not None and entry.output_hash:
                if current_hash and current_hash != entry.output_hash:
                    plans.append(
                        RenamePlan(
                            old_name=file_name,
                            new_name=self.with_hash(file_name, entry.output_hash),
                            key=self.cache.key_for(chunk),
                        )
                    )
            elif current_hash and self.cache.finalize_output_name(chunk, current_hash):
                seeded.append(file_name)

        return plans, seeded

    def check_conflicts(self, plans: list[RenamePlan], emitted: dict[str, EmittedFile]) -> None:
        """
        Raise if any plan targets a name that is not free after the renames.

        Raises:
            RenameConflictError: Listing every plan involved in a collision
        """
        targets = Counter(p.new_name for p in plans)
        vacated = {p.old_name for p in plans}
        occupied = set(emitted) - vacated

        colliding = [p for p in plans if targets[p.new_name] > 1 or p.new_name in occupied]
        if colliding:
            raise RenameConflictError(colliding)

    def reconcile(self, emitted: dict[str, EmittedFile]) -> ReconcileResult:
        """
        Reconcile the complete output map of one build.

        The input map is left untouched; the returned result holds the new map.
        """
        plans, seeded = self.plan(emitted)
        conflicts: list[RenamePlan] = []

        # Dropping a rename keeps its old name occupied, which can expose new
        # collisions, so re-check until the plan is stable.
        while plans:
            try:
                self.check_conflicts(plans, emitted)
                break
            except RenameConflictError as e:
                logger.error(f"Rename conflict, keeping provisional names: {e}")
                by_target: dict[str, list[str]] = defaultdict(list)
                for p in e.plans:
                    by_target[p.new_name].append(p.old_name)
                for target, sources in sorted(by_target.items()):
                    logger.error(f"  {target} <- {', '.join(sorted(sources))}")
                conflicts.extend(e.plans)
                plans = [p for p in plans if p not in e.plans]

        files = apply_renames(emitted, {p.old_name: p.new_name for p in plans})
        for p in plans:
            logger.info(f"Hash restored: {_basename(p.old_name)} -> {_basename(p.new_name)}")

        return ReconcileResult(files=files, renamed=plans, conflicts=conflicts, seeded=seeded)


def _basename(file_name: str) -> str:
    return file_name.rsplit("/", 1)[-1]


def apply_renames(
    emitted: dict[str, EmittedFile], renames: dict[str, str]
) -> dict[str, EmittedFile]:
    """
    Return a new output map with ``renames`` applied.

    Keys, ``file_name``, ``imports`` and ``dynamic_imports`` are remapped, and
    references to renamed basenames inside file contents are rewritten.
    """
    if not renames:
        return dict(emitted)

    basenames = {_basename(old): _basename(new) for old, new in renames.items()}
    reference = re.compile("|".join(re.escape(b) for b in sorted(basenames, key=len, reverse=True)))

    def remap(names: tuple[str, ...]) -> tuple[str, ...]:
        return tuple(renames.get(n, n) for n in names)

    result: dict[str, EmittedFile] = {}
    for file_name, output in emitted.items():
        new_name = renames.get(file_name, file_name)
        result[new_name] = output.model_copy(
            update={
                "file_name": new_name,
                "imports": remap(output.imports),
                "dynamic_imports": remap(output.dynamic_imports),
                "code": reference.sub(lambda m: basenames[m.group(0)], output.code),
            }
        )
    return result
