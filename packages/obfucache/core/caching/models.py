"""Models for the chunk artifact cache.

Provides the bundler-facing descriptors, the persisted cache entry and
document, and the statistics report.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class ModuleFingerprint(BaseModel):
    """Content fingerprint of one module for the current build."""

    model_config = ConfigDict(frozen=True)

    module_id: str
    content_hash: str = Field(description="SHA256 hex digest of the module source")


class ChunkDescriptor(BaseModel):
    """
    A chunk as reported by the bundler.

    Only ``module_ids`` participate in the cache key; ``name`` and
    ``file_name`` are carried into the entry for reporting.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(default="", description="Logical chunk name (may be empty)")
    file_name: str = Field(description="Provisional output filename from the bundler")
    module_ids: tuple[str, ...] = Field(default=(), description="Member module ids")

    @property
    def display_name(self) -> str:
        return self.name or self.file_name


class CacheEntry(BaseModel):
    """
    One cached transform result.

    Serialized with the camelCase keys of the on-disk document. ``output_hash``
    stays ``None`` until the naming phase has run once for the entry's key.
    """

    model_config = ConfigDict(populate_by_name=True, validate_assignment=True)

    module_hashes: dict[str, str] = Field(default_factory=dict, alias="moduleHashes")
    obfuscated_code: str = Field(alias="obfuscatedCode")
    output_hash: str | None = Field(default=None, alias="outputHash")
    file_name: str = Field(alias="fileName")
    chunk_name: str = Field(default="", alias="chunkName")
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))


class CacheDocument(BaseModel):
    """The single persisted unit: chunk key -> entry."""

    chunks: dict[str, CacheEntry] = Field(default_factory=dict)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, indent=2)


class EmittedFile(BaseModel):
    """
    One file in the bundler's output map.

    ``imports`` and ``dynamic_imports`` hold the output filenames of other
    chunks this one references; renames must keep them in sync.
    """

    file_name: str
    kind: Literal["chunk", "asset"] = "chunk"
    code: str = ""
    name: str = ""
    module_ids: tuple[str, ...] = ()
    imports: tuple[str, ...] = ()
    dynamic_imports: tuple[str, ...] = ()

    def descriptor(self) -> ChunkDescriptor:
        return ChunkDescriptor(name=self.name, file_name=self.file_name, module_ids=self.module_ids)


class CacheStats(BaseModel):
    """Hit/miss report for one build."""

    cached: int = Field(default=0, ge=0, description="Chunks served from the cache")
    obfuscated: int = Field(default=0, ge=0, description="Chunks transformed and recorded")
    total: int = Field(default=0, ge=0)
    hit_rate: int = Field(default=0, ge=0, le=100, description="Percent, rounded half-up")

    @property
    def verdict(self) -> str | None:
        """One-line assessment of cache efficiency, if any applies."""
        if self.hit_rate == 100 and self.total > 0:
            return "Perfect cache! All chunks reused."
        if self.hit_rate >= 80:
            return "Excellent cache efficiency!"
        if self.hit_rate >= 50:
            return "Good cache efficiency."
        if self.obfuscated > 0:
            return "Full obfuscation applied (first build or many changes)."
        return None
