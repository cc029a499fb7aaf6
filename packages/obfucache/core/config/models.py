"""Configuration models for obfucache."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from obfucache.core.caching.policy import ThirdPartyPatternPolicy
from obfucache.core.caching.reconciler import DEFAULT_HASH_PATTERN


class CacheConfig(BaseModel):
    """Where and whether the artifact cache is persisted."""

    enabled: bool = Field(default=True, description="Use the cache in production builds")
    directory: str = Field(
        default=".vite-cache", description="Cache directory (relative to project root)"
    )
    file_name: str = Field(default="obfuscation-cache.json", description="Cache document name")


class NamingConfig(BaseModel):
    """How chunk files are recognized and where their hash lives."""

    chunk_extension: str = Field(
        default=".js", description="Only chunks with this extension are transformed"
    )
    hash_pattern: str = Field(
        default=DEFAULT_HASH_PATTERN,
        description="Regex with a named group 'hash' locating the hash in a chunk filename",
    )


class ModulePolicyConfig(BaseModel):
    """Which modules take part in chunk keys."""

    third_party_markers: list[str] = Field(
        default_factory=lambda: ["node_modules"],
        description="Path segments that mark a module as third-party",
    )
    include_third_party: list[str] = Field(
        default_factory=list,
        description="fnmatch patterns of third-party package names to fingerprint anyway",
    )

    def build_policy(self) -> ThirdPartyPatternPolicy:
        return ThirdPartyPatternPolicy(
            include_patterns=self.include_third_party,
            markers=self.third_party_markers,
        )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Logging level",
    )
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log format string",
    )
    structured: bool = Field(default=False, description="Emit JSON lines instead of text")
    filename: str | None = Field(default=None, description="Log file (stdout if unset)")


class ObfucacheConfig(BaseModel):
    """
    Top-level configuration.

    Example:
        >>> config = ObfucacheConfig.model_validate(
        ...     {"modules": {"include_third_party": ["react", "react-dom"]}}
        ... )
        >>> config.is_production
        True
    """

    model_config = ConfigDict(extra="forbid")

    mode: Literal["production", "development"] = Field(
        default="production",
        description="Caching and obfuscation only run in production mode",
    )
    cache: CacheConfig = Field(default_factory=CacheConfig)
    naming: NamingConfig = Field(default_factory=NamingConfig)
    modules: ModulePolicyConfig = Field(default_factory=ModulePolicyConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    transform_options: dict[str, Any] = Field(
        default_factory=dict,
        description="Options passed verbatim to the transform (must be deterministic, e.g. fixed seed)",
    )

    @property
    def is_production(self) -> bool:
        return self.mode == "production"

    @property
    def caching_active(self) -> bool:
        return self.is_production and self.cache.enabled
