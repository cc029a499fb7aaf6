"""Configuration models and loaders."""

from obfucache.core.config.loader import detect_format, load_config, load_obfucache_config
from obfucache.core.config.models import (
    CacheConfig,
    LoggingConfig,
    ModulePolicyConfig,
    NamingConfig,
    ObfucacheConfig,
)

__all__ = [
    "CacheConfig",
    "LoggingConfig",
    "ModulePolicyConfig",
    "NamingConfig",
    "ObfucacheConfig",
    "detect_format",
    "load_config",
    "load_obfucache_config",
]
