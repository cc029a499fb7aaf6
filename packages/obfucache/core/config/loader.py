"""Configuration loading utilities with JSON and YAML support."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml

from obfucache.core.config.models import ObfucacheConfig
from obfucache.core.utils.json import read_json

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("obfucache.yaml")

ENV_MODE = "OBFUCACHE_MODE"
ENV_CACHE_DIR = "OBFUCACHE_CACHE_DIR"


def detect_format(file_path: Path | str) -> str:
    """Detect config file format from extension.

    Args:
        file_path: Path to config file

    Returns:
        Format string: "json" or "yaml"

    Raises:
        ValueError: If format cannot be determined

    Example:
        >>> detect_format("obfucache.json")
        'json'
        >>> detect_format("obfucache.yml")
        'yaml'
    """
    suffix = Path(file_path).suffix.lower()

    if suffix == ".json":
        return "json"
    elif suffix in [".yaml", ".yml"]:
        return "yaml"
    else:
        raise ValueError(f"Unsupported config format: {suffix}")


def load_config(path: str | Path) -> dict[str, Any]:
    """Load and return a raw configuration dictionary.

    Args:
        path: Path to config file (.json, .yaml, or .yml)

    Returns:
        Raw configuration dictionary

    Raises:
        FileNotFoundError: If config file does not exist
        ValueError: If format is not supported or file content is invalid
    """
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Config file does not exist: {path}")

    fmt = detect_format(path)

    if fmt == "json":
        try:
            return read_json(path)
        except ValueError as e:
            raise ValueError(f"Invalid JSON in {path}: {e}") from e

    try:
        with path.open("r", encoding="utf-8") as f:
            content = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {path}: {e}") from e

    # safe_load returns None for empty files
    if content is None:
        return {}
    if not isinstance(content, dict):
        raise ValueError(f"Expected a mapping in {path}, got {type(content).__name__}")
    return content


def load_obfucache_config(path: str | Path | None = None) -> ObfucacheConfig:
    """Load and validate configuration, applying environment overrides.

    A missing file at the default path means all defaults; an explicitly given
    path must exist.

    Args:
        path: Config file path (defaults to obfucache.yaml in cwd)

    Returns:
        Validated ObfucacheConfig

    Raises:
        FileNotFoundError: If an explicit path does not exist
        ValidationError: If config is invalid
    """
    if path is None and not DEFAULT_CONFIG_PATH.exists():
        logger.debug(f"No {DEFAULT_CONFIG_PATH}, using default configuration")
        config = ObfucacheConfig()
    else:
        raw_config = load_config(path or DEFAULT_CONFIG_PATH)
        config = ObfucacheConfig.model_validate(raw_config)

    return _apply_env_overrides(config)


def _apply_env_overrides(config: ObfucacheConfig) -> ObfucacheConfig:
    """Apply OBFUCACHE_* environment variables on top of file values."""
    mode = os.getenv(ENV_MODE)
    cache_dir = os.getenv(ENV_CACHE_DIR)
    if not mode and not cache_dir:
        return config

    data = config.model_dump()
    if mode:
        logger.debug(f"Mode overridden from {ENV_MODE}: {mode}")
        data["mode"] = mode
    if cache_dir:
        logger.debug(f"Cache directory overridden from {ENV_CACHE_DIR}: {cache_dir}")
        data["cache"]["directory"] = cache_dir

    # Re-validate so a bad OBFUCACHE_MODE is rejected like a bad file value
    return ObfucacheConfig.model_validate(data)
