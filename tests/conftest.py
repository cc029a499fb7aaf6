"""Shared pytest fixtures for obfucache tests."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from obfucache.core.caching import ChunkDescriptor, JsonFileCacheStore
from obfucache.core.io import AbsolutePath, FakeFileSystem, absolute_path

# ============================================================================
# Filesystem Fixtures
# ============================================================================


@pytest.fixture
def fs() -> FakeFileSystem:
    """Provide fresh FakeFileSystem instance."""
    return FakeFileSystem()


@pytest.fixture
def cache_root() -> AbsolutePath:
    """Cache directory inside the fake filesystem."""
    return absolute_path("/project/.vite-cache")


@pytest.fixture
def store(fs: FakeFileSystem, cache_root: AbsolutePath) -> JsonFileCacheStore:
    """Provide a JSON store on the fake filesystem (not yet loaded)."""
    return JsonFileCacheStore(fs, cache_root)


@pytest.fixture
def fixtures_dir() -> Path:
    """Get test fixtures directory."""
    return Path(__file__).parent / "fixtures"


# ============================================================================
# Build Fixtures
# ============================================================================


def fake_obfuscate(code: str, options: dict[str, Any]) -> str:
    """Deterministic stand-in for the obfuscator."""
    return f"/*obf seed={options.get('seed', 0)}*/" + code[::-1]


@pytest.fixture
def obfuscate() -> Callable[[str, dict[str, Any]], str]:
    return fake_obfuscate


@pytest.fixture
def make_chunk() -> Callable[..., ChunkDescriptor]:
    """Factory for chunk descriptors."""

    def _make(
        *module_ids: str,
        file_name: str = "static/js/main.AAAA1111.js",
        name: str = "main",
    ) -> ChunkDescriptor:
        return ChunkDescriptor(name=name, file_name=file_name, module_ids=module_ids)

    return _make
