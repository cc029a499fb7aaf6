"""Filesystem abstraction layer for obfucache.

Async-first operations with atomic writes.

Example (async):
    >>> from obfucache.core.io import RealFileSystem, absolute_path
    >>> fs = RealFileSystem()
    >>> path = fs.join(absolute_path(".vite-cache"), "obfuscation-cache.json")
    >>> await fs.write_text(path, '{"chunks": {}}')
"""

from .impl_fake import FakeFileSystem
from .impl_real import RealFileSystem
from .models import AbsolutePath, WriteResult, absolute_path
from .protocols import FileSystem

__all__ = [
    "AbsolutePath",
    "absolute_path",
    "WriteResult",
    "FileSystem",
    "RealFileSystem",
    "FakeFileSystem",
]
