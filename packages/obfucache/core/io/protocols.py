"""Protocol for filesystem operations used by the cache and output layout."""

from typing import Protocol

from .models import AbsolutePath, WriteResult


class FileSystem(Protocol):
    """
    Async filesystem operations.

    Implementations must make ``write_text`` atomic: readers either see the
    previous content or the complete new content, never a partial write.
    """

    def join(self, base: AbsolutePath, *parts: str) -> AbsolutePath:
        """Join path components (no I/O)."""
        ...

    async def exists(self, path: AbsolutePath) -> bool:
        """Check if path exists (file or directory)."""
        ...

    async def is_dir(self, path: AbsolutePath) -> bool:
        """Check if path exists and is a directory."""
        ...

    async def read_text(self, path: AbsolutePath, encoding: str = "utf-8") -> str:
        """
        Read a text file.

        Raises:
            FileNotFoundError: If file doesn't exist
        """
        ...

    async def write_text(
        self,
        path: AbsolutePath,
        content: str,
        encoding: str = "utf-8",
    ) -> WriteResult:
        """
        Atomically write text, creating parent directories.

        Raises:
            OSError: On write failure
        """
        ...

    async def mkdirs(self, path: AbsolutePath, exist_ok: bool = True) -> None:
        """Create directory and all parents."""
        ...

    async def listdir(self, path: AbsolutePath) -> list[str]:
        """
        List entry names of a directory, sorted.

        Raises:
            FileNotFoundError: If directory doesn't exist
        """
        ...

    async def copy_file(self, src: AbsolutePath, dest: AbsolutePath) -> None:
        """Copy a single file, creating the destination's parents."""
        ...

    async def remove(self, path: AbsolutePath) -> None:
        """
        Remove a file.

        Raises:
            FileNotFoundError: If file doesn't exist
        """
        ...

    async def rmtree(self, path: AbsolutePath) -> None:
        """Remove a directory and everything below it."""
        ...
