"""Models for the filesystem layer.

Provides the absolute path wrapper and write result type.
"""

from pathlib import Path
from typing import NewType

from pydantic import BaseModel, Field

AbsolutePath = NewType("AbsolutePath", Path)


def absolute_path(path: str | Path) -> AbsolutePath:
    """
    Resolve a path and mark it absolute.

    Args:
        path: String or Path object (relative paths resolve against cwd)

    Returns:
        AbsolutePath instance

    Example:
        >>> p = absolute_path(".vite-cache")
        >>> assert Path(p).is_absolute()
    """
    return AbsolutePath(Path(path).resolve())


class WriteResult(BaseModel):
    """Outcome of an atomic text write."""

    path: str = Field(description="Final path written")
    bytes_written: int = Field(description="Encoded size in bytes", ge=0)
    duration_ms: float = Field(description="Write duration in milliseconds", ge=0.0)

    @property
    def size_kb(self) -> int:
        """Size rounded to whole kilobytes."""
        return round(self.bytes_written / 1024)
