"""In-memory filesystem for fast, isolated testing.

Async operations complete immediately but keep the async interface.
"""

from pathlib import Path

from .models import AbsolutePath, WriteResult


class FakeFileSystem:
    """
    In-memory async filesystem for testing.

    Set ``fail_writes`` to make every ``write_text`` raise ``OSError``,
    which simulates a full disk or read-only cache directory.
    Not thread-safe (use per-test instance).
    """

    def __init__(self, fail_writes: bool = False) -> None:
        self._files: dict[str, str] = {}
        self._dirs: set[str] = {"/"}
        self.fail_writes = fail_writes
        self.write_count = 0

    def join(self, base: AbsolutePath, *parts: str) -> AbsolutePath:
        result = Path(base).joinpath(*parts)
        if not result.is_absolute():
            result = Path("/") / result
        return AbsolutePath(result)

    async def exists(self, path: AbsolutePath) -> bool:
        path_str = str(Path(path))
        return path_str in self._files or path_str in self._dirs

    async def is_dir(self, path: AbsolutePath) -> bool:
        return str(Path(path)) in self._dirs

    async def read_text(self, path: AbsolutePath, encoding: str = "utf-8") -> str:
        path_str = str(Path(path))
        if path_str not in self._files:
            raise FileNotFoundError(f"File not found: {path}")
        return self._files[path_str]

    async def write_text(
        self,
        path: AbsolutePath,
        content: str,
        encoding: str = "utf-8",
    ) -> WriteResult:
        if self.fail_writes:
            raise OSError(f"Simulated write failure: {path}")

        path_obj = Path(path)
        self._ensure_dirs(path_obj.parent)
        self._files[str(path_obj)] = content
        self.write_count += 1

        return WriteResult(
            path=str(path_obj),
            bytes_written=len(content.encode(encoding)),
            duration_ms=0.0,
        )

    def _ensure_dirs(self, path: Path) -> None:
        parts = path.parts
        for i in range(1, len(parts) + 1):
            self._dirs.add(str(Path(*parts[:i])))

    async def mkdirs(self, path: AbsolutePath, exist_ok: bool = True) -> None:
        path_str = str(Path(path))
        if not exist_ok and path_str in self._dirs:
            raise FileExistsError(f"Directory exists: {path}")
        self._ensure_dirs(Path(path))

    async def listdir(self, path: AbsolutePath) -> list[str]:
        parent = Path(path)
        if str(parent) not in self._dirs:
            raise FileNotFoundError(f"Directory not found: {path}")

        children = {Path(p).name for p in self._files if Path(p).parent == parent}
        children.update(Path(d).name for d in self._dirs if d != "/" and Path(d).parent == parent)
        return sorted(children)

    async def copy_file(self, src: AbsolutePath, dest: AbsolutePath) -> None:
        content = await self.read_text(src)
        self._ensure_dirs(Path(dest).parent)
        self._files[str(Path(dest))] = content

    async def remove(self, path: AbsolutePath) -> None:
        path_str = str(Path(path))
        if path_str not in self._files:
            raise FileNotFoundError(f"File not found: {path}")
        del self._files[path_str]

    async def rmtree(self, path: AbsolutePath) -> None:
        path_str = str(Path(path))
        if path_str not in self._dirs:
            raise FileNotFoundError(f"Directory not found: {path}")

        prefix = path_str.rstrip("/") + "/"
        for p in [p for p in self._files if p.startswith(prefix)]:
            del self._files[p]
        for d in [d for d in self._dirs if d.startswith(prefix)]:
            self._dirs.discard(d)
        self._dirs.discard(path_str)
