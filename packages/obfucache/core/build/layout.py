"""Post-build output layout for multi-page builds.

Pages are built from ``src/pages/<page>/index.html``, so the bundler mirrors
that tree under the output directory. Deployment wants ``index.html`` at the
root and every other page at ``<page>/index.html``.
"""

from __future__ import annotations

import logging
from pathlib import PurePosixPath

from pydantic import BaseModel, Field

from obfucache.core.caching.models import EmittedFile
from obfucache.core.io import AbsolutePath, FileSystem

logger = logging.getLogger(__name__)

PAGES_DIR = ("src", "pages")
INDEX_PAGE = "index"


class FlattenReport(BaseModel):
    """What ``flatten_dist`` copied and removed."""

    pages: list[str] = Field(default_factory=list, description="Pages moved out of src/pages")
    files_copied: int = 0
    removed: list[str] = Field(default_factory=list, description="Directories deleted")


def flatten_html_name(file_name: str) -> str:
    """
    Map a page's emitted HTML path to its deployed path.

    Example:
        >>> flatten_html_name("src/pages/index/index.html")
        'index.html'
        >>> flatten_html_name("src/pages/dashboard/index.html")
        'dashboard/index.html'
        >>> flatten_html_name("static/other.html")
        'static/other.html'
    """
    parts = PurePosixPath(file_name).parts
    if len(parts) < 4 or parts[:2] != PAGES_DIR or not file_name.endswith(".html"):
        return file_name

    page, rest = parts[2], parts[3:]
    if page == INDEX_PAGE:
        return str(PurePosixPath(*rest))
    return str(PurePosixPath(page, *rest))


class HtmlOutputPlugin:
    """Bundler hook that moves page HTML assets to their deployed paths."""

    name = "html-output"

    def generate_bundle(self, bundle: dict[str, EmittedFile]) -> dict[str, EmittedFile]:
        result: dict[str, EmittedFile] = {}
        for file_name, output in bundle.items():
            new_name = flatten_html_name(file_name) if output.kind == "asset" else file_name
            if new_name in result or (new_name != file_name and new_name in bundle):
                logger.error(f"Not moving {file_name}: {new_name} already exists")
                new_name = file_name
            result[new_name] = output.model_copy(update={"file_name": new_name})
        return result


async def _copy_tree(fs: FileSystem, src: AbsolutePath, dest: AbsolutePath) -> int:
    """Recursively copy ``src`` into ``dest``; returns the number of files copied."""
    await fs.mkdirs(dest, exist_ok=True)
    copied = 0
    for name in await fs.listdir(src):
        src_child = fs.join(src, name)
        dest_child = fs.join(dest, name)
        if await fs.is_dir(src_child):
            copied += await _copy_tree(fs, src_child, dest_child)
        else:
            await fs.copy_file(src_child, dest_child)
            copied += 1
    return copied


async def flatten_dist(fs: FileSystem, dist: AbsolutePath) -> FlattenReport:
    """
    Flatten ``dist/src/pages`` and ``dist/index`` into the deployed layout.

    1. ``dist/src/pages/index/*`` -> ``dist/``; ``dist/src/pages/<page>/`` -> ``dist/<page>/``
    2. ``dist/index/*`` -> ``dist/``
    3. remove ``dist/src`` and ``dist/index``

    Missing directories are skipped.
    """
    report = FlattenReport()

    pages_path = fs.join(dist, *PAGES_DIR)
    if await fs.is_dir(pages_path):
        for page in await fs.listdir(pages_path):
            page_path = fs.join(pages_path, page)
            if not await fs.is_dir(page_path):
                continue
            target = dist if page == INDEX_PAGE else fs.join(dist, page)
            report.files_copied += await _copy_tree(fs, page_path, target)
            report.pages.append(page)
            logger.info(f"Copied {page}/ to {'dist/' if page == INDEX_PAGE else f'dist/{page}/'}")
    else:
        logger.info("No dist/src/pages/ directory found, skipping")

    index_path = fs.join(dist, INDEX_PAGE)
    if await fs.is_dir(index_path):
        report.files_copied += await _copy_tree(fs, index_path, dist)
        logger.info("Moved dist/index/* to dist/")
    else:
        logger.info("No dist/index/ directory found, skipping")

    for name in (PAGES_DIR[0], INDEX_PAGE):
        path = fs.join(dist, name)
        if await fs.is_dir(path):
            await fs.rmtree(path)
            report.removed.append(name)
            logger.info(f"Removed dist/{name}/")

    return report
