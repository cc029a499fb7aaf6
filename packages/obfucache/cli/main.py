"""Command-line interface for obfucache.

Inspects, clears and post-processes the artifact cache outside of a build.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path
import sys

from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from obfucache.core.build import build_store, flatten_dist, json_store
from obfucache.core.caching import CacheStore, JsonFileCacheStore
from obfucache.core.config import ObfucacheConfig, load_obfucache_config
from obfucache.core.io import RealFileSystem, absolute_path
from obfucache.core.utils.logging import configure_logging_from_config

console = Console()
logger = logging.getLogger(__name__)


def _load_config(args: argparse.Namespace) -> ObfucacheConfig | None:
    try:
        config = load_obfucache_config(args.config)
    except (FileNotFoundError, ValueError, ValidationError) as e:
        console.print(f"[red]ERROR: Could not load config: {e}[/red]")
        return None
    configure_logging_from_config(config.logging)
    return config


def _open_store(args: argparse.Namespace, config: ObfucacheConfig) -> CacheStore:
    project_root = Path(args.root).resolve()
    store = build_store(config, RealFileSystem(), project_root)
    logger.debug(f"Using {store!r}")
    return store


def render_stats_table(store: CacheStore) -> Table:
    """Table of stored entries, oldest first."""
    table = Table(title=f"Obfuscation cache ({len(store)} chunks)")
    table.add_column("Key", style="cyan", no_wrap=True)
    table.add_column("Chunk")
    table.add_column("File")
    table.add_column("Output hash")
    table.add_column("Modules", justify="right")
    table.add_column("Size (KB)", justify="right")
    table.add_column("Cached at")

    rows = sorted(store.entries(), key=lambda item: item[1].timestamp.isoformat())
    for key, entry in rows:
        table.add_row(
            key[:12],
            entry.chunk_name or "-",
            entry.file_name,
            entry.output_hash or "[yellow]pending[/yellow]",
            str(len(entry.module_hashes)),
            f"{len(entry.obfuscated_code.encode('utf-8')) / 1024:.1f}",
            entry.timestamp.isoformat(timespec="seconds"),
        )
    return table


def cmd_stats(args: argparse.Namespace) -> int:
    """Show what the cache holds."""
    config = _load_config(args)
    if config is None:
        return 1
    if not config.cache.enabled:
        console.print("[yellow]Caching is disabled in the configuration[/yellow]")
        return 0

    store = _open_store(args, config)
    asyncio.run(store.load())

    if len(store) == 0:
        console.print("[yellow]Cache is empty[/yellow]")
        return 0

    console.print(render_stats_table(store))
    total_kb = sum(len(e.obfuscated_code.encode("utf-8")) for _, e in store.entries()) / 1024
    console.print(f"[bold]Total cached code:[/bold] {total_kb:.1f} KB")
    if isinstance(store, JsonFileCacheStore):
        console.print(f"[green]📂 Cache file:[/green] {store.path}")
    return 0


def cmd_clear(args: argparse.Namespace) -> int:
    """Delete the cache document (next build starts from scratch)."""
    config = _load_config(args)
    if config is None:
        return 1

    # Even with caching disabled; a later enabled build would load it again
    store = json_store(config, RealFileSystem(), Path(args.root).resolve())
    try:
        asyncio.run(store.clear())
    except OSError as e:
        console.print(f"[red]ERROR: Failed to clear cache: {e}[/red]")
        return 1

    console.print(f"[green]🗑️  Cleared obfuscation cache:[/green] {store.path}")
    return 0


def cmd_flatten(args: argparse.Namespace) -> int:
    """Move page output into the deployed layout."""
    dist = Path(args.dist).resolve()
    if not dist.is_dir():
        console.print(f"[red]ERROR: Output directory not found: {dist}[/red]")
        return 1

    console.print("[bold]Starting post-build cleanup...[/bold]")
    try:
        report = asyncio.run(flatten_dist(RealFileSystem(), absolute_path(dist)))
    except OSError as e:
        console.print(f"[red]ERROR: Post-build cleanup failed: {e}[/red]")
        return 1

    console.print(
        f"[green]✅ Post-build cleanup complete:[/green] "
        f"{len(report.pages)} pages, {report.files_copied} files copied"
    )
    return 0


def build_arg_parser() -> argparse.ArgumentParser:
    """Build argument parser for CLI."""
    p = argparse.ArgumentParser(
        prog="obfucache",
        description="obfucache - content-addressed cache for obfuscated build chunks",
    )
    sub = p.add_subparsers(dest="cmd", required=True)

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--config",
        default=None,
        help="Path to config file (.json/.yaml; default: obfucache.yaml if present)",
    )
    common.add_argument("--root", default=".", help="Project root (default: current dir)")

    stats = sub.add_parser("stats", parents=[common], help="Show cached chunks")
    stats.set_defaults(func=cmd_stats)

    clear = sub.add_parser("clear", parents=[common], help="Delete the cache")
    clear.set_defaults(func=cmd_clear)

    flatten = sub.add_parser("flatten", help="Flatten multi-page build output")
    flatten.add_argument("dist", nargs="?", default="dist", help="Build output directory")
    flatten.set_defaults(func=cmd_flatten)

    return p


def main(argv: list[str] | None = None) -> None:
    """Main entry point for CLI."""
    p = build_arg_parser()
    args = p.parse_args(argv)
    sys.exit(args.func(args))
