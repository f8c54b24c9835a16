"""Directory walker and compression measurer."""

from __future__ import annotations

import gzip
import logging
import os
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import brotli

from sizediff.core.errors import ConfigError
from sizediff.core.stats import FileEntry, MeasurementRecord

logger = logging.getLogger("sizediff.scan")

#: Extensions counted as build assets.
ASSET_EXTENSIONS = frozenset({".js", ".mjs", ".cjs", ".css", ".html", ".wasm"})

MAX_WORKERS = 4
GZIP_LEVEL = 6


def is_asset_file(name: str) -> bool:
    return Path(name).suffix.lower() in ASSET_EXTENSIONS


def gzip_size(data: bytes) -> int:
    return len(gzip.compress(data, compresslevel=GZIP_LEVEL))


def brotli_size(data: bytes) -> int:
    return len(brotli.compress(data))


def walk_assets(root: Path) -> list[Path]:
    """Asset files under *root* in sorted walk order."""
    found: list[Path] = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames.sort()
        for name in sorted(filenames):
            full = Path(dirpath) / name
            if full.is_file() and is_asset_file(name):
                found.append(full)
    return found


def _measure(path: Path, root: Path, use_gzip: bool, use_brotli: bool) -> FileEntry:
    data = path.read_bytes()
    return FileEntry(
        path=path.relative_to(root).as_posix(),
        name=path.name,
        size=len(data),
        gzip=gzip_size(data) if use_gzip else 0,
        brotli=brotli_size(data) if use_brotli else 0,
    )


def scan_directory(
    dist_path: str | Path,
    use_gzip: bool = True,
    use_brotli: bool = True,
    commit: str = "unknown",
    max_workers: int = MAX_WORKERS,
) -> MeasurementRecord:
    """Measure every asset under *dist_path*.

    Compression runs on a small thread pool; results keep walk order.

    Raises:
        ConfigError: If *dist_path* is not a directory.
    """
    root = Path(dist_path)
    if not root.is_dir():
        raise ConfigError(f"Build output directory not found: {dist_path}")

    paths = walk_assets(root)
    workers = max(1, min(max_workers, len(paths)))
    logger.debug("Measuring %d files with %d workers", len(paths), workers)
    with ThreadPoolExecutor(max_workers=workers) as pool:
        entries = list(pool.map(lambda p: _measure(p, root, use_gzip, use_brotli), paths))

    return MeasurementRecord.from_files(entries, commit=commit)
