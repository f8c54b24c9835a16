"""Build output directory auto-detection."""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path

from sizediff.core.scan import is_asset_file

logger = logging.getLogger("sizediff.autodetect")

COMMON_OUTPUT_DIRS = ("dist", "build", "out", ".next", ".output/public")
MONOREPO_DIRS = ("apps", "packages")

# (config file pattern, output dir, tool label)
TOOL_CONFIGS: tuple[tuple[re.Pattern[str], str, str], ...] = (
    (re.compile(r"^vite\.config\.(js|ts|mjs|cjs)$"), "dist", "vite"),
    (re.compile(r"^webpack\.config\.(js|ts|mjs|cjs)$"), "dist", "webpack"),
    (re.compile(r"^next\.config\.(js|ts|mjs|cjs)$"), ".next", "next"),
    (re.compile(r"^nuxt\.config\.(js|ts|mjs|cjs)$"), ".output/public", "nuxt"),
    (re.compile(r"^svelte\.config\.(js|ts|mjs|cjs)$"), "dist", "svelte"),
    (re.compile(r"^astro\.config\.(js|ts|mjs|cjs)$"), "dist", "astro"),
)


@dataclass(frozen=True)
class OutputPathResult:
    path: str
    mode: str  # "override" | "auto"
    reason: str


def directory_has_assets(directory: Path) -> bool:
    for _dirpath, _dirnames, filenames in os.walk(directory, onerror=_warn_unreadable):
        if any(is_asset_file(n) for n in filenames):
            return True
    return False


def _warn_unreadable(exc: OSError) -> None:
    logger.warning("Skipping unreadable directory %r: %s", exc.filename, exc)


def locate_build_output(
    user_path: str | None,
    repo_root: str | Path = ".",
) -> OutputPathResult | None:
    """Pick the build output directory, honouring an explicit path first."""
    if user_path:
        return OutputPathResult(path=user_path, mode="override", reason="user specified")

    root = Path(repo_root)
    logger.info("No dist-path provided, attempting auto-detection...")

    for name in COMMON_OUTPUT_DIRS:
        if (root / name).is_dir() and directory_has_assets(root / name):
            return OutputPathResult(path=name, mode="auto", reason=f"found existing {name}/ directory")

    root_files = sorted(p.name for p in root.iterdir()) if root.is_dir() else []
    for pattern, candidate, tool in TOOL_CONFIGS:
        if not any(pattern.match(f) for f in root_files):
            continue
        if (root / candidate).is_dir() and directory_has_assets(root / candidate):
            return OutputPathResult(path=candidate, mode="auto", reason=f"detected {tool} project")

    candidates: list[str] = []
    for mono in MONOREPO_DIRS:
        mono_path = root / mono
        if not mono_path.is_dir():
            continue
        for sub in sorted(mono_path.iterdir()):
            if not sub.is_dir():
                continue
            for out in COMMON_OUTPUT_DIRS:
                if (sub / out).is_dir() and directory_has_assets(sub / out):
                    candidates.append(f"{mono}/{sub.name}/{out}")

    if len(candidates) == 1:
        return OutputPathResult(path=candidates[0], mode="auto", reason="found single monorepo output directory")
    if candidates:
        logger.warning(
            "Multiple output directories detected: %s. Please specify dist-path to choose one.",
            ", ".join(candidates),
        )
        return None

    logger.warning(
        "Could not auto-detect output directory. "
        "Please specify dist-path (e.g., dist, build, out)."
    )
    return None
