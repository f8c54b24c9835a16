"""sizediff: build-output size tracking and budget gating for CI."""

from __future__ import annotations

__version__ = "0.1.0"

#: Name of the artifact that carries the baseline record.
ARTIFACT_NAME: str = "bundle-stats"

#: File name of the record inside the artifact.
STATS_FILE: str = "bundle-stats.json"

from sizediff.api import run_check
from sizediff.core.diff import DiffResult, diff_bundles
from sizediff.core.stats import FileEntry, MeasurementRecord

__all__ = [
    "__version__",
    "ARTIFACT_NAME",
    "STATS_FILE",
    "run_check",
    "diff_bundles",
    "DiffResult",
    "FileEntry",
    "MeasurementRecord",
]
