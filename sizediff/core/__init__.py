"""Core subpackage: records, diffing, configuration, scanning, build."""

from __future__ import annotations

__all__ = [
    "CheckSettings",
    "DiffResult",
    "FileEntry",
    "MeasurementRecord",
    "RetryPolicy",
    "RunContext",
    "TopChange",
    "diff_bundles",
    "scan_directory",
    "select_compare_metric",
    "with_retry",
]

from sizediff.core.config import CheckSettings
from sizediff.core.context import RunContext
from sizediff.core.diff import DiffResult, TopChange, diff_bundles, select_compare_metric
from sizediff.core.retry import RetryPolicy, with_retry
from sizediff.core.scan import scan_directory
from sizediff.core.stats import FileEntry, MeasurementRecord
