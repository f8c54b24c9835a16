"""Size diff and threshold engine.

:func:`diff_bundles` is a pure function of (baseline, current,
configuration): it never touches the network or the filesystem and always
returns a :class:`DiffResult`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

from sizediff.core.stats import MeasurementRecord
from sizediff.core.units import bytes_to_kb, format_signed_bytes, kb_to_bytes

CompareMetric = Literal["brotli", "gzip", "size"]
Status = Literal["pass", "fail", "no-baseline", "baseline-updated"]
ThresholdStatus = Literal["ok", "warn", "fail"]

DEFAULT_TOP_N = 5


@dataclass(frozen=True)
class TopChange:
    """Per-file delta in the compare metric."""

    file: str
    before: int
    after: int

    @property
    def diff(self) -> int:
        return self.after - self.before

    def to_dict(self) -> dict[str, Any]:
        return {"file": self.file, "before": self.before, "after": self.after, "diff": self.diff}


@dataclass
class DiffResult:
    """Structured comparison of a current measurement against a baseline."""

    baseline: MeasurementRecord | None
    current: MeasurementRecord
    compare_metric: CompareMetric
    status: Status
    diff_size: int = 0
    diff_gzip: int = 0
    diff_brotli: int = 0
    diff_metric: int = 0
    diff_percent: float = 0.0
    diff_percent_size: float = 0.0
    diff_percent_gzip: float = 0.0
    diff_percent_brotli: float = 0.0
    top_changes: list[TopChange] = field(default_factory=list)
    worst_delta_kb: float = 0.0
    threshold_status: ThresholdStatus = "ok"
    threshold_message: str | None = None
    budget_max_increase_kb: float | None = None
    warn_above_kb: float | None = None
    fail_above_kb: float | None = None

    @property
    def budget_exceeded(self) -> bool:
        if self.baseline is None or self.budget_max_increase_kb is None:
            return False
        return self.diff_metric > kb_to_bytes(self.budget_max_increase_kb)

    def failure_message(self) -> str | None:
        """Operator-facing reason for a ``fail`` status, else ``None``."""
        if self.status != "fail":
            return None
        if self.threshold_status == "fail" and self.threshold_message:
            return self.threshold_message
        return (
            f"Bundle size budget exceeded: {self.compare_metric} grew by "
            f"{format_signed_bytes(self.diff_metric)} "
            f"(budget {self.budget_max_increase_kb:g} KB)"
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dictionary."""
        return {
            "baseline": self.baseline.to_dict() if self.baseline is not None else None,
            "current": self.current.to_dict(),
            "diffSize": self.diff_size,
            "diffGzip": self.diff_gzip,
            "diffBrotli": self.diff_brotli,
            "diffMetric": self.diff_metric,
            "diffPercent": self.diff_percent,
            "diffPercentSize": self.diff_percent_size,
            "diffPercentGzip": self.diff_percent_gzip,
            "diffPercentBrotli": self.diff_percent_brotli,
            "topChanges": [c.to_dict() for c in self.top_changes],
            "compareMetric": self.compare_metric,
            "status": self.status,
            "worstDeltaKb": self.worst_delta_kb,
            "thresholdStatus": self.threshold_status,
            "thresholdMessage": self.threshold_message,
            "budgetMaxIncreaseKb": self.budget_max_increase_kb,
            "warnAboveKb": self.warn_above_kb,
            "failAboveKb": self.fail_above_kb,
        }


def select_compare_metric(gzip: bool, brotli: bool) -> CompareMetric:
    """Brotli if enabled, else gzip if enabled, else raw size."""
    if brotli:
        return "brotli"
    if gzip:
        return "gzip"
    return "size"


def percent_change(delta: float, baseline_total: float) -> float:
    """Percent change; 0 when the baseline total is 0 (not "unchanged")."""
    if baseline_total == 0:
        return 0.0
    return (delta / baseline_total) * 100


def rank_top_changes(
    baseline: MeasurementRecord,
    current: MeasurementRecord,
    metric: CompareMetric,
    top_n: int = DEFAULT_TOP_N,
) -> list[TopChange]:
    """Files with the largest absolute delta, path-ascending on ties.

    Files present on one side only count as 0 on the other side.
    Unchanged files are left out.
    """
    before_map = baseline.file_map()
    after_map = current.file_map()
    changes: list[TopChange] = []
    for path in set(before_map) | set(after_map):
        before = before_map[path].metric(metric) if path in before_map else 0
        after = after_map[path].metric(metric) if path in after_map else 0
        if before != after:
            changes.append(TopChange(file=path, before=before, after=after))
    changes.sort(key=lambda c: (-abs(c.diff), c.file))
    return changes[:top_n]


def evaluate_file_thresholds(
    top_changes: list[TopChange],
    warn_above_kb: float | None,
    fail_above_kb: float | None,
) -> tuple[ThresholdStatus, str | None]:
    """Check the single largest-magnitude file delta against warn/fail limits.

    Only ``top_changes[0]`` is judged, and its delta is compared signed. When
    that file shrank, no other file is checked, so a large removal can hide a
    growth elsewhere that would otherwise warn or fail.
    """
    if not top_changes or (warn_above_kb is None and fail_above_kb is None):
        return "ok", None
    worst = top_changes[0]
    if fail_above_kb is not None and worst.diff > kb_to_bytes(fail_above_kb):
        return "fail", (
            f"{worst.file} changed by {format_signed_bytes(worst.diff)}, "
            f"above the fail threshold of {fail_above_kb:g} KB"
        )
    if warn_above_kb is not None and worst.diff > kb_to_bytes(warn_above_kb):
        return "warn", (
            f"{worst.file} changed by {format_signed_bytes(worst.diff)}, "
            f"above the warn threshold of {warn_above_kb:g} KB"
        )
    return "ok", None


def _compare(
    baseline: MeasurementRecord,
    current: MeasurementRecord,
    metric: CompareMetric,
    top_n: int,
) -> dict[str, Any]:
    diff_size = current.total_size - baseline.total_size
    diff_gzip = current.total_gzip - baseline.total_gzip
    diff_brotli = current.total_brotli - baseline.total_brotli
    deltas = {"size": diff_size, "gzip": diff_gzip, "brotli": diff_brotli}
    top_changes = rank_top_changes(baseline, current, metric, top_n)
    return {
        "diff_size": diff_size,
        "diff_gzip": diff_gzip,
        "diff_brotli": diff_brotli,
        "diff_metric": deltas[metric],
        "diff_percent": percent_change(deltas[metric], baseline.total(metric)),
        "diff_percent_size": percent_change(diff_size, baseline.total_size),
        "diff_percent_gzip": percent_change(diff_gzip, baseline.total_gzip),
        "diff_percent_brotli": percent_change(diff_brotli, baseline.total_brotli),
        "top_changes": top_changes,
        "worst_delta_kb": bytes_to_kb(top_changes[0].diff) if top_changes else 0.0,
    }


def diff_bundles(
    baseline: MeasurementRecord | None,
    current: MeasurementRecord,
    budget_max_increase_kb: float | None = None,
    warn_above_kb: float | None = None,
    fail_above_kb: float | None = None,
    gzip: bool = True,
    brotli: bool = True,
    top_n: int = DEFAULT_TOP_N,
) -> DiffResult:
    """Compare *current* against *baseline* and apply budget/thresholds.

    Parameters:
        baseline: Previous measurement, or ``None`` on a first run.
        current: This build's measurement.
        budget_max_increase_kb: Maximum aggregate growth of the compare metric.
        warn_above_kb: Warn when the worst file delta exceeds this.
        fail_above_kb: Fail when the worst file delta exceeds this.
        gzip: Whether gzip sizes were measured.
        brotli: Whether brotli sizes were measured.
        top_n: Number of per-file changes to keep.

    Returns:
        A :class:`DiffResult` with status ``no-baseline``, ``pass`` or ``fail``.
    """
    metric = select_compare_metric(gzip, brotli)
    config = {
        "budget_max_increase_kb": budget_max_increase_kb,
        "warn_above_kb": warn_above_kb,
        "fail_above_kb": fail_above_kb,
    }
    if baseline is None:
        return DiffResult(baseline=None, current=current, compare_metric=metric, status="no-baseline", **config)

    numbers = _compare(baseline, current, metric, top_n)
    threshold_status, threshold_message = evaluate_file_thresholds(
        numbers["top_changes"], warn_above_kb, fail_above_kb
    )
    result = DiffResult(
        baseline=baseline,
        current=current,
        compare_metric=metric,
        status="pass",
        threshold_status=threshold_status,
        threshold_message=threshold_message,
        **numbers,
        **config,
    )
    if result.budget_exceeded or threshold_status == "fail":
        result.status = "fail"
    return result


def mark_baseline_updated(
    current: MeasurementRecord,
    baseline: MeasurementRecord | None = None,
    gzip: bool = True,
    brotli: bool = True,
    top_n: int = DEFAULT_TOP_N,
) -> DiffResult:
    """Result for a trunk build whose output just became the new baseline.

    Numbers are still reported against the previous baseline when there is
    one, but no budget or threshold is evaluated.
    """
    metric = select_compare_metric(gzip, brotli)
    numbers = _compare(baseline, current, metric, top_n) if baseline is not None else {}
    return DiffResult(
        baseline=baseline,
        current=current,
        compare_metric=metric,
        status="baseline-updated",
        **numbers,
    )
