"""Markdown rendering for PR comments and job summaries."""

from __future__ import annotations

from sizediff.core.diff import DiffResult, percent_change
from sizediff.core.stats import MeasurementRecord
from sizediff.core.units import format_bytes, format_percent, format_signed_bytes, kb_to_bytes

COMMENT_MARKER = "<!-- build-size-diff -->"

STATUS_BADGES = {
    "pass": ":white_check_mark: PASS",
    "fail": ":x: FAIL",
    "no-baseline": ":information_source: NO BASELINE",
    "baseline-updated": ":white_check_mark: UPDATED",
}


def change_emoji(value: float) -> str:
    if value > 0:
        return ":arrow_up_small:"
    if value < 0:
        return ":arrow_down_small:"
    return ":white_circle:"


def _diff_cell(value: int) -> str:
    return f"{format_signed_bytes(value)} {change_emoji(value)}"


def _totals_row(record: MeasurementRecord) -> str:
    return (
        f"| **Total** | {format_bytes(record.total_size)} | "
        f"{format_bytes(record.total_gzip)} | {format_bytes(record.total_brotli)} |"
    )


def build_comment_markdown(diff: DiffResult) -> str:
    """Render the PR comment body for *diff*."""
    lines = [
        COMMENT_MARKER,
        f"## Bundle Size Report {STATUS_BADGES[diff.status]}",
        "",
        "| Metric | Size | Gzip | Brotli |",
        "|--------|------|------|--------|",
        _totals_row(diff.current),
    ]
    if diff.baseline is not None:
        lines.append(
            f"| **Diff** | {_diff_cell(diff.diff_size)} | {_diff_cell(diff.diff_gzip)} | "
            f"{_diff_cell(diff.diff_brotli)} |"
        )
        lines.append(
            f"| **Change** | {format_percent(diff.diff_percent_size)} | "
            f"{format_percent(diff.diff_percent_gzip)} | {format_percent(diff.diff_percent_brotli)} |"
        )

    if diff.budget_max_increase_kb is not None:
        budget_bytes = kb_to_bytes(diff.budget_max_increase_kb)
        mark = ":x:" if diff.budget_exceeded else ":white_check_mark:"
        cells = [
            f"{format_bytes(budget_bytes)} {mark}" if diff.compare_metric == metric else "-"
            for metric in ("size", "gzip", "brotli")
        ]
        lines.append(f"| **Budget Limit** | {' | '.join(cells)} |")

    if diff.top_changes:
        lines.extend([
            "",
            "### Top Changes",
            "",
            "| File | Before | After | Diff |",
            "|------|--------|-------|------|",
        ])
        for change in diff.top_changes:
            lines.append(
                f"| `{change.file}` | {format_bytes(change.before)} | "
                f"{format_bytes(change.after)} | {_diff_cell(change.diff)} |"
            )

    if diff.threshold_message:
        label = ":x: FAIL" if diff.threshold_status == "fail" else ":warning: WARN"
        lines.extend(["", f"> {label} **Threshold:** {diff.threshold_message}"])

    if diff.budget_exceeded and diff.status == "fail":
        lines.extend([
            "",
            "> :warning: WARN **Budget exceeded!** Bundle size increased more than the allowed limit.",
        ])

    if diff.status == "no-baseline":
        lines.extend([
            "",
            "> :information_source: INFO **No baseline found.** Push to main branch first "
            "to create a baseline. Future PRs will show comparisons.",
        ])

    lines.extend(["", f"<sub>Generated by build-size-diff Commit: {diff.current.commit[:7]}</sub>"])
    return "\n".join(lines)


def build_job_summary(
    current: MeasurementRecord,
    baseline: MeasurementRecord | None,
    baseline_updated: bool = True,
) -> str:
    """Render the job summary table for *current*, against *baseline* if any."""
    lines = ["## Bundle Size Report", ""]
    if baseline is None:
        if baseline_updated:
            lines.extend([f"Baseline created for commit {current.commit[:7]}", ""])
        else:
            lines.extend(["No baseline found for comparison.", ""])

    lines.extend([
        "| Metric | Size | Gzip | Brotli |",
        "|--------|------|------|--------|",
        f"| Total | {format_bytes(current.total_size)} | {format_bytes(current.total_gzip)} | "
        f"{format_bytes(current.total_brotli)} |",
    ])
    if baseline is not None:
        d_size = current.total_size - baseline.total_size
        d_gzip = current.total_gzip - baseline.total_gzip
        d_brotli = current.total_brotli - baseline.total_brotli
        lines.append(f"| Diff | {_diff_cell(d_size)} | {_diff_cell(d_gzip)} | {_diff_cell(d_brotli)} |")
        pct = [
            format_percent(percent_change(d, base))
            for d, base in (
                (d_size, baseline.total_size),
                (d_gzip, baseline.total_gzip),
                (d_brotli, baseline.total_brotli),
            )
        ]
        lines.append(f"| Change | {pct[0]} | {pct[1]} | {pct[2]} |")
    return "\n".join(lines) + "\n"
