"""CI job outputs and step summary."""

from __future__ import annotations

import logging
import uuid
from pathlib import Path
from typing import Any

from sizediff.core.context import RunContext
from sizediff.core.diff import DiffResult
from sizediff.core.stats import MeasurementRecord

logger = logging.getLogger("sizediff.report")


def format_output(name: str, value: Any) -> str:
    """One ``$GITHUB_OUTPUT`` entry; multi-line values use a heredoc."""
    text = str(value)
    if "\n" not in text:
        return f"{name}={text}\n"
    delimiter = f"ghadelimiter_{uuid.uuid4()}"
    return f"{name}<<{delimiter}\n{text}\n{delimiter}\n"


def set_output(context: RunContext, name: str, value: Any) -> None:
    if context.output_path:
        with open(context.output_path, "a", encoding="utf-8") as f:
            f.write(format_output(name, value))
    else:
        logger.info("OUTPUT %s=%s", name, value)


def publish_outputs(
    context: RunContext,
    current: MeasurementRecord,
    diff: DiffResult | None,
    status: str,
) -> dict[str, Any]:
    """Emit the standard size outputs. Returns what was written."""
    outputs: dict[str, Any] = {
        "total-size": current.total_size,
        "total-gzip": current.total_gzip,
        "total-brotli": current.total_brotli,
        "status": status,
        "diff-size": diff.diff_size if diff is not None else 0,
        "diff-gzip": diff.diff_gzip if diff is not None else 0,
        "diff-brotli": diff.diff_brotli if diff is not None else 0,
    }
    for name, value in outputs.items():
        set_output(context, name, value)
    return outputs


def write_job_summary(context: RunContext, markdown: str) -> Path | None:
    """Append *markdown* to the step summary file, if the runner has one."""
    if not context.summary_path:
        logger.debug("GITHUB_STEP_SUMMARY not set; skipping job summary")
        return None
    p = Path(context.summary_path)
    with p.open("a", encoding="utf-8") as f:
        f.write(markdown)
    logger.info("Job summary written")
    return p
