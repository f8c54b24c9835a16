"""Report subpackage: PR comments, job summaries and CI outputs."""

from __future__ import annotations

__all__ = [
    "build_comment_markdown",
    "build_job_summary",
    "publish_outputs",
    "update_pr_comment",
    "write_job_summary",
]

from sizediff.report.comment import update_pr_comment
from sizediff.report.markdown import build_comment_markdown, build_job_summary
from sizediff.report.outputs import publish_outputs, write_job_summary
