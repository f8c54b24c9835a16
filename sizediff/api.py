"""sizediff public Python API.

Provides the primary entrypoint:
  - ``run_check(context, settings)`` → CheckOutcome

A trunk build publishes its measurement as the new baseline; every other
build is compared against the baseline found for its candidate branches.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from sizediff.adapters.base import ArtifactBackend
from sizediff.baseline.lookup import fetch_baseline
from sizediff.baseline.publish import publish
from sizediff.core.autodetect import locate_build_output
from sizediff.core.build import install_dependencies, run_build
from sizediff.core.config import CheckSettings
from sizediff.core.context import RunContext
from sizediff.core.diff import DiffResult, diff_bundles, mark_baseline_updated
from sizediff.core.errors import ConfigError, SizeDiffError
from sizediff.core.retry import RetryPolicy
from sizediff.core.scan import scan_directory
from sizediff.core.stats import MeasurementRecord
from sizediff.report.comment import update_pr_comment
from sizediff.report.markdown import build_job_summary
from sizediff.report.outputs import publish_outputs, write_job_summary

logger = logging.getLogger("sizediff.api")


@dataclass
class CheckOutcome:
    """What a ``run_check`` did."""

    current: MeasurementRecord
    diff: DiffResult
    dist_path: str
    artifact_id: int | None = None
    comment: str = "skipped"
    outputs: dict[str, Any] = field(default_factory=dict)

    @property
    def status(self) -> str:
        return self.diff.status

    @property
    def failed(self) -> bool:
        return self.diff.status == "fail"


def resolve_dist_path(settings: CheckSettings, repo_root: str | Path) -> Path:
    located = locate_build_output(settings.dist_path, repo_root)
    if located is None:
        raise ConfigError("Could not determine the build output directory; set dist-path")
    logger.info("Using build output %s (%s: %s)", located.path, located.mode, located.reason)
    path = Path(located.path)
    return path if path.is_absolute() else Path(repo_root) / path


def build_and_measure(
    context: RunContext,
    settings: CheckSettings,
    repo_root: str | Path = ".",
) -> tuple[MeasurementRecord, Path]:
    """Install, build (unless skipped) and measure the output directory."""
    if not settings.skip_build:
        if not settings.skip_install:
            install_dependencies(repo_root, timeout_s=settings.build_timeout_s)
        run_build(
            settings.build_command,
            timeout_s=settings.build_timeout_s,
            fail_on_stderr=settings.fail_on_stderr,
            allow_unsafe=settings.allow_unsafe_build,
            cwd=repo_root,
        )

    dist = resolve_dist_path(settings, repo_root)
    current = scan_directory(dist, use_gzip=settings.gzip, use_brotli=settings.brotli, commit=context.sha)
    logger.info("Scanned %d files", len(current.files))
    return current, dist


def run_check(
    context: RunContext,
    settings: CheckSettings,
    backend: ArtifactBackend | None = None,
    repo_root: str | Path = ".",
    retry: RetryPolicy | None = None,
) -> CheckOutcome:
    """Run a full size check for the current CI run.

    Parameters:
        context: Identity of the CI run.
        settings: Validated configuration.
        backend: Remote artifact store (defaults to the GitHub backend).
        repo_root: Repository checkout to build and scan.
        retry: Retry policy for remote calls.

    Returns:
        A :class:`CheckOutcome`; budget violations are reported through its
        ``diff.status`` rather than raised.
    """
    retry = retry or RetryPolicy()
    current, dist = build_and_measure(context, settings, repo_root)

    if backend is None:
        from sizediff.adapters.github import GitHubBackend

        backend = GitHubBackend(context)

    branches = list(settings.baseline_branches) or context.default_branches()
    work_dir = Path(context.temp_dir)

    def _fetch() -> MeasurementRecord | None:
        return fetch_baseline(
            backend,
            context,
            branches,
            work_dir,
            max_pages=settings.max_artifact_pages,
            retry=retry,
        )

    if context.is_trunk:
        try:
            baseline = _fetch()
        except SizeDiffError as exc:
            logger.warning("Ignoring unusable previous baseline: %s", exc)
            baseline = None
        artifact_id = publish(backend, current, work_dir, retry=retry, retention_days=settings.retention_days)
        diff = mark_baseline_updated(
            current, baseline, gzip=settings.gzip, brotli=settings.brotli, top_n=settings.top_n
        )
        write_job_summary(context, build_job_summary(current, baseline, baseline_updated=True))
        logger.info("Baseline updated")
        outputs = publish_outputs(context, current, diff, diff.status)
        return CheckOutcome(current, diff, str(dist), artifact_id=artifact_id, outputs=outputs)

    baseline = _fetch()
    diff = diff_bundles(
        baseline,
        current,
        budget_max_increase_kb=settings.budget_max_increase_kb,
        warn_above_kb=settings.warn_above_kb,
        fail_above_kb=settings.fail_above_kb,
        gzip=settings.gzip,
        brotli=settings.brotli,
        top_n=settings.top_n,
    )
    comment = "skipped"
    if context.is_pull_request:
        comment = update_pr_comment(
            backend,
            context,
            diff,
            mode=settings.comment_mode,
            fail_on_error=settings.fail_on_comment_error,
            retry=retry,
        )
    write_job_summary(context, build_job_summary(current, baseline, baseline_updated=False))
    outputs = publish_outputs(context, current, diff, diff.status)
    if diff.threshold_status == "warn" and diff.threshold_message:
        logger.warning("Threshold: %s", diff.threshold_message)
    return CheckOutcome(current, diff, str(dist), comment=comment, outputs=outputs)
