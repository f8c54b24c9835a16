"""Baseline artifact lookup.

The "most relevant" baseline is the first match in branch-priority, then
recency order:

1. targeted search: the current workflow's recent runs on each candidate
   branch, newest first;
2. fallback: a repository-wide artifact scan, bounded by a page budget.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence

import requests

from sizediff import ARTIFACT_NAME
from sizediff.adapters.base import ArtifactBackend, ArtifactRef
from sizediff.baseline.extract import load_baseline
from sizediff.core.context import RunContext
from sizediff.core.errors import RemoteError
from sizediff.core.retry import RetryPolicy
from sizediff.core.stats import MeasurementRecord

logger = logging.getLogger("sizediff.lookup")

RUNS_PER_BRANCH = 20
ARTIFACTS_PER_PAGE = 100
DEFAULT_MAX_PAGES = 10

# Failures that degrade a lookup to "not found" instead of failing the run.
_SOFT_ERRORS = (RemoteError, requests.RequestException, OSError)


def is_baseline_artifact(item: ArtifactRef) -> bool:
    return item.name == ARTIFACT_NAME and not item.expired


def resolve_workflow_id(
    backend: ArtifactBackend,
    context: RunContext,
    retry: RetryPolicy,
) -> int | None:
    """Identify the running workflow, by file name first, then by name."""
    workflow_file = context.workflow_file
    if workflow_file:
        try:
            workflow = retry.call(lambda: backend.get_workflow(workflow_file), "getWorkflow")
            return workflow.id
        except _SOFT_ERRORS as exc:
            logger.warning("Failed to resolve workflow from ref: %s", exc)

    workflows = retry.call(backend.list_workflows, "listRepoWorkflows")
    matches = [w for w in workflows if w.name == context.workflow]
    if not matches:
        logger.warning("Could not resolve workflow id for baseline lookup.")
        return None
    if len(matches) > 1:
        logger.warning("Multiple workflows named %r found; using the first match.", context.workflow)
    return matches[0].id


def find_in_workflow_runs(
    backend: ArtifactBackend,
    context: RunContext,
    branches: Sequence[str],
    retry: RetryPolicy,
) -> ArtifactRef | None:
    """Targeted search through the current workflow's recent runs."""
    workflow_id = resolve_workflow_id(backend, context, retry)
    if workflow_id is None:
        return None

    for branch in branches:
        runs = retry.call(
            lambda: backend.list_workflow_runs(workflow_id, branch, per_page=RUNS_PER_BRANCH),
            "listWorkflowRuns",
        )
        for run in runs:
            artifacts = retry.call(
                lambda: backend.list_run_artifacts(run.id, per_page=ARTIFACTS_PER_PAGE),
                "listWorkflowRunArtifacts",
            )
            for item in artifacts:
                if is_baseline_artifact(item):
                    logger.info("Found baseline artifact in workflow run %d (%s)", run.id, branch)
                    return item
    return None


def scan_repo_artifacts(
    backend: ArtifactBackend,
    branches: Sequence[str],
    max_pages: int,
    retry: RetryPolicy,
) -> ArtifactRef | None:
    """Scan the repository artifact listing page by page.

    Stops at the first live ``bundle-stats`` artifact produced on one of
    *branches*, or after *max_pages* pages.
    """
    branch_set = set(branches)
    page: int | None = 1
    pages_scanned = 0
    checked = 0

    logger.info(
        "Searching for baseline artifact (max %d pages, %d artifacts)",
        max_pages, max_pages * ARTIFACTS_PER_PAGE,
    )
    while page is not None and pages_scanned < max_pages:
        current_page = page
        result = retry.call(
            lambda: backend.list_repo_artifacts(page=current_page, per_page=ARTIFACTS_PER_PAGE),
            "listArtifactsForRepo",
        )
        pages_scanned += 1
        checked += len(result.items)

        for item in result.items:
            if is_baseline_artifact(item) and item.head_branch in branch_set:
                logger.info(
                    "Found baseline artifact after checking %d artifacts (%d pages)",
                    checked, pages_scanned,
                )
                return item
        if result.done:
            page = None
            break
        page = result.next_page

    if page is not None:
        logger.warning(
            "Reached max artifact search limit (%d pages, %d artifacts checked). "
            "No baseline found for branches: %s. "
            "Increase max-artifact-pages if your baseline is older. "
            "Current repository has at least %d artifacts - consider reducing artifact retention.",
            max_pages, checked, ", ".join(branches), checked,
        )
    else:
        logger.info(
            "No baseline artifact found for %s after checking %d artifacts (%d pages)",
            ", ".join(branches), checked, pages_scanned,
        )
    return None


def _try_workflow_runs(
    backend: ArtifactBackend,
    context: RunContext,
    branches: Sequence[str],
    retry: RetryPolicy,
) -> ArtifactRef | None:
    try:
        return find_in_workflow_runs(backend, context, branches, retry)
    except _SOFT_ERRORS as exc:
        logger.warning("Workflow-run lookup failed: %s", exc)
        return None


def find_baseline(
    backend: ArtifactBackend,
    context: RunContext,
    branches: Sequence[str],
    max_pages: int = DEFAULT_MAX_PAGES,
    retry: RetryPolicy | None = None,
) -> ArtifactRef | None:
    """Locate the baseline artifact reference for *branches*.

    Parameters:
        backend: Remote artifact store.
        context: Current run identity (used to find the workflow).
        branches: Candidate branches in priority order.
        max_pages: Page budget for the repository-wide fallback scan.
        retry: Retry policy applied to each remote call.

    Returns:
        The artifact reference, or ``None`` if none was found.  Failures in
        the targeted search fall through to the scan; failures in the scan
        propagate.
    """
    retry = retry or RetryPolicy()
    found = _try_workflow_runs(backend, context, branches, retry)
    if found is not None:
        return found
    return scan_repo_artifacts(backend, branches, max_pages, retry)


def fetch_baseline(
    backend: ArtifactBackend,
    context: RunContext,
    branches: Sequence[str],
    work_dir: str | Path,
    max_pages: int = DEFAULT_MAX_PAGES,
    retry: RetryPolicy | None = None,
) -> MeasurementRecord | None:
    """Find and load the baseline record.

    Listing, download and extraction failures are logged and reported as
    "no baseline".  An oversized download or a malformed record still
    raises.
    """
    retry = retry or RetryPolicy()
    if not branches:
        logger.warning("No candidate branches for baseline lookup.")
        return None

    try:
        workflow_artifact = _try_workflow_runs(backend, context, branches, retry)
        if workflow_artifact is not None:
            record = load_baseline(backend, workflow_artifact, work_dir, retry)
            if record is not None:
                return record
            logger.warning("Workflow-run baseline download failed; falling back to repo search.")

        artifact = scan_repo_artifacts(backend, branches, max_pages, retry)
        if artifact is None:
            return None
        return load_baseline(backend, artifact, work_dir, retry)
    except _SOFT_ERRORS as exc:
        logger.warning("Failed to download baseline: %s", exc)
        return None
