"""Immutable CI run context.

Everything sizediff needs from the GitHub Actions environment is read once,
at process start, into a :class:`RunContext` that is passed explicitly to
every component.
"""

from __future__ import annotations

import json
import logging
import os
import re
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

logger = logging.getLogger("sizediff.context")

TRUNK_REFS = ("refs/heads/main", "refs/heads/master")
DEFAULT_BRANCHES = ("main", "master")

_WORKFLOW_FILE = re.compile(r"\.github/workflows/(.+?)@")


@dataclass(frozen=True)
class RunContext:
    """Identity of the current CI run."""

    event_name: str = ""
    ref: str = ""
    sha: str = "unknown"
    repository: str = ""
    workflow: str = ""
    workflow_ref: str = ""
    api_url: str = "https://api.github.com"
    token: str = ""
    temp_dir: str = ""
    results_url: str = ""
    runtime_token: str = ""
    output_path: str = ""
    summary_path: str = ""
    pr_number: int | None = None
    pr_base_ref: str | None = None

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> RunContext:
        env = os.environ if environ is None else environ
        pr_number, pr_base_ref = _read_pull_request(env.get("GITHUB_EVENT_PATH", ""))
        return cls(
            event_name=env.get("GITHUB_EVENT_NAME", ""),
            ref=env.get("GITHUB_REF", ""),
            sha=env.get("GITHUB_SHA") or "unknown",
            repository=env.get("GITHUB_REPOSITORY", ""),
            workflow=env.get("GITHUB_WORKFLOW", ""),
            workflow_ref=env.get("GITHUB_WORKFLOW_REF", ""),
            api_url=(env.get("GITHUB_API_URL") or "https://api.github.com").rstrip("/"),
            token=env.get("INPUT_GITHUB-TOKEN") or env.get("INPUT_GITHUB_TOKEN") or env.get("GITHUB_TOKEN", ""),
            temp_dir=env.get("RUNNER_TEMP") or tempfile.gettempdir(),
            results_url=env.get("ACTIONS_RESULTS_URL", ""),
            runtime_token=env.get("ACTIONS_RUNTIME_TOKEN", ""),
            output_path=env.get("GITHUB_OUTPUT", ""),
            summary_path=env.get("GITHUB_STEP_SUMMARY", ""),
            pr_number=pr_number,
            pr_base_ref=pr_base_ref,
        )

    @property
    def owner(self) -> str:
        return self.repository.split("/", 1)[0] if "/" in self.repository else ""

    @property
    def repo(self) -> str:
        return self.repository.split("/", 1)[1] if "/" in self.repository else self.repository

    @property
    def is_pull_request(self) -> bool:
        return self.pr_number is not None

    @property
    def is_trunk(self) -> bool:
        """True for a push to the default branch (never for pull requests)."""
        return self.ref in TRUNK_REFS and not self.is_pull_request

    @property
    def workflow_file(self) -> str | None:
        """Workflow file name derived from ``GITHUB_WORKFLOW_REF``."""
        m = _WORKFLOW_FILE.search(self.workflow_ref)
        return m.group(1) if m else None

    def default_branches(self) -> list[str]:
        """Candidate baseline branches: PR base first, then main/master."""
        branches: list[str] = []
        for b in (self.pr_base_ref, *DEFAULT_BRANCHES):
            if b and b not in branches:
                branches.append(b)
        return branches


def _read_pull_request(event_path: str) -> tuple[int | None, str | None]:
    """Extract ``(number, base ref)`` from the event payload, if it is a PR."""
    if not event_path:
        return None, None
    try:
        payload: Any = json.loads(Path(event_path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("Could not read event payload %s: %s", event_path, exc)
        return None, None
    pr = payload.get("pull_request") if isinstance(payload, dict) else None
    if not isinstance(pr, dict) or pr.get("number") is None:
        return None, None
    base = pr.get("base") or {}
    base_ref = base.get("ref") if isinstance(base, dict) else None
    return int(pr["number"]), base_ref or None
