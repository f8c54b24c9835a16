"""Base artifact backend interface.

Every remote store sizediff talks to subclasses :class:`ArtifactBackend`.
The interface is the small set of workflow, artifact and PR-comment calls
the baseline lookup, publisher and comment updater need; the backend
implementation owns authentication, transport and response decoding.
"""

from __future__ import annotations

import abc
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Sequence

from sizediff.core.errors import RemoteError


@dataclass(frozen=True)
class ArtifactRef:
    """Reference to a stored artifact."""

    id: int
    name: str
    expired: bool = False
    head_branch: str | None = None
    workflow_run_id: int | None = None
    size_in_bytes: int | None = None

    @classmethod
    def from_api(cls, item: Any) -> ArtifactRef:
        """Decode one artifact object of a listing.

        Raises:
            RemoteError: If the item has no integer ``id`` or string ``name``.
        """
        if not isinstance(item, dict):
            raise RemoteError(f"Unexpected artifact entry: {item!r}")
        art_id = item.get("id")
        name = item.get("name")
        if not isinstance(art_id, int) or isinstance(art_id, bool) or not isinstance(name, str):
            raise RemoteError(f"Artifact entry missing id/name: {item!r}")
        run = item.get("workflow_run") or {}
        if not isinstance(run, dict):
            run = {}
        size = item.get("size_in_bytes")
        return cls(
            id=art_id,
            name=name,
            expired=bool(item.get("expired", False)),
            head_branch=run.get("head_branch") or None,
            workflow_run_id=run.get("id"),
            size_in_bytes=size if isinstance(size, int) else None,
        )


@dataclass(frozen=True)
class ArtifactPage:
    """One page of a paginated artifact listing."""

    items: list[ArtifactRef]
    next_page: int | None = None

    @property
    def done(self) -> bool:
        return self.next_page is None


@dataclass(frozen=True)
class WorkflowInfo:
    id: int
    name: str
    path: str = ""


@dataclass(frozen=True)
class WorkflowRun:
    id: int
    head_branch: str | None = None


@dataclass(frozen=True)
class IssueComment:
    id: int
    body: str


@dataclass(frozen=True)
class CommentPage:
    items: list[IssueComment]
    next_page: int | None = None


def parse_artifact_listing(payload: Any) -> list[ArtifactRef]:
    """Decode an artifact listing response.

    The richer ``{"artifacts": [...]}`` envelope is tried first, then a bare
    list.  Anything else is a :class:`RemoteError`.
    """
    if isinstance(payload, dict) and "artifacts" in payload:
        items = payload["artifacts"]
        if not isinstance(items, list):
            raise RemoteError(f"'artifacts' field is not a list: {type(items).__name__}")
    elif isinstance(payload, list):
        items = payload
    else:
        raise RemoteError(f"Unexpected artifact listing shape: {type(payload).__name__}")
    return [ArtifactRef.from_api(item) for item in items]


class ArtifactBackend(abc.ABC):
    """Abstract remote artifact/workflow store."""

    @abc.abstractmethod
    def name(self) -> str:
        """Return the backend name (e.g. ``"github"``)."""

    # -- workflows -------------------------------------------------------

    @abc.abstractmethod
    def get_workflow(self, workflow_file: str) -> WorkflowInfo:
        """Look up a workflow by its file name."""

    @abc.abstractmethod
    def list_workflows(self) -> list[WorkflowInfo]:
        """List the repository's workflows."""

    @abc.abstractmethod
    def list_workflow_runs(self, workflow_id: int, branch: str, per_page: int = 20) -> list[WorkflowRun]:
        """Most recent runs of *workflow_id* on *branch*, newest first."""

    # -- artifacts -------------------------------------------------------

    @abc.abstractmethod
    def list_run_artifacts(self, run_id: int, per_page: int = 100) -> list[ArtifactRef]:
        """Artifacts attached to a workflow run."""

    @abc.abstractmethod
    def list_repo_artifacts(self, page: int = 1, per_page: int = 100) -> ArtifactPage:
        """One page of the repository-wide artifact listing, newest first."""

    @abc.abstractmethod
    def download_artifact(self, artifact_id: int, max_bytes: int) -> bytes:
        """Download an artifact as zip bytes.

        Raises:
            ArtifactTooLargeError: If the body exceeds *max_bytes*.
        """

    @abc.abstractmethod
    def upload_artifact(
        self,
        name: str,
        files: Sequence[Path],
        root_dir: Path,
        retention_days: int,
    ) -> int:
        """Upload *files* (relative to *root_dir*) as artifact *name*; return its id."""

    # -- pull request comments -------------------------------------------

    @abc.abstractmethod
    def list_comments(self, issue_number: int, page: int = 1, per_page: int = 100) -> CommentPage:
        """One page of comments on an issue or pull request."""

    @abc.abstractmethod
    def create_comment(self, issue_number: int, body: str) -> int:
        """Create a comment; return its id."""

    @abc.abstractmethod
    def update_comment(self, comment_id: int, body: str) -> None:
        """Replace the body of an existing comment."""
