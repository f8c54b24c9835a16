"""Shared fixtures: an in-memory artifact backend and record builders."""

from __future__ import annotations

import io
import json
import zipfile
from pathlib import Path
from typing import Any, Sequence

import pytest

from sizediff import ARTIFACT_NAME, STATS_FILE
from sizediff.adapters.base import (
    ArtifactBackend,
    ArtifactPage,
    ArtifactRef,
    CommentPage,
    IssueComment,
    WorkflowInfo,
    WorkflowRun,
)
from sizediff.core.context import RunContext
from sizediff.core.errors import ArtifactTooLargeError, RemoteError
from sizediff.core.retry import RetryPolicy
from sizediff.core.stats import FileEntry, MeasurementRecord


def make_record(
    files: dict[str, int | tuple[int, int, int]],
    commit: str = "abc1234def",
    timestamp: str = "2024-01-01T00:00:00+00:00",
) -> MeasurementRecord:
    """Build a record from ``{path: size}`` or ``{path: (size, gzip, brotli)}``."""
    entries = []
    for path, sizes in files.items():
        if isinstance(sizes, int):
            sizes = (sizes, sizes, sizes)
        size, gz, br = sizes
        entries.append(FileEntry(path=path, name=path.rsplit("/", 1)[-1], size=size, gzip=gz, brotli=br))
    return MeasurementRecord.from_files(entries, commit=commit, timestamp=timestamp)


def make_zip(members: dict[str, bytes | str]) -> bytes:
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", zipfile.ZIP_DEFLATED) as zf:
        for name, data in members.items():
            zf.writestr(name, data)
    return buf.getvalue()


def record_zip(record: MeasurementRecord) -> bytes:
    return make_zip({STATS_FILE: json.dumps(record.to_dict())})


class FakeBackend(ArtifactBackend):
    """In-memory artifact store. Listings are newest first."""

    def __init__(self) -> None:
        self.artifacts: list[ArtifactRef] = []
        self.blobs: dict[int, bytes] = {}
        self.workflows: list[WorkflowInfo] = []
        self.runs: dict[tuple[int, str], list[WorkflowRun]] = {}
        self.run_artifacts: dict[int, list[ArtifactRef]] = {}
        self.comments: dict[int, list[IssueComment]] = {}
        self.failures: dict[str, list[BaseException]] = {}
        self.calls: list[tuple[str, Any]] = []
        self.upload_branch = "main"
        self._next_id = 1000

    def fail(self, method: str, *errors: BaseException) -> None:
        """Queue *errors* to be raised by the next calls to *method*."""
        self.failures.setdefault(method, []).extend(errors)

    def _enter(self, method: str, *args: Any) -> None:
        self.calls.append((method, args))
        queued = self.failures.get(method)
        if queued:
            raise queued.pop(0)

    def _new_id(self) -> int:
        self._next_id += 1
        return self._next_id

    def add_artifact(
        self,
        data: bytes | MeasurementRecord,
        branch: str | None = "main",
        name: str = ARTIFACT_NAME,
        expired: bool = False,
        run_id: int | None = None,
    ) -> ArtifactRef:
        if isinstance(data, MeasurementRecord):
            data = record_zip(data)
        ref = ArtifactRef(
            id=self._new_id(),
            name=name,
            expired=expired,
            head_branch=branch,
            workflow_run_id=run_id,
            size_in_bytes=len(data),
        )
        self.artifacts.insert(0, ref)
        self.blobs[ref.id] = data
        if run_id is not None:
            self.run_artifacts.setdefault(run_id, []).append(ref)
        return ref

    def name(self) -> str:
        return "fake"

    def get_workflow(self, workflow_file: str) -> WorkflowInfo:
        self._enter("get_workflow", workflow_file)
        for wf in self.workflows:
            if wf.path.endswith(workflow_file):
                return wf
        raise RemoteError(f"workflow {workflow_file} not found", 404)

    def list_workflows(self) -> list[WorkflowInfo]:
        self._enter("list_workflows")
        return list(self.workflows)

    def list_workflow_runs(self, workflow_id: int, branch: str, per_page: int = 20) -> list[WorkflowRun]:
        self._enter("list_workflow_runs", workflow_id, branch)
        return self.runs.get((workflow_id, branch), [])[:per_page]

    def list_run_artifacts(self, run_id: int, per_page: int = 100) -> list[ArtifactRef]:
        self._enter("list_run_artifacts", run_id)
        return self.run_artifacts.get(run_id, [])[:per_page]

    def list_repo_artifacts(self, page: int = 1, per_page: int = 100) -> ArtifactPage:
        self._enter("list_repo_artifacts", page)
        start = (page - 1) * per_page
        items = self.artifacts[start:start + per_page]
        more = start + per_page < len(self.artifacts)
        return ArtifactPage(items=items, next_page=page + 1 if more else None)

    def download_artifact(self, artifact_id: int, max_bytes: int) -> bytes:
        self._enter("download_artifact", artifact_id)
        data = self.blobs[artifact_id]
        if len(data) > max_bytes:
            raise ArtifactTooLargeError(len(data), max_bytes)
        return data

    def upload_artifact(
        self,
        name: str,
        files: Sequence[Path],
        root_dir: Path,
        retention_days: int,
    ) -> int:
        self._enter("upload_artifact", name, retention_days)
        members = {Path(f).relative_to(root_dir).as_posix(): Path(f).read_bytes() for f in files}
        return self.add_artifact(make_zip(members), branch=self.upload_branch, name=name).id

    def list_comments(self, issue_number: int, page: int = 1, per_page: int = 100) -> CommentPage:
        self._enter("list_comments", issue_number, page)
        comments = self.comments.get(issue_number, [])
        start = (page - 1) * per_page
        more = start + per_page < len(comments)
        return CommentPage(items=comments[start:start + per_page], next_page=page + 1 if more else None)

    def create_comment(self, issue_number: int, body: str) -> int:
        self._enter("create_comment", issue_number)
        comment = IssueComment(id=self._new_id(), body=body)
        self.comments.setdefault(issue_number, []).append(comment)
        return comment.id

    def update_comment(self, comment_id: int, body: str) -> None:
        self._enter("update_comment", comment_id)
        for issue, comments in self.comments.items():
            for i, c in enumerate(comments):
                if c.id == comment_id:
                    comments[i] = IssueComment(id=comment_id, body=body)
                    return
        raise RemoteError(f"comment {comment_id} not found", 404)

    def count(self, method: str) -> int:
        return sum(1 for name, _ in self.calls if name == method)


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def sleeps() -> list[float]:
    return []


@pytest.fixture
def retry(sleeps: list[float]) -> RetryPolicy:
    return RetryPolicy(sleep=sleeps.append)


@pytest.fixture
def pr_context(tmp_path: Path) -> RunContext:
    return RunContext(
        event_name="pull_request",
        ref="refs/pull/7/merge",
        sha="deadbeefcafe",
        repository="acme/web",
        workflow="CI",
        workflow_ref="acme/web/.github/workflows/ci.yml@refs/pull/7/merge",
        token="t0ken",
        temp_dir=str(tmp_path / "runner-temp"),
        pr_number=7,
        pr_base_ref="develop",
    )


@pytest.fixture
def trunk_context(tmp_path: Path) -> RunContext:
    return RunContext(
        event_name="push",
        ref="refs/heads/main",
        sha="feedface0001",
        repository="acme/web",
        workflow="CI",
        workflow_ref="acme/web/.github/workflows/ci.yml@refs/heads/main",
        token="t0ken",
        temp_dir=str(tmp_path / "runner-temp"),
    )
