"""GitHub artifact backend.

REST calls go to ``GITHUB_API_URL`` with the workflow token; uploads use
the Actions results service (artifact protocol v4) authenticated with
``ACTIONS_RUNTIME_TOKEN``.
"""

from __future__ import annotations

import base64
import hashlib
import io
import json
import logging
import zipfile
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Sequence

import requests

from sizediff import __version__
from sizediff.adapters.base import (
    ArtifactBackend,
    ArtifactPage,
    ArtifactRef,
    CommentPage,
    IssueComment,
    WorkflowInfo,
    WorkflowRun,
    parse_artifact_listing,
)
from sizediff.core.context import RunContext
from sizediff.core.errors import ArtifactTooLargeError, RemoteError

logger = logging.getLogger("sizediff.github")

API_VERSION = "2022-11-28"
REQUEST_TIMEOUT_S = 30.0
TRANSFER_TIMEOUT_S = 300.0
CHUNK_SIZE = 64 * 1024

_TWIRP_SERVICE = "twirp/github.actions.results.api.v1.ArtifactService"


class GitHubBackend(ArtifactBackend):
    """Artifact backend for GitHub Actions."""

    def __init__(
        self,
        context: RunContext,
        session: requests.Session | None = None,
        timeout: float = REQUEST_TIMEOUT_S,
        transfer_timeout: float = TRANSFER_TIMEOUT_S,
    ) -> None:
        if not context.owner or not context.repo:
            raise RemoteError(f"GITHUB_REPOSITORY must be owner/repo, got {context.repository!r}")
        self.context = context
        self.session = session or requests.Session()
        self.timeout = timeout
        self.transfer_timeout = transfer_timeout

    def name(self) -> str:
        return "github"

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    @property
    def _repo_path(self) -> str:
        return f"/repos/{self.context.owner}/{self.context.repo}"

    def _headers(self) -> dict[str, str]:
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": API_VERSION,
            "User-Agent": f"sizediff/{__version__}",
        }
        if self.context.token:
            headers["Authorization"] = f"Bearer {self.context.token}"
        return headers

    def _request(self, method: str, path: str, **kwargs: Any) -> requests.Response:
        kwargs.setdefault("timeout", self.timeout)
        url = f"{self.context.api_url}{path}"
        resp = self.session.request(method, url, headers=self._headers(), **kwargs)
        _raise_for_status(resp, f"{method} {path}")
        return resp

    def _get_json(self, path: str, **params: Any) -> Any:
        return _decode_json(self._request("GET", path, params=params or None), path)

    # ------------------------------------------------------------------
    # Workflows
    # ------------------------------------------------------------------

    def get_workflow(self, workflow_file: str) -> WorkflowInfo:
        data = self._get_json(f"{self._repo_path}/actions/workflows/{workflow_file}")
        return _workflow_from_api(data)

    def list_workflows(self) -> list[WorkflowInfo]:
        data = self._get_json(f"{self._repo_path}/actions/workflows", per_page=100)
        return [_workflow_from_api(w) for w in _list_field(data, "workflows")]

    def list_workflow_runs(self, workflow_id: int, branch: str, per_page: int = 20) -> list[WorkflowRun]:
        data = self._get_json(
            f"{self._repo_path}/actions/workflows/{workflow_id}/runs",
            branch=branch,
            per_page=per_page,
        )
        runs = []
        for run in _list_field(data, "workflow_runs"):
            if isinstance(run, dict) and isinstance(run.get("id"), int):
                runs.append(WorkflowRun(id=run["id"], head_branch=run.get("head_branch")))
        return runs

    # ------------------------------------------------------------------
    # Artifacts
    # ------------------------------------------------------------------

    def list_run_artifacts(self, run_id: int, per_page: int = 100) -> list[ArtifactRef]:
        data = self._get_json(f"{self._repo_path}/actions/runs/{run_id}/artifacts", per_page=per_page)
        return parse_artifact_listing(data)

    def list_repo_artifacts(self, page: int = 1, per_page: int = 100) -> ArtifactPage:
        path = f"{self._repo_path}/actions/artifacts"
        resp = self._request("GET", path, params={"page": page, "per_page": per_page})
        items = parse_artifact_listing(_decode_json(resp, path))
        next_page = page + 1 if "next" in resp.links else None
        return ArtifactPage(items=items, next_page=next_page)

    def download_artifact(self, artifact_id: int, max_bytes: int) -> bytes:
        """Stream the artifact zip, aborting as soon as it passes *max_bytes*."""
        path = f"{self._repo_path}/actions/artifacts/{artifact_id}/zip"
        with self._request("GET", path, stream=True, timeout=self.transfer_timeout) as resp:
            declared = resp.headers.get("Content-Length")
            if declared and declared.isdigit() and int(declared) > max_bytes:
                raise ArtifactTooLargeError(int(declared), max_bytes)
            buf = io.BytesIO()
            for chunk in resp.iter_content(chunk_size=CHUNK_SIZE):
                buf.write(chunk)
                if buf.tell() > max_bytes:
                    raise ArtifactTooLargeError(buf.tell(), max_bytes)
            return buf.getvalue()

    def upload_artifact(
        self,
        name: str,
        files: Sequence[Path],
        root_dir: Path,
        retention_days: int,
    ) -> int:
        run_id, job_id = self._backend_ids()
        archive = _zip_files(files, root_dir)
        expires_at = datetime.now(timezone.utc) + timedelta(days=retention_days)

        created = self._twirp("CreateArtifact", {
            "workflowRunBackendId": run_id,
            "workflowJobRunBackendId": job_id,
            "name": name,
            "version": 4,
            "expiresAt": expires_at.strftime("%Y-%m-%dT%H:%M:%SZ"),
        })
        upload_url = created.get("signedUploadUrl") or created.get("signed_upload_url")
        if not created.get("ok") or not upload_url:
            raise RemoteError(f"CreateArtifact rejected artifact {name!r}")

        resp = self.session.put(
            upload_url,
            data=archive,
            headers={"x-ms-blob-type": "BlockBlob", "Content-Type": "application/zip"},
            timeout=self.transfer_timeout,
        )
        _raise_for_status(resp, "blob upload")

        finalized = self._twirp("FinalizeArtifact", {
            "workflowRunBackendId": run_id,
            "workflowJobRunBackendId": job_id,
            "name": name,
            "size": str(len(archive)),
            "hash": f"sha256:{hashlib.sha256(archive).hexdigest()}",
        })
        artifact_id = finalized.get("artifactId") or finalized.get("artifact_id")
        if not finalized.get("ok") or artifact_id is None:
            raise RemoteError(f"FinalizeArtifact rejected artifact {name!r}")
        logger.debug("Uploaded artifact %s (%d bytes) as id %s", name, len(archive), artifact_id)
        return int(artifact_id)

    def _twirp(self, method: str, body: dict[str, Any]) -> dict[str, Any]:
        if not self.context.results_url:
            raise RemoteError("ACTIONS_RESULTS_URL is not set; artifact upload needs a GitHub Actions runner")
        url = f"{self.context.results_url.rstrip('/')}/{_TWIRP_SERVICE}/{method}"
        resp = self.session.post(
            url,
            json=body,
            headers={
                "Authorization": f"Bearer {self.context.runtime_token}",
                "Content-Type": "application/json",
                "User-Agent": f"sizediff/{__version__}",
            },
            timeout=self.timeout,
        )
        _raise_for_status(resp, method)
        data = _decode_json(resp, method)
        if not isinstance(data, dict):
            raise RemoteError(f"{method} returned {type(data).__name__}, expected an object")
        return data

    def _backend_ids(self) -> tuple[str, str]:
        """Workflow run/job backend ids from the runtime token's ``scp`` claim."""
        return backend_ids_from_token(self.context.runtime_token)

    # ------------------------------------------------------------------
    # Comments
    # ------------------------------------------------------------------

    def list_comments(self, issue_number: int, page: int = 1, per_page: int = 100) -> CommentPage:
        path = f"{self._repo_path}/issues/{issue_number}/comments"
        resp = self._request("GET", path, params={"page": page, "per_page": per_page})
        data = _decode_json(resp, path)
        if not isinstance(data, list):
            raise RemoteError(f"Unexpected comment listing shape: {type(data).__name__}")
        items = [
            IssueComment(id=c["id"], body=c.get("body") or "")
            for c in data
            if isinstance(c, dict) and isinstance(c.get("id"), int)
        ]
        return CommentPage(items=items, next_page=page + 1 if "next" in resp.links else None)

    def create_comment(self, issue_number: int, body: str) -> int:
        path = f"{self._repo_path}/issues/{issue_number}/comments"
        data = _decode_json(self._request("POST", path, json={"body": body}), path)
        return int(data["id"])

    def update_comment(self, comment_id: int, body: str) -> None:
        self._request("PATCH", f"{self._repo_path}/issues/comments/{comment_id}", json={"body": body})


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------


def backend_ids_from_token(token: str) -> tuple[str, str]:
    """Decode ``Actions.Results:<run>:<job>`` from a runtime JWT.

    Raises:
        RemoteError: If the token is missing or carries no results scope.
    """
    if not token:
        raise RemoteError("ACTIONS_RUNTIME_TOKEN is not set; artifact upload needs a GitHub Actions runner")
    parts = token.split(".")
    if len(parts) != 3:
        raise RemoteError("ACTIONS_RUNTIME_TOKEN is not a JWT")
    payload = parts[1] + "=" * (-len(parts[1]) % 4)
    try:
        claims = json.loads(base64.urlsafe_b64decode(payload))
    except (ValueError, TypeError) as exc:
        raise RemoteError(f"Could not decode ACTIONS_RUNTIME_TOKEN: {exc}") from exc
    for scope in str(claims.get("scp", "")).split():
        pieces = scope.split(":")
        if pieces[0] == "Actions.Results" and len(pieces) == 3:
            return pieces[1], pieces[2]
    raise RemoteError("ACTIONS_RUNTIME_TOKEN has no Actions.Results scope")


def _zip_files(files: Sequence[Path], root_dir: Path) -> bytes:
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", zipfile.ZIP_DEFLATED) as zf:
        for file in files:
            zf.write(file, Path(file).resolve().relative_to(Path(root_dir).resolve()).as_posix())
    return buf.getvalue()


def _raise_for_status(resp: requests.Response, what: str) -> None:
    if resp.status_code >= 400:
        detail = (resp.text or "")[:200]
        raise RemoteError(f"{what} failed: HTTP {resp.status_code} {detail}".rstrip(), resp.status_code)


def _decode_json(resp: requests.Response, what: str) -> Any:
    try:
        return resp.json()
    except ValueError as exc:
        raise RemoteError(f"{what} returned invalid JSON: {exc}") from exc


def _list_field(data: Any, key: str) -> list[Any]:
    if not isinstance(data, dict) or not isinstance(data.get(key), list):
        raise RemoteError(f"Response has no {key!r} list")
    return data[key]


def _workflow_from_api(data: Any) -> WorkflowInfo:
    if not isinstance(data, dict) or not isinstance(data.get("id"), int):
        raise RemoteError(f"Unexpected workflow payload: {data!r}")
    return WorkflowInfo(id=data["id"], name=str(data.get("name", "")), path=str(data.get("path", "")))
