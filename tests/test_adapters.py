"""Tests for the artifact listing parser and the GitHub backend."""

from __future__ import annotations

import base64
import io
import json
import zipfile
from pathlib import Path
from typing import Any

import pytest
import requests

from sizediff.adapters.base import ArtifactRef, parse_artifact_listing
from sizediff.adapters.github import GitHubBackend, backend_ids_from_token
from sizediff.core.context import RunContext
from sizediff.core.errors import ArtifactTooLargeError, RemoteError


def _response(
    status: int = 200,
    payload: Any = None,
    headers: dict[str, str] | None = None,
    raw: bytes | None = None,
) -> requests.Response:
    resp = requests.Response()
    resp.status_code = status
    resp.headers.update(headers or {})
    if raw is not None:
        resp.raw = io.BytesIO(raw)
    else:
        resp._content = json.dumps(payload).encode() if payload is not None else b""
    return resp


class _FakeSession:
    """Records requests and replays queued responses in order."""

    def __init__(self, *responses: requests.Response) -> None:
        self.responses = list(responses)
        self.sent: list[dict[str, Any]] = []

    def _next(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        self.sent.append({"method": method, "url": url, **kwargs})
        return self.responses.pop(0)

    def request(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        return self._next(method, url, **kwargs)

    def post(self, url: str, **kwargs: Any) -> requests.Response:
        return self._next("POST", url, **kwargs)

    def put(self, url: str, **kwargs: Any) -> requests.Response:
        return self._next("PUT", url, **kwargs)


def _jwt(claims: dict[str, Any]) -> str:
    body = base64.urlsafe_b64encode(json.dumps(claims).encode()).decode().rstrip("=")
    return f"e30.{body}.sig"


@pytest.fixture
def context(tmp_path: Path) -> RunContext:
    return RunContext(
        repository="acme/web",
        api_url="https://api.example.test",
        token="t0ken",
        temp_dir=str(tmp_path),
        results_url="https://results.example.test/",
        runtime_token=_jwt({"scp": "Actions.ExampleScope Actions.Results:run-1:job-2"}),
    )


# ----------------------------------------------------------------------
# Listing parse
# ----------------------------------------------------------------------

_ITEM = {
    "id": 11,
    "name": "bundle-stats",
    "expired": False,
    "size_in_bytes": 321,
    "workflow_run": {"id": 5, "head_branch": "main"},
}


def test_listing_envelope_shape() -> None:
    items = parse_artifact_listing({"total_count": 1, "artifacts": [_ITEM]})
    assert items == [ArtifactRef(id=11, name="bundle-stats", head_branch="main", workflow_run_id=5, size_in_bytes=321)]


def test_listing_bare_list_shape() -> None:
    assert parse_artifact_listing([_ITEM])[0].id == 11


@pytest.mark.parametrize("payload", [None, "artifacts", {"artifacts": {"id": 1}}, {"items": []}])
def test_listing_unknown_shape_raises(payload: Any) -> None:
    with pytest.raises(RemoteError):
        parse_artifact_listing(payload)


def test_listing_item_without_id_raises() -> None:
    with pytest.raises(RemoteError, match="missing id"):
        parse_artifact_listing([{"name": "bundle-stats"}])


def test_missing_workflow_run_means_no_branch() -> None:
    ref = ArtifactRef.from_api({"id": 3, "name": "x"})
    assert ref.head_branch is None
    assert ref.workflow_run_id is None


# ----------------------------------------------------------------------
# GitHubBackend
# ----------------------------------------------------------------------


@pytest.mark.parametrize("repository", ["", "acme", "acme/"])
def test_requires_owner_and_repo(repository: str) -> None:
    with pytest.raises(RemoteError, match="owner/repo"):
        GitHubBackend(RunContext(repository=repository))


def test_list_repo_artifacts_follows_link_header(context: RunContext) -> None:
    session = _FakeSession(
        _response(payload={"artifacts": [_ITEM]}, headers={"Link": '<https://x/?page=3>; rel="next"'}),
        _response(payload={"artifacts": []}),
    )
    backend = GitHubBackend(context, session=session)

    first = backend.list_repo_artifacts(page=2, per_page=100)
    last = backend.list_repo_artifacts(page=3, per_page=100)

    assert first.next_page == 3
    assert first.items[0].name == "bundle-stats"
    assert last.done
    assert session.sent[0]["url"] == "https://api.example.test/repos/acme/web/actions/artifacts"
    assert session.sent[0]["params"] == {"page": 2, "per_page": 100}
    assert session.sent[0]["headers"]["Authorization"] == "Bearer t0ken"


def test_http_error_becomes_remote_error(context: RunContext) -> None:
    backend = GitHubBackend(context, session=_FakeSession(_response(502, payload={"message": "bad gateway"})))
    with pytest.raises(RemoteError) as excinfo:
        backend.list_repo_artifacts()
    assert excinfo.value.status_code == 502


def test_invalid_json_becomes_remote_error(context: RunContext) -> None:
    resp = _response()
    resp._content = b"<html>"
    backend = GitHubBackend(context, session=_FakeSession(resp))
    with pytest.raises(RemoteError, match="invalid JSON"):
        backend.list_workflows()


def test_workflow_runs_are_filtered_by_branch(context: RunContext) -> None:
    session = _FakeSession(_response(payload={"workflow_runs": [{"id": 9, "head_branch": "main"}, {"bad": 1}]}))
    backend = GitHubBackend(context, session=session)

    runs = backend.list_workflow_runs(42, "main", per_page=20)

    assert [r.id for r in runs] == [9]
    assert session.sent[0]["params"] == {"branch": "main", "per_page": 20}
    assert session.sent[0]["url"].endswith("/actions/workflows/42/runs")


def test_download_streams_body(context: RunContext) -> None:
    backend = GitHubBackend(context, session=_FakeSession(_response(raw=b"PK" + b"x" * 100)))
    assert backend.download_artifact(11, max_bytes=1000) == b"PK" + b"x" * 100


def test_download_rejects_declared_oversize(context: RunContext) -> None:
    resp = _response(raw=b"", headers={"Content-Length": str(60 * 1024 * 1024)})
    backend = GitHubBackend(context, session=_FakeSession(resp))
    with pytest.raises(ArtifactTooLargeError):
        backend.download_artifact(11, max_bytes=50 * 1024 * 1024)


def test_download_rejects_streamed_oversize(context: RunContext) -> None:
    backend = GitHubBackend(context, session=_FakeSession(_response(raw=b"x" * 5000)))
    with pytest.raises(ArtifactTooLargeError):
        backend.download_artifact(11, max_bytes=1000)


def test_upload_runs_create_put_finalize(context: RunContext, tmp_path: Path) -> None:
    stats = tmp_path / "bundle-stats.json"
    stats.write_text('{"files": []}', encoding="utf-8")
    session = _FakeSession(
        _response(payload={"ok": True, "signedUploadUrl": "https://blob.example.test/upload?sig=1"}),
        _response(201),
        _response(payload={"ok": True, "artifactId": "777"}),
    )
    backend = GitHubBackend(context, session=session)

    artifact_id = backend.upload_artifact("bundle-stats", [stats], tmp_path, retention_days=90)

    assert artifact_id == 777
    create, put, finalize = session.sent
    assert create["url"].endswith("github.actions.results.api.v1.ArtifactService/CreateArtifact")
    assert create["json"]["workflowRunBackendId"] == "run-1"
    assert create["json"]["workflowJobRunBackendId"] == "job-2"
    assert create["json"]["name"] == "bundle-stats"
    assert put["url"] == "https://blob.example.test/upload?sig=1"
    assert put["headers"]["x-ms-blob-type"] == "BlockBlob"
    with zipfile.ZipFile(io.BytesIO(put["data"])) as zf:
        assert zf.namelist() == ["bundle-stats.json"]
    assert finalize["json"]["size"] == str(len(put["data"]))
    assert finalize["json"]["hash"].startswith("sha256:")


def test_upload_rejected_create_raises(context: RunContext, tmp_path: Path) -> None:
    stats = tmp_path / "bundle-stats.json"
    stats.write_text("{}", encoding="utf-8")
    backend = GitHubBackend(context, session=_FakeSession(_response(payload={"ok": False})))
    with pytest.raises(RemoteError, match="CreateArtifact"):
        backend.upload_artifact("bundle-stats", [stats], tmp_path, retention_days=1)


def test_comments_list_create_update(context: RunContext) -> None:
    session = _FakeSession(
        _response(payload=[{"id": 1, "body": "hello"}, {"id": 2, "body": None}]),
        _response(201, payload={"id": 3}),
        _response(200, payload={"id": 3}),
    )
    backend = GitHubBackend(context, session=session)

    page = backend.list_comments(7)
    new_id = backend.create_comment(7, "body")
    backend.update_comment(new_id, "body 2")

    assert [c.body for c in page.items] == ["hello", ""]
    assert page.next_page is None
    assert new_id == 3
    assert session.sent[2]["method"] == "PATCH"
    assert session.sent[2]["url"].endswith("/repos/acme/web/issues/comments/3")


# ----------------------------------------------------------------------
# Runtime token
# ----------------------------------------------------------------------


def test_backend_ids_from_token() -> None:
    assert backend_ids_from_token(_jwt({"scp": "Actions.Results:abc:def"})) == ("abc", "def")


@pytest.mark.parametrize("token", ["", "not-a-jwt", _jwt({"scp": "Actions.Other"})])
def test_backend_ids_from_bad_token(token: str) -> None:
    with pytest.raises(RemoteError):
        backend_ids_from_token(token)
