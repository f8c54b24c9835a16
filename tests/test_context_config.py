"""Tests for run context parsing and configuration validation."""

from __future__ import annotations

import json
import math
from pathlib import Path

import pytest

from sizediff.core.config import CheckSettings, parse_branches, parse_optional_kb, parse_positive_int
from sizediff.core.context import RunContext
from sizediff.core.errors import ConfigError


def _event(tmp_path: Path, payload: dict) -> str:
    path = tmp_path / "event.json"
    path.write_text(json.dumps(payload), encoding="utf-8")
    return str(path)


def test_pull_request_context(tmp_path: Path) -> None:
    env = {
        "GITHUB_EVENT_NAME": "pull_request",
        "GITHUB_REF": "refs/pull/12/merge",
        "GITHUB_SHA": "0123456789",
        "GITHUB_REPOSITORY": "acme/web",
        "GITHUB_WORKFLOW_REF": "acme/web/.github/workflows/size.yml@refs/pull/12/merge",
        "GITHUB_API_URL": "https://ghe.example.test/api/v3/",
        "GITHUB_TOKEN": "tok",
        "RUNNER_TEMP": str(tmp_path),
        "GITHUB_EVENT_PATH": _event(tmp_path, {"pull_request": {"number": 12, "base": {"ref": "release"}}}),
    }

    ctx = RunContext.from_env(env)

    assert ctx.pr_number == 12
    assert ctx.is_pull_request
    assert not ctx.is_trunk
    assert (ctx.owner, ctx.repo) == ("acme", "web")
    assert ctx.api_url == "https://ghe.example.test/api/v3"
    assert ctx.workflow_file == "size.yml"
    assert ctx.default_branches() == ["release", "main", "master"]


def test_trunk_push_context() -> None:
    ctx = RunContext.from_env({"GITHUB_REF": "refs/heads/master", "GITHUB_EVENT_NAME": "push"})
    assert ctx.is_trunk
    assert ctx.sha == "unknown"
    assert ctx.default_branches() == ["main", "master"]


def test_action_token_input_wins() -> None:
    ctx = RunContext.from_env({"GITHUB_TOKEN": "env", "INPUT_GITHUB-TOKEN": "input"})
    assert ctx.token == "input"


def test_unreadable_event_payload(tmp_path: Path) -> None:
    ctx = RunContext.from_env({"GITHUB_EVENT_PATH": str(tmp_path / "missing.json")})
    assert ctx.pr_number is None


def test_push_event_payload_is_not_a_pr(tmp_path: Path) -> None:
    ctx = RunContext.from_env({"GITHUB_EVENT_PATH": _event(tmp_path, {"ref": "refs/heads/main"})})
    assert not ctx.is_pull_request


@pytest.mark.parametrize(("value", "expected"), [(None, None), ("", None), ("  ", None), ("10", 10.0), ("0.5", 0.5)])
def test_parse_optional_kb(value, expected) -> None:
    assert parse_optional_kb(value, "budget-max-increase-kb") == expected


@pytest.mark.parametrize("value", ["ten", "inf", "nan", math.inf])
def test_parse_optional_kb_rejects_garbage(value) -> None:
    with pytest.raises(ConfigError):
        parse_optional_kb(value, "warn-above-kb")


def test_negative_kb_is_ignored(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level("WARNING", logger="sizediff.config"):
        assert parse_optional_kb("-5", "fail-above-kb") is None
    assert "fail-above-kb is negative" in caplog.text


def test_parse_positive_int() -> None:
    assert parse_positive_int(" 7 ", "max-artifact-pages") == 7
    for bad in ("0", "-1", "x"):
        with pytest.raises(ConfigError):
            parse_positive_int(bad, "max-artifact-pages")


def test_parse_branches_dedupes() -> None:
    assert parse_branches(" main, develop ,main,, ") == ["main", "develop"]
    assert parse_branches(None) == []


def test_settings_validation() -> None:
    assert CheckSettings().build_timeout_s == 900.0
    with pytest.raises(ConfigError):
        CheckSettings(comment_mode="sometimes")
    with pytest.raises(ConfigError):
        CheckSettings(max_artifact_pages=0)
