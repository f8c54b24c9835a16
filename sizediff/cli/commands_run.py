"""CLI command for the full CI flow."""

from __future__ import annotations

import sys

import click
from rich.console import Console

from sizediff.cli.validation import kb_value
from sizediff.core.config import CheckSettings, parse_branches
from sizediff.core.errors import SizeDiffError

console = Console()


def _env(name: str) -> list[str]:
    """Action input variables, with and without hyphens."""
    upper = name.upper()
    return [f"INPUT_{upper}", f"INPUT_{upper.replace('-', '_')}"]


@click.command("run")
@click.option("--dist-path", envvar=_env("dist-path"), default=None,
              help="Build output directory (auto-detected when omitted).")
@click.option("--gzip/--no-gzip", envvar=_env("gzip"), default=True, help="Measure gzip sizes.")
@click.option("--brotli/--no-brotli", envvar=_env("brotli"), default=True, help="Measure brotli sizes.")
@click.option("--budget-max-increase-kb", envvar=_env("budget-max-increase-kb"), default=None,
              help="Maximum allowed total increase, in KB.")
@click.option("--warn-above-kb", envvar=_env("warn-above-kb"), default=None,
              help="Warn when the largest single-file change passes this, in KB.")
@click.option("--fail-above-kb", envvar=_env("fail-above-kb"), default=None,
              help="Fail when the largest single-file change passes this, in KB.")
@click.option("--max-artifact-pages", envvar=_env("max-artifact-pages"), type=int, default=10,
              help="Page ceiling for the repository-wide baseline search.")
@click.option("--baseline-branches", envvar=_env("baseline-branches"), default=None,
              help="Comma-separated candidate baseline branches, in priority order.")
@click.option("--build-command", envvar=_env("build-command"), default="npm run build",
              help="Command that builds the project.")
@click.option("--build-timeout-minutes", envvar=_env("build-timeout-minutes"), type=int, default=15,
              help="Build timeout in minutes.")
@click.option("--allow-unsafe-build/--no-allow-unsafe-build", envvar=_env("allow-unsafe-build"),
              default=False, help="Allow shell metacharacters in the build command.")
@click.option("--fail-on-stderr/--no-fail-on-stderr", envvar=_env("fail-on-stderr"), default=False,
              help="Treat build stderr output as a failure.")
@click.option("--skip-install/--no-skip-install", envvar=_env("skip-install"), default=False,
              help="Do not install dependencies before building.")
@click.option("--skip-build/--no-skip-build", envvar=_env("skip-build"), default=False,
              help="Measure an existing build output without building.")
@click.option("--comment-mode", envvar=_env("comment-mode"),
              type=click.Choice(["always", "on-increase", "never"]), default="always",
              help="When to post the pull request comment.")
@click.option("--fail-on-comment-error/--no-fail-on-comment-error", envvar=_env("fail-on-comment-error"),
              default=False, help="Fail the run when the comment cannot be posted.")
@click.option("--top-n", type=int, default=5, help="Number of per-file changes to report.")
@click.option("--repo-root", type=click.Path(exists=True, file_okay=False), default=".",
              help="Repository checkout to build and scan.")
def run(
    dist_path: str | None,
    gzip: bool,
    brotli: bool,
    budget_max_increase_kb: str | None,
    warn_above_kb: str | None,
    fail_above_kb: str | None,
    max_artifact_pages: int,
    baseline_branches: str | None,
    build_command: str,
    build_timeout_minutes: int,
    allow_unsafe_build: bool,
    fail_on_stderr: bool,
    skip_install: bool,
    skip_build: bool,
    comment_mode: str,
    fail_on_comment_error: bool,
    top_n: int,
    repo_root: str,
) -> None:
    """Build, measure and compare against the baseline (or publish it on trunk)."""
    from sizediff.api import run_check
    from sizediff.core.context import RunContext

    try:
        settings = CheckSettings(
            dist_path=dist_path or None,
            gzip=gzip,
            brotli=brotli,
            budget_max_increase_kb=kb_value(budget_max_increase_kb, "budget-max-increase-kb"),
            warn_above_kb=kb_value(warn_above_kb, "warn-above-kb"),
            fail_above_kb=kb_value(fail_above_kb, "fail-above-kb"),
            max_artifact_pages=max_artifact_pages,
            baseline_branches=tuple(parse_branches(baseline_branches)),
            build_command=build_command,
            build_timeout_minutes=build_timeout_minutes,
            allow_unsafe_build=allow_unsafe_build,
            fail_on_stderr=fail_on_stderr,
            skip_install=skip_install,
            skip_build=skip_build,
            comment_mode=comment_mode,
            fail_on_comment_error=fail_on_comment_error,
            top_n=top_n,
        )
        outcome = run_check(RunContext.from_env(), settings, repo_root=repo_root)
    except SizeDiffError as exc:
        console.print(f"[red]Error: {exc}[/red]")
        sys.exit(1)

    diff = outcome.diff
    console.print(f"[bold blue]Bundle size[/bold blue] ({outcome.dist_path})")
    console.print(f"  Status: {diff.status}")
    console.print(f"  Files:  {len(outcome.current.files)}")
    if outcome.artifact_id is not None:
        console.print(f"  Baseline artifact: {outcome.artifact_id}")

    if outcome.failed:
        console.print(f"[red]{diff.failure_message()}[/red]")
        sys.exit(1)
