"""CLI commands for baseline lookup and publishing."""

from __future__ import annotations

import sys
from pathlib import Path

import click
from rich.console import Console

from sizediff.cli.validation import load_record_file
from sizediff.core.config import parse_branches
from sizediff.core.errors import SizeDiffError

console = Console()


@click.group("baseline")
def baseline_group() -> None:
    """Baseline artifact commands."""


@baseline_group.command("fetch")
@click.option("--out", "-o", "output", type=click.Path(dir_okay=False), required=True,
              help="Where to write the baseline record.")
@click.option("--baseline-branches", envvar=["INPUT_BASELINE-BRANCHES", "INPUT_BASELINE_BRANCHES"],
              default=None, help="Comma-separated candidate branches, in priority order.")
@click.option("--max-artifact-pages", type=int, default=10,
              help="Page ceiling for the repository-wide search.")
def baseline_fetch(output: str, baseline_branches: str | None, max_artifact_pages: int) -> None:
    """Find the most recent baseline and write it to --out."""
    from sizediff.adapters.github import GitHubBackend
    from sizediff.baseline.lookup import fetch_baseline
    from sizediff.baseline.publish import write_record
    from sizediff.core.context import RunContext

    context = RunContext.from_env()
    branches = parse_branches(baseline_branches) or context.default_branches()
    try:
        record = fetch_baseline(
            GitHubBackend(context),
            context,
            branches,
            Path(context.temp_dir),
            max_pages=max_artifact_pages,
        )
    except SizeDiffError as exc:
        console.print(f"[red]Error: {exc}[/red]")
        sys.exit(1)

    if record is None:
        console.print(f"[yellow]No baseline found for {', '.join(branches)}[/yellow]")
        sys.exit(1)
    write_record(record, output)
    console.print(f"[green]Baseline from {record.commit[:7]} written to {output}[/green]")


@baseline_group.command("publish")
@click.argument("record_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--retention-days", type=int, default=90, help="Artifact retention in days.")
def baseline_publish(record_path: str, retention_days: int) -> None:
    """Upload RECORD_PATH as a new baseline artifact."""
    from sizediff.adapters.github import GitHubBackend
    from sizediff.baseline.publish import publish
    from sizediff.core.context import RunContext

    record = load_record_file(record_path)
    context = RunContext.from_env()
    try:
        artifact_id = publish(GitHubBackend(context), record, Path(context.temp_dir), retention_days=retention_days)
    except SizeDiffError as exc:
        console.print(f"[red]Error: {exc}[/red]")
        sys.exit(1)
    console.print(f"[green]Published baseline artifact {artifact_id}[/green]")
