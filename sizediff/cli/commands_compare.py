"""CLI command for comparing two measurement records."""

from __future__ import annotations

import json
import sys

import click
from rich.console import Console
from rich.table import Table

from sizediff.cli.validation import kb_value, load_record_file
from sizediff.core.diff import diff_bundles
from sizediff.core.units import format_bytes, format_percent, format_signed_bytes
from sizediff.report.markdown import build_comment_markdown

console = Console()
_err_console = Console(stderr=True)


@click.command("compare")
@click.argument("baseline", type=click.Path(exists=True, dir_okay=False))
@click.argument("current", type=click.Path(exists=True, dir_okay=False))
@click.option("--budget-max-increase-kb", default=None, help="Maximum allowed total increase, in KB.")
@click.option("--warn-above-kb", default=None, help="Per-file warn threshold, in KB.")
@click.option("--fail-above-kb", default=None, help="Per-file fail threshold, in KB.")
@click.option("--gzip/--no-gzip", default=True, help="Whether gzip sizes count.")
@click.option("--brotli/--no-brotli", default=True, help="Whether brotli sizes count.")
@click.option("--top-n", type=int, default=5, help="Number of per-file changes to show.")
@click.option("--format", "-f", "output_format", type=click.Choice(["text", "json", "markdown"]),
              default="text", help="Output format.")
def compare(
    baseline: str,
    current: str,
    budget_max_increase_kb: str | None,
    warn_above_kb: str | None,
    fail_above_kb: str | None,
    gzip: bool,
    brotli: bool,
    top_n: int,
    output_format: str,
) -> None:
    """Compare CURRENT against BASELINE (both bundle-stats.json files)."""
    diff = diff_bundles(
        load_record_file(baseline),
        load_record_file(current),
        budget_max_increase_kb=kb_value(budget_max_increase_kb, "budget-max-increase-kb"),
        warn_above_kb=kb_value(warn_above_kb, "warn-above-kb"),
        fail_above_kb=kb_value(fail_above_kb, "fail-above-kb"),
        gzip=gzip,
        brotli=brotli,
        top_n=top_n,
    )

    if output_format == "json":
        click.echo(json.dumps(diff.to_dict(), indent=2))  # stdout only
    elif output_format == "markdown":
        click.echo(build_comment_markdown(diff))
    else:
        console.print(f"[bold blue]Bundle size compare[/bold blue] ({diff.compare_metric})")
        console.print(f"  Total: {format_bytes(diff.current.total(diff.compare_metric))}")
        console.print(
            f"  Diff:  {format_signed_bytes(diff.diff_metric)} ({format_percent(diff.diff_percent)})"
        )
        if diff.top_changes:
            table = Table(title="Top changes")
            table.add_column("File", style="cyan")
            table.add_column("Before", justify="right")
            table.add_column("After", justify="right")
            table.add_column("Diff", justify="right")
            for change in diff.top_changes:
                table.add_row(
                    change.file,
                    format_bytes(change.before),
                    format_bytes(change.after),
                    format_signed_bytes(change.diff),
                )
            console.print(table)
        if diff.threshold_status == "warn":
            console.print(f"[yellow]Warning: {diff.threshold_message}[/yellow]")
        color = "red" if diff.status == "fail" else "green"
        console.print(f"[{color}]Status: {diff.status}[/{color}]")

    if diff.status == "fail":
        out = console if output_format == "text" else _err_console
        out.print(f"[red]{diff.failure_message()}[/red]")
        sys.exit(1)
