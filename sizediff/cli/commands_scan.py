"""CLI command for measuring a build output directory."""

from __future__ import annotations

import json
import sys

import click
from rich.console import Console
from rich.table import Table

from sizediff.baseline.publish import write_record
from sizediff.core.errors import SizeDiffError
from sizediff.core.scan import scan_directory
from sizediff.core.units import format_bytes

console = Console()


@click.command("scan")
@click.argument("dist_path", type=click.Path(exists=True, file_okay=False))
@click.option("--out", "-o", "output", type=click.Path(dir_okay=False), default=None,
              help="Write the record JSON here instead of stdout.")
@click.option("--gzip/--no-gzip", default=True, help="Measure gzip sizes.")
@click.option("--brotli/--no-brotli", default=True, help="Measure brotli sizes.")
@click.option("--commit", default="unknown", envvar="GITHUB_SHA", help="Commit to stamp on the record.")
def scan(dist_path: str, output: str | None, gzip: bool, brotli: bool, commit: str) -> None:
    """Measure the assets under DIST_PATH."""
    try:
        record = scan_directory(dist_path, use_gzip=gzip, use_brotli=brotli, commit=commit)
    except (SizeDiffError, OSError) as exc:
        console.print(f"[red]Error: {exc}[/red]")
        sys.exit(1)

    if output is None:
        click.echo(json.dumps(record.to_dict(), indent=2))
        return

    write_record(record, output)
    table = Table(title=f"{dist_path} ({len(record.files)} files)")
    table.add_column("File", style="cyan")
    table.add_column("Size", justify="right")
    table.add_column("Gzip", justify="right")
    table.add_column("Brotli", justify="right")
    for entry in record.files:
        table.add_row(entry.path, format_bytes(entry.size), format_bytes(entry.gzip), format_bytes(entry.brotli))
    table.add_row(
        "[bold]Total[/bold]",
        format_bytes(record.total_size),
        format_bytes(record.total_gzip),
        format_bytes(record.total_brotli),
    )
    console.print(table)
    console.print(f"[green]Record written to {output}[/green]")
