"""sizediff CLI: main entry point.

Usage::

    sizediff run                      # inside a GitHub Actions job
    sizediff scan dist --out bundle-stats.json
    sizediff compare base.json current.json --budget-max-increase-kb 10
    sizediff baseline fetch --out baseline.json
    sizediff baseline publish bundle-stats.json
"""

from __future__ import annotations

import click

from sizediff import __version__
from sizediff.cli.commands_baseline import baseline_group
from sizediff.cli.commands_compare import compare
from sizediff.cli.commands_run import run
from sizediff.cli.commands_scan import scan
from sizediff.log import configure_logging


@click.group()
@click.version_option(version=__version__, prog_name="sizediff")
@click.option("--verbose", "-v", is_flag=True, default=False, envvar="RUNNER_DEBUG",
              help="Enable debug logging.")
def cli(verbose: bool) -> None:
    """sizediff: bundle size measurement and baseline comparison for CI."""
    configure_logging(verbose=verbose)


cli.add_command(run)
cli.add_command(scan)
cli.add_command(compare)
cli.add_command(baseline_group)

if __name__ == "__main__":
    cli()
